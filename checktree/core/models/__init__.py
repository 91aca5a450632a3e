"""Tree models: the interface between checkbox trees and an item store."""

from .tree_model import TreeStoreModel
from .forest_model import ForestStoreModel, VirtualRoot

__all__: list[str] = [
    "TreeStoreModel",
    "ForestStoreModel",
    "VirtualRoot",
]
