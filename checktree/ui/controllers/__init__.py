"""UI controllers mediating between tree views and tree models."""

from .tree_controller import TreeController

__all__: list[str] = ["TreeController"]
