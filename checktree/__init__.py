"""Top-level package for checktree.

Checkbox trees over a shared item store: tri-state checked propagation, a
virtual root for forests and event routing from store attributes to tree
nodes. GUI front-ends build on the API re-exported here.
"""

from .core.models import ForestStoreModel, TreeStoreModel  # re-export for convenience
from .core.store import ItemStore

__version__ = "1.0.0"

__all__: list[str] = [
    "ForestStoreModel",
    "ItemStore",
    "TreeStoreModel",
    "__version__",
]
