"""GUI-agnostic core: event routing, node index, checked states, store and models.

Nothing in this package imports Tkinter; front-ends build on the public API
re-exported here.
"""

from .checkbox import MIXED, CheckBox, WidgetSpec, aggregate_checked_state, validate_checkbox_widget
from .events import AttributeEventRouter, InternalSignal, StoreAttribute
from .exceptions import CheckTreeError, ConfigurationError, QueryError, StoreError
from .identity_index import NodeIdentityIndex
from .models import ForestStoreModel, TreeStoreModel, VirtualRoot
from .store import ItemStore, StoreItem

__all__: list[str] = [
    "MIXED",
    "CheckBox",
    "WidgetSpec",
    "aggregate_checked_state",
    "validate_checkbox_widget",
    "AttributeEventRouter",
    "InternalSignal",
    "StoreAttribute",
    "CheckTreeError",
    "ConfigurationError",
    "QueryError",
    "StoreError",
    "NodeIdentityIndex",
    "ForestStoreModel",
    "TreeStoreModel",
    "VirtualRoot",
    "ItemStore",
    "StoreItem",
]
