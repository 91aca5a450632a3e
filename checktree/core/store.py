from __future__ import annotations

"""In-memory item store with asynchronous queries and change notifications.

The store holds items by identity. Some items are *top-level* (attached to the
store root); the others are only reachable through the children lists of
their parents. An item may appear in the children lists of several parents.

Data format
-----------
The constructor accepts the classic item-file layout::

    {
        "identifier": "id",
        "label": "name",
        "items": [
            {"id": "fruit", "name": "Fruit", "children": [
                {"id": "apple", "name": "Apple", "checked": True},
                {"_reference": "pear"},
            ]},
            {"id": "pear", "name": "Pear"},
        ],
    }

Nested dictionaries inside a list are child items; ``{"_reference": id}``
points at an item defined elsewhere in the data.

Asynchrony
----------
Queries (``fetch``, ``fetch_item_by_identity``) are evaluated when issued and
their results delivered later through ``schedule_ui(delay_ms, fn)``, a
Tk-style scheduler such as ``widget.after``. The default scheduler calls
``fn`` immediately. Writes are synchronous and notify subscribers at once.

Notifications
-------------
``set(item, attribute, old_value, new_value)``
    An attribute value changed (not emitted when the value is unchanged).
``delete(item)``
    An item was deleted.
``root_change(item, event)``
    An item was attached to (``{"attach": True}``) or detached from
    (``{"detach": True}``) the store root.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import QueryError, StoreError
from .subscriptions import SubscriptionMixin

__all__ = ["StoreItem", "ItemStore", "call_now"]

logger = logging.getLogger(__name__)

Scheduler = Callable[[int, Callable[[], None]], object]


def call_now(_delay_ms: int, fn: Callable[[], None]) -> None:
    """Scheduler that runs ``fn`` synchronously."""
    fn()


class StoreItem:
    """Opaque handle to a store item. Equality is identity."""

    __slots__ = ("_attributes", "_deleted")

    def __init__(self, attributes: Dict[str, Any]) -> None:
        self._attributes = attributes
        self._deleted = False

    def __repr__(self) -> str:
        return f"<StoreItem {self._attributes.get('id', '?')!r}>"


class ItemStore(SubscriptionMixin):
    """Identity-keyed item store.

    Parameters
    ----------
    data : dict, optional
        Initial data in item-file layout (see module docstring).
    schedule_ui : callable, optional
        Tk-style ``(delay_ms, fn)`` scheduler used to deliver query results.
    identifier : str
        Identity attribute used when ``data`` does not name one.
    label : str
        Label attribute used when ``data`` does not name one.
    """

    EVENTS = ("set", "delete", "root_change")

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        *,
        schedule_ui: Optional[Scheduler] = None,
        identifier: str = "id",
        label: str = "name",
    ) -> None:
        self._schedule_ui: Scheduler = schedule_ui or call_now
        self._identifier = identifier
        self._label_attr = label
        self._items: Dict[str, StoreItem] = {}
        self._root_items: List[StoreItem] = []
        self._auto_id = 0
        if data:
            self._load(data)

    @classmethod
    def from_json(cls, path: str | Path, **kwargs: Any) -> "ItemStore":
        """Create a store from a JSON file in item-file layout."""
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        logger.info("Loaded store data from %s", path)
        return cls(data, **kwargs)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _load(self, data: Dict[str, Any]) -> None:
        self._identifier = data.get("identifier", self._identifier)
        self._label_attr = data.get("label", self._label_attr)
        references: List[Tuple[StoreItem, str, int, str]] = []
        for raw in data.get("items", []):
            self._root_items.append(self._build_item(raw, references))
        for item, attr, index, ref in references:
            target = self._items.get(ref)
            if target is None:
                raise StoreError(f"Unknown item reference '{ref}'")
            item._attributes[attr][index] = target
        logger.debug("Store loaded: %d item(s), %d top-level", len(self._items), len(self._root_items))

    def _build_item(self, raw: Dict[str, Any], references: List[Tuple[StoreItem, str, int, str]]) -> StoreItem:
        attributes: Dict[str, Any] = {}
        item = self._register(StoreItem(attributes), raw.get(self._identifier))
        for key, value in raw.items():
            if key == self._identifier:
                continue
            if isinstance(value, list) and any(isinstance(v, dict) for v in value):
                values: List[Any] = []
                for entry in value:
                    if isinstance(entry, dict) and "_reference" in entry:
                        references.append((item, key, len(values), str(entry["_reference"])))
                        values.append(None)
                    elif isinstance(entry, dict):
                        values.append(self._build_item(entry, references))
                    else:
                        values.append(entry)
                attributes[key] = values
            else:
                attributes[key] = value
        return item

    def _register(self, item: StoreItem, identity: Any) -> StoreItem:
        if identity is None:
            self._auto_id += 1
            identity = f"item-{self._auto_id}"
        identity = str(identity)
        if identity in self._items:
            raise StoreError(f"Duplicate item identity '{identity}'")
        item._attributes[self._identifier] = identity
        self._items[identity] = item
        return item

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------
    def get_identity(self, item: StoreItem) -> str:
        return item._attributes[self._identifier]

    def get_identity_attributes(self) -> List[str]:
        return [self._identifier]

    def get_label_attributes(self) -> List[str]:
        return [self._label_attr]

    def is_item(self, something: Any) -> bool:
        return (
            isinstance(something, StoreItem)
            and not something._deleted
            and self._items.get(something._attributes.get(self._identifier)) is something
        )

    def is_root_item(self, item: Any) -> bool:
        return any(r is item for r in self._root_items)

    def has_attribute(self, item: Any, attribute: str) -> bool:
        return isinstance(item, StoreItem) and attribute in item._attributes

    def get_value(self, item: StoreItem, attribute: str, default: Any = None) -> Any:
        value = item._attributes.get(attribute, default)
        if isinstance(value, list):
            return value[0] if value else default
        return value

    def get_values(self, item: StoreItem, attribute: str) -> List[Any]:
        value = item._attributes.get(attribute)
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]

    def get_attributes(self, item: StoreItem) -> List[str]:
        return list(item._attributes.keys())

    def parents_of(self, item: Any, attributes: Sequence[str]) -> List[StoreItem]:
        """Return every item listing ``item`` under one of ``attributes``."""
        if not isinstance(item, StoreItem):
            return []
        parents: List[StoreItem] = []
        for candidate in self._items.values():
            for attr in attributes:
                values = candidate._attributes.get(attr)
                if isinstance(values, list) and any(v is item for v in values):
                    parents.append(candidate)
                    break
        return parents

    def all_items(self) -> List[StoreItem]:
        return list(self._items.values())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def fetch(
        self,
        query: Optional[Dict[str, Any]],
        on_complete: Callable[[List[StoreItem]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        """Query the top-level items matching every ``query`` key/value.

        A None or empty query matches all top-level items. The result is
        computed now and delivered through the scheduler.
        """
        try:
            items = self._match(query)
        except QueryError as exc:
            logger.warning("Query failed: %s", exc)
            if on_error is not None:
                self._schedule_ui(0, lambda: on_error(exc))
            return
        self._schedule_ui(0, lambda: on_complete(items))

    def fetch_item_by_identity(
        self,
        identity: str,
        on_item: Callable[[Optional[StoreItem]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        item = self._items.get(str(identity))
        self._schedule_ui(0, lambda: on_item(item))

    def _match(self, query: Any) -> List[StoreItem]:
        if query is None:
            return list(self._root_items)
        if not isinstance(query, dict):
            raise QueryError(f"Unsupported query {query!r}", query=query)
        return [
            item for item in self._root_items
            if all(
                self.has_attribute(item, key) and self.get_value(item, key) == value
                for key, value in query.items()
            )
        ]

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------
    def set_value(self, item: StoreItem, attribute: str, value: Any) -> bool:
        """Set ``attribute`` on ``item``. Returns False if nothing changed."""
        attributes = item._attributes
        if attribute in attributes:
            old_value = attributes[attribute]
            if type(old_value) is type(value) and old_value == value:
                return False
        else:
            old_value = None
        attributes[attribute] = value
        self._notify("set", item, attribute, old_value, value)
        return True

    def set_values(self, item: StoreItem, attribute: str, values: Sequence[Any]) -> bool:
        return self.set_value(item, attribute, list(values))

    def new_item(
        self,
        attributes: Dict[str, Any],
        parent: Optional[StoreItem] = None,
        attribute: str = "children",
        insert_index: Optional[int] = None,
    ) -> StoreItem:
        """Create an item, top-level when ``parent`` is None."""
        attrs = dict(attributes)
        identity = attrs.pop(self._identifier, None)
        item = self._register(StoreItem(attrs), identity)
        logger.debug("New item %s (parent=%s)", self.get_identity(item), parent)
        if parent is None:
            self._root_items.append(item)
            self._notify("root_change", item, {"attach": True})
        else:
            children = self.get_values(parent, attribute)
            if insert_index is None:
                children.append(item)
            else:
                children.insert(insert_index, item)
            self.set_values(parent, attribute, children)
        return item

    def delete_item(self, item: StoreItem) -> bool:
        """Delete ``item`` and remove every reference to it."""
        if not self.is_item(item):
            return False
        identity = self.get_identity(item)
        for parent in list(self._items.values()):
            for attr, values in list(parent._attributes.items()):
                if isinstance(values, list) and any(v is item for v in values):
                    self.set_value(parent, attr, [v for v in values if v is not item])
        self._root_items = [r for r in self._root_items if r is not item]
        del self._items[identity]
        item._deleted = True
        logger.debug("Deleted item %s", identity)
        self._notify("delete", item)
        return True

    def attach_to_root(self, item: StoreItem) -> None:
        if self.is_root_item(item):
            return
        self._root_items.append(item)
        self._notify("root_change", item, {"attach": True})

    def detach_from_root(self, item: StoreItem) -> None:
        if not self.is_root_item(item):
            return
        self._root_items = [r for r in self._root_items if r is not item]
        self._notify("root_change", item, {"detach": True})
