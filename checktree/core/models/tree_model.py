from __future__ import annotations

"""Single-root tree model over an :class:`~checktree.core.store.ItemStore`.

The model is the interface between a checkbox tree and the store. It answers
hierarchy and label questions, owns the checked state of every item, and
translates raw store notifications into the notifications a tree consumes:

``change(item, attribute, value)``
    A presentation relevant attribute of ``item`` changed.
``children_change(parent, children)``
    The ordered children of ``parent`` changed.
``delete(item)``
    ``item`` was deleted from the store.
``label_change(old_attr, new_attr)``
    The attribute holding item labels was reconfigured.

Checked state
-------------
Setting a boolean state on a branch cascades to every descendant; afterwards
all ancestors are re-derived from their children with ``branch_policy``
(default: :func:`~checktree.core.checkbox.aggregate_checked_state`). Each
affected item is written at most once per call and unchanged values are not
written, so one ``set_checked`` produces one notification per changed item.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..checkbox import MIXED, BranchStatePolicy, CheckedState, aggregate_checked_state, is_valid_state
from ..exceptions import QueryError
from ..store import ItemStore
from ..subscriptions import SubscriptionMixin

__all__ = ["TreeStoreModel"]

logger = logging.getLogger(__name__)


class TreeStoreModel(SubscriptionMixin):
    """Tree model for a store whose ``query`` matches exactly one root item.

    Parameters
    ----------
    store : ItemStore
        Backing store.
    query : dict, optional
        Query selecting the root item among the store's top-level items.
    label_attr : str, optional
        Attribute used as item label; defaults to the store's label attribute.
    children_attrs : sequence of str
        Attributes holding child item lists.
    checked_attr : str
        Attribute holding the checked state.
    multi_state : bool
        Tri-state (True/False/"mixed") when True, dual-state otherwise.
    checkbox_all : bool
        Give items without ``checked_attr`` a checkbox with ``checked_state``.
    checked_state : bool
        Default state for items without ``checked_attr``.
    branch_policy : callable, optional
        Derives a branch state from its children's states.
    """

    EVENTS = ("change", "children_change", "delete", "label_change")

    def __init__(
        self,
        store: ItemStore,
        *,
        query: Optional[Dict[str, Any]] = None,
        label_attr: Optional[str] = None,
        children_attrs: Sequence[str] = ("children",),
        checked_attr: str = "checked",
        multi_state: bool = True,
        checkbox_all: bool = True,
        checked_state: bool = False,
        branch_policy: Optional[BranchStatePolicy] = None,
        model_id: Optional[str] = None,
    ) -> None:
        self.store = store
        self.query = query
        self._label_attr = label_attr
        self.children_attrs = tuple(children_attrs)
        self.checked_attr = checked_attr
        self._multi_state = bool(multi_state)
        self.checkbox_all = bool(checkbox_all)
        self.checked_state = bool(checked_state)
        self.branch_policy: BranchStatePolicy = branch_policy or aggregate_checked_state
        self._model_id = model_id or f"{type(self).__name__}-{id(self):x}"
        self._destroyed = False

        store.subscribe(
            self._model_id,
            set=self._on_set_item,
            delete=self._on_delete_item,
            root_change=self._on_root_change,
        )

    @property
    def multi_state(self) -> bool:
        return self._multi_state

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    # =======================================================================
    # Traversing the hierarchy

    def get_root(self, on_item: Callable[[Any], None], on_error: Optional[Callable[[Exception], None]] = None) -> None:
        """Deliver the single root item matching ``query``."""

        def _on_complete(items: List[Any]) -> None:
            if self._destroyed:
                return
            if len(items) != 1:
                error = QueryError(f"Query must match exactly one root item, got {len(items)}", query=self.query)
                logger.error("%s", error)
                if on_error is not None:
                    on_error(error)
                return
            on_item(items[0])

        self.store.fetch(self.query, _on_complete, on_error)

    def may_have_children(self, item: Any) -> bool:
        return any(self.store.has_attribute(item, attr) for attr in self.children_attrs)

    def get_children(
        self,
        parent: Any,
        on_complete: Callable[[List[Any]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        """Deliver the ordered children of ``parent``. Store items are always loaded."""
        on_complete(self._children_of(parent))

    def _children_of(self, item: Any) -> List[Any]:
        children: List[Any] = []
        for attr in self.children_attrs:
            children.extend(self.store.get_values(item, attr))
        return children

    def _parents_of(self, item: Any) -> List[Any]:
        return self.store.parents_of(item, self.children_attrs)

    # =======================================================================
    # Inspecting items

    def is_item(self, something: Any) -> bool:
        return self.store.is_item(something)

    def fetch_item_by_identity(
        self,
        identity: str,
        on_item: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.store.fetch_item_by_identity(identity, on_item, on_error)

    def get_identity(self, item: Any) -> str:
        return self.store.get_identity(item)

    def get_label_attr(self) -> str:
        if self._label_attr:
            return self._label_attr
        attrs = self.store.get_label_attributes()
        return attrs[0] if attrs else ""

    def set_label_attr(self, new_attr: str) -> None:
        """Change the label attribute and tell listeners about the rename."""
        old_attr = self.get_label_attr()
        if new_attr == old_attr:
            return
        self._label_attr = new_attr
        logger.info("Label attribute changed: %s -> %s", old_attr, new_attr)
        self._notify("label_change", old_attr, new_attr)

    def get_label(self, item: Any) -> str:
        value = self.store.get_value(item, self.get_label_attr())
        return "" if value is None else str(value)

    def get_item_attr(self, item: Any, attribute: str) -> Any:
        if attribute == self.checked_attr:
            return self.get_checked(item)
        return self.store.get_value(item, attribute)

    def set_item_attr(self, item: Any, attribute: str, value: Any) -> bool:
        if attribute == self.checked_attr:
            return self.set_checked(item, value)
        return self.store.set_value(item, attribute, value)

    # =======================================================================
    # Checked state

    def is_valid_state(self, state: Any) -> bool:
        return is_valid_state(state, self._multi_state)

    def get_checked(self, item: Any) -> Optional[CheckedState]:
        """Return the checked state of ``item``, or None when it has no checkbox."""
        if self.store.has_attribute(item, self.checked_attr):
            state = self.store.get_value(item, self.checked_attr)
            if state == MIXED:
                return MIXED if self._multi_state else True
            return bool(state)
        if self.checkbox_all:
            return self.checked_state
        return None

    def set_checked(self, item: Any, state: Any) -> bool:
        """Set the checked state of ``item`` and propagate it.

        Returns False, without touching any item, when ``state`` is not valid
        for the current mode or ``item`` carries no checkbox.
        """
        if self._destroyed:
            return False
        if not self.is_valid_state(state):
            logger.warning("Rejected checked state %r for %s (multi_state=%s)",
                           state, self._describe(item), self._multi_state)
            return False
        if self.get_checked(item) is None:
            logger.debug("Item %s has no checkbox; set_checked ignored", self._describe(item))
            return False
        visited: Dict[int, Any] = {}
        self._set_checked_down(item, state, visited)
        # Descendants may have parents outside the cascaded subtree
        self._refresh_ancestors(list(visited.values()))
        return True

    def _set_checked_down(self, item: Any, state: CheckedState, visited: Dict[int, Any]) -> None:
        if id(item) in visited:
            return
        visited[id(item)] = item
        self._write_checked(item, state)
        if state == MIXED:
            return
        for child in self._children_of(item):
            if self.get_checked(child) is not None:
                self._set_checked_down(child, state, visited)

    def _write_checked(self, item: Any, state: CheckedState) -> None:
        self.store.set_value(item, self.checked_attr, state)

    def update_checked_parent(self, item: Any) -> None:
        """Re-derive the checked state of every ancestor of ``item``.

        Ancestors are visited children first, each exactly once, even when
        ``item`` is reachable through several parents.
        """
        if self._destroyed or item is None:
            return
        self._refresh_ancestors([item])

    def _refresh_ancestors(self, items: List[Any]) -> None:
        for ancestor in self._ancestors(items):
            self._refresh_branch(ancestor)

    def _refresh_branch(self, item: Any) -> None:
        current = self.get_checked(item)
        if current is None:
            return
        derived = self.branch_policy([self.get_checked(c) for c in self._children_of(item)], self._multi_state)
        if derived is not None and derived != current:
            self._write_checked(item, derived)

    def _ancestors(self, items: List[Any]) -> List[Any]:
        """Ancestors of ``items`` outside ``items``, children before parents."""
        order: List[Any] = []
        seen = {id(item) for item in items}

        def visit(node: Any) -> None:
            for parent in self._parents_of(node):
                if id(parent) in seen:
                    continue
                seen.add(id(parent))
                visit(parent)
                order.append(parent)

        for item in items:
            visit(item)
        order.reverse()
        return order

    def validate_data(self) -> None:
        """Derive every branch state from its leaves, once, after setup."""

        def _on_root(root: Any) -> None:
            self._validate_item(root, {})

        self.get_root(_on_root, lambda exc: logger.warning("Data validation skipped: %s", exc))

    def _validate_item(self, item: Any, seen: Dict[int, Optional[CheckedState]]) -> Optional[CheckedState]:
        if id(item) in seen:
            return seen[id(item)]
        seen[id(item)] = self.get_checked(item)
        children = self._children_of(item)
        if children:
            states = [self._validate_item(child, seen) for child in children]
            current = self.get_checked(item)
            derived = self.branch_policy(states, self._multi_state)
            if current is not None and derived is not None and derived != current:
                self._write_checked(item, derived)
        seen[id(item)] = self.get_checked(item)
        return seen[id(item)]

    # =======================================================================
    # Write interface

    def new_item(self, attributes: Dict[str, Any], parent: Any = None, insert_index: Optional[int] = None) -> Any:
        """Create an item under ``parent`` (top-level when None)."""
        item = self.store.new_item(attributes, parent=parent, attribute=self.children_attrs[0],
                                   insert_index=insert_index)
        self.update_checked_parent(item)
        return item

    def paste_item(
        self,
        child: Any,
        old_parent: Any,
        new_parent: Any,
        copy: bool = False,
        insert_index: Optional[int] = None,
    ) -> None:
        """Move or copy ``child`` from ``old_parent`` to ``new_parent``.

        A None parent stands for the store's top level.
        """
        attr = self.children_attrs[0]
        if old_parent is not None and not copy:
            siblings = [c for c in self.store.get_values(old_parent, attr) if c is not child]
            self.store.set_values(old_parent, attr, siblings)
        if new_parent is None:
            self.store.attach_to_root(child)
        else:
            children = [c for c in self.store.get_values(new_parent, attr) if c is not child]
            if insert_index is None:
                children.append(child)
            else:
                children.insert(insert_index, child)
            self.store.set_values(new_parent, attr, children)
        if old_parent is not None and not copy:
            self._refresh_branch(old_parent)
            self.update_checked_parent(old_parent)
        self.update_checked_parent(child)

    # =======================================================================
    # Events from the store

    def _on_set_item(self, item: Any, attribute: str, old_value: Any, new_value: Any) -> None:
        if self._destroyed:
            return
        if attribute in self.children_attrs:
            self.get_children(item, lambda children: self._notify("children_change", item, children))
        else:
            self._notify("change", item, attribute, new_value)

    def _on_delete_item(self, item: Any) -> None:
        if self._destroyed:
            return
        self._notify("delete", item)

    def _on_root_change(self, item: Any, event: Dict[str, bool]) -> None:
        """Top-level membership changes do not concern a single-root model."""

    # =======================================================================
    # Misc

    def destroy(self) -> None:
        """Detach from the store; late query completions become no-ops."""
        if self._destroyed:
            return
        self._destroyed = True
        self.store.unsubscribe(self._model_id)
        for callbacks in self._subscribers().values():
            callbacks.clear()
        logger.debug("Model %s destroyed", self._model_id)

    def _describe(self, item: Any) -> str:
        try:
            return self.get_identity(item)
        except (AttributeError, KeyError):
            return repr(item)

