from __future__ import annotations

"""Tree model for stores without a single root item.

:class:`ForestStoreModel` makes every top-level item matching ``query``
appear as a child of a fabricated root, so a tree can always assume one root.

The root's children are cached on the :class:`VirtualRoot`. Whenever the
membership may have changed (a cached child is deleted, an attribute the
query depends on is written, an item is attached to or detached from the
store root) the query is run again and the new ordered result is compared
with the cache. Only a different result replaces the cache and emits
``children_change`` for the root.

Each requery carries a sequence number. A completion older than the last
committed one is dropped, and the comparison is made against the cache as it
is at commit time, so overlapping requeries may complete in any order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..checkbox import CheckedState
from ..store import ItemStore
from .tree_model import TreeStoreModel

__all__ = ["VirtualRoot", "ForestStoreModel", "same_sequence"]

logger = logging.getLogger(__name__)

_Waiter = Tuple[Callable[[List[Any]], None], Optional[Callable[[Exception], None]]]


@dataclass(eq=False)
class VirtualRoot:
    """Fabricated root item. Recognized by identity, never by its attributes."""

    id: str
    label: str
    children: Optional[List[Any]] = None
    checked: Optional[CheckedState] = False


def same_sequence(old: Sequence[Any], new: Sequence[Any]) -> bool:
    """True if both sequences hold the same items, by identity, in the same order."""
    return len(old) == len(new) and all(a is b for a, b in zip(old, new))


class ForestStoreModel(TreeStoreModel):
    """Model presenting the top-level items of a store under a virtual root.

    Parameters
    ----------
    store : ItemStore
        Backing store.
    query : dict, optional
        Selects the top-level items shown under the root; None selects all.
    root_id : str
        Identity of the fabricated root.
    root_label : str
        Label of the fabricated root.
    root_children : sequence, optional
        Pre-loaded root children; skips the initial query.
    **kwargs
        Passed on to :class:`TreeStoreModel`.
    """

    def __init__(
        self,
        store: ItemStore,
        *,
        query: Optional[Dict[str, Any]] = None,
        root_id: str = "$root$",
        root_label: str = "ROOT",
        root_children: Optional[Sequence[Any]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(store, query=query, **kwargs)
        self.root = VirtualRoot(
            id=root_id,
            label=root_label,
            children=list(root_children) if root_children is not None else None,
            checked=self.checked_state,
        )
        self.query_attrs: List[str] = list(query.keys()) if isinstance(query, dict) else []
        self._issued_seq = 0
        self._committed_seq = 0
        self._waiters: Optional[List[_Waiter]] = None

    # =======================================================================
    # Traversing the hierarchy

    def get_root(self, on_item: Callable[[Any], None], on_error: Optional[Callable[[Exception], None]] = None) -> None:
        on_item(self.root)

    def may_have_children(self, item: Any) -> bool:
        return item is self.root or super().may_have_children(item)

    def get_children(
        self,
        parent: Any,
        on_complete: Callable[[List[Any]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        """Deliver the children of ``parent``.

        Root children come from the cache once loaded. The first request
        issues the query; requests arriving while it is pending wait for the
        same result.
        """
        if parent is not self.root:
            super().get_children(parent, on_complete, on_error)
            return
        if self.root.children is not None:
            on_complete(self.root.children)
            return
        if self._waiters is not None:
            self._waiters.append((on_complete, on_error))
            return

        self._waiters = [(on_complete, on_error)]
        seq = self._next_seq()

        def _loaded(items: List[Any]) -> None:
            if self._destroyed:
                return
            waiters, self._waiters = self._waiters or [], None
            if seq > self._committed_seq:
                self._committed_seq = seq
                self.root.children = list(items)
            children = self.root.children if self.root.children is not None else []
            logger.debug("Root children loaded: %d item(s)", len(children))
            for callback, _errback in waiters:
                callback(children)

        def _failed(exc: Exception) -> None:
            if self._destroyed:
                return
            waiters, self._waiters = self._waiters or [], None
            logger.warning("Loading root children failed: %s", exc)
            for _callback, errback in waiters:
                if errback is not None:
                    errback(exc)

        self.store.fetch(self.query, _loaded, _failed)

    def _children_of(self, item: Any) -> List[Any]:
        if item is self.root:
            return list(self.root.children or [])
        return super()._children_of(item)

    def _parents_of(self, item: Any) -> List[Any]:
        if item is self.root:
            return []
        parents = super()._parents_of(item)
        if self._is_root_child(item):
            parents.append(self.root)
        return parents

    def _is_root_child(self, item: Any) -> bool:
        return any(child is item for child in (self.root.children or []))

    # =======================================================================
    # Inspecting items

    def is_item(self, something: Any) -> bool:
        return something is self.root or super().is_item(something)

    def fetch_item_by_identity(
        self,
        identity: str,
        on_item: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        if identity == self.root.id:
            on_item(self.root)
        else:
            super().fetch_item_by_identity(identity, on_item, on_error)

    def get_identity(self, item: Any) -> str:
        return self.root.id if item is self.root else super().get_identity(item)

    def get_label(self, item: Any) -> str:
        return self.root.label if item is self.root else super().get_label(item)

    def get_item_attr(self, item: Any, attribute: str) -> Any:
        if item is self.root and attribute != self.checked_attr:
            return getattr(self.root, attribute, None)
        return super().get_item_attr(item, attribute)

    # =======================================================================
    # Checked state

    def get_checked(self, item: Any) -> Optional[CheckedState]:
        if item is self.root:
            return self.root.checked
        return super().get_checked(item)

    def _write_checked(self, item: Any, state: CheckedState) -> None:
        if item is not self.root:
            super()._write_checked(item, state)
            return
        if self.root.checked == state and type(self.root.checked) is type(state):
            return
        self.root.checked = state
        self._notify("change", self.root, self.checked_attr, state)

    def validate_data(self) -> None:
        def _on_children(_children: List[Any]) -> None:
            self._validate_item(self.root, {})

        self.get_children(self.root, _on_children, lambda exc: logger.warning("Data validation skipped: %s", exc))

    # =======================================================================
    # Write interface

    def new_item(self, attributes: Dict[str, Any], parent: Any = None, insert_index: Optional[int] = None) -> Any:
        """Create an item. Items created under the root become top-level store items."""
        if parent is self.root:
            item = self.store.new_item(attributes)
            self.update_checked_parent(item)
            return item
        return super().new_item(attributes, parent, insert_index)

    def paste_item(
        self,
        child: Any,
        old_parent: Any,
        new_parent: Any,
        copy: bool = False,
        insert_index: Optional[int] = None,
    ) -> None:
        """Move or copy ``child``; the root maps to the store's top level."""
        if old_parent is self.root and not copy:
            # Leaving the root no longer matches the top level; the requery
            # triggered by the detach removes the child from the root.
            self.store.detach_from_root(child)
        super().paste_item(
            child,
            None if old_parent is self.root else old_parent,
            None if new_parent is self.root else new_parent,
            copy,
            insert_index,
        )

    # =======================================================================
    # Events from the store

    def _on_delete_item(self, item: Any) -> None:
        if self._is_root_child(item):
            self.requery_top()
        super()._on_delete_item(item)

    def _on_set_item(self, item: Any, attribute: str, old_value: Any, new_value: Any) -> None:
        if self.query_attrs and attribute in self.query_attrs:
            self.requery_top()
        super()._on_set_item(item, attribute, old_value, new_value)

    def _on_root_change(self, item: Any, event: Dict[str, bool]) -> None:
        """Requery on attach, or on detach of a known root child.

        An item attached to the store root does not necessarily match the
        query, so the requery decides whether it becomes a root child.
        """
        if event.get("attach") or self._is_root_child(item):
            self.requery_top()

    # =======================================================================
    # Requery

    def _next_seq(self) -> int:
        self._issued_seq += 1
        return self._issued_seq

    def requery_top(self) -> None:
        """Rerun the root query and notify if the root children changed."""
        if self._destroyed:
            return
        seq = self._next_seq()
        logger.debug("Requery #%d of root children", seq)
        self.store.fetch(
            self.query,
            lambda items: self._commit_top(seq, items),
            lambda exc: self._requery_failed(seq, exc),
        )

    def _commit_top(self, seq: int, items: Sequence[Any]) -> None:
        if self._destroyed:
            return
        if seq < self._committed_seq:
            logger.debug("Dropping superseded requery #%d (committed #%d)", seq, self._committed_seq)
            return
        self._committed_seq = seq
        cached = self.root.children
        new_children = list(items)
        if cached is not None and same_sequence(cached, new_children):
            return
        self.root.children = new_children
        old_children = cached or []
        if not old_children and not new_children:
            return
        logger.debug("Root children changed: %d -> %d item(s)", len(old_children), len(new_children))
        self._notify("children_change", self.root, new_children)
        if new_children:
            inserted = [c for c in new_children if not any(c is o for o in old_children)]
            self.update_checked_parent(inserted[0] if inserted else new_children[0])

    def _requery_failed(self, seq: int, exc: Exception) -> None:
        if self._destroyed:
            return
        logger.warning("Requery #%d of root children failed, keeping %d cached item(s): %s",
                       seq, len(self.root.children or []), exc)

    def destroy(self) -> None:
        self._waiters = None
        super().destroy()
