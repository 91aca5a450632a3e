from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Any, Callable, Dict, List, Optional

from checktree.core.checkbox import MIXED
from checktree.ui.controllers.tree_controller import TreeController
from checktree.ui.widgets.tree_node import CHECKBOX_STATE, ICON, LABEL, READ_ONLY, STYLING, TreeNode

__all__ = ["CheckboxTreeWidget", "GLYPHS"]

logger = logging.getLogger(__name__)

GLYPHS: Dict[Any, str] = {
    True: "☑",
    False: "☐",
    MIXED: "▣",
}

_ROOT_CONTAINER = ""
_PLACEHOLDER_SUFFIX = "::loading"


class CheckboxTreeWidget(ttk.Frame):
    """Tkinter widget rendering a tree model with a checkbox per row.

    The widget is a thin view: every row owns one :class:`TreeNode` created by
    an internal :class:`TreeController`, and redraws itself whenever the
    controller updates that node. Rows of branches are populated lazily the
    first time they are opened.

    Parameters
    ----------
    master : tk.Widget
        Parent widget.
    model : TreeStoreModel
        Model shown by the tree. Several widgets may share one model.
    show_root : bool
        Show the root row; when False its children are the top-level rows.
    **controller_options
        Passed on to :class:`TreeController` (``checkbox_style``,
        ``branch_read_only``, ``on_checkbox_click``, ...).
    """

    def __init__(self, master: "tk.Widget", model: Any, *, show_root: bool = True, **controller_options: Any) -> None:
        super().__init__(master)
        self._user_children_change: Optional[Callable[[Any, List[Any]], None]] = controller_options.pop(
            "on_children_change", None
        )
        self._user_item_deleted: Optional[Callable[[Any], None]] = controller_options.pop("on_item_deleted", None)
        self.show_root = bool(show_root)

        self._tree = ttk.Treeview(self, columns=("checkbox",), show="tree", selectmode="browse", height=12)
        self._tree.column("#0", stretch=True, minwidth=120)
        self._tree.column("checkbox", width=28, minwidth=28, stretch=False, anchor="center")
        self._tree.tag_configure("read-only", foreground="#808080")
        self._vsb = ttk.Scrollbar(self, orient="vertical", command=self._tree.yview)
        self._tree.configure(yscrollcommand=self._vsb.set)

        self._tree.grid(row=0, column=0, sticky="nsew")
        self._vsb.grid(row=0, column=1, sticky="ns")
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)

        # Internal mappings: tree item id -> node, plus rows whose children are loaded
        self._id_to_node: Dict[str, TreeNode] = {}
        # Reverse lookups: node -> tree item id, identity -> every row showing it
        self._node_to_id: Dict[int, str] = {}
        self._identity_to_ids: Dict[str, List[str]] = {}
        self._loaded: set = set()
        self._root_item: Any = None
        self._root_identity: Optional[str] = None

        self.controller = TreeController(
            model,
            on_children_change=self._on_children_change,
            on_item_deleted=self._on_item_deleted,
            **controller_options,
        )
        self.model = model

        self._tree.bind("<<TreeviewOpen>>", self._on_open_event, add="+")
        self._tree.bind("<Button-1>", self._on_single_click_event, add="+")
        self._tree.bind("<space>", self._on_space_event, add="+")

        model.get_root(self._on_root, self._on_load_error)

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------
    def _on_root(self, root: Any) -> None:
        if self.controller.destroyed:
            return
        self._root_item = root
        self._root_identity = self.model.get_identity(root)
        if self.show_root:
            item_id = self._insert_row(_ROOT_CONTAINER, root)
            self.expand(item_id)
        else:
            self._load_children(_ROOT_CONTAINER, root)

    def _on_load_error(self, exc: Exception) -> None:
        logger.error("Loading tree data failed: %s", exc)

    def _insert_row(self, parent_id: str, item: Any) -> str:
        node = self.controller.create_node(item)
        image = ""
        if node.icon and self.controller.get_icon_style(item).get("display") != "none":
            image = node.icon
        item_id = self._tree.insert(
            parent_id,
            "end",
            text=" ".join(node.label.split()),
            values=(self._glyph(node),),
            image=image,
            tags=self._tags(node),
        )
        self._id_to_node[item_id] = node
        self._node_to_id[id(node)] = item_id
        self._identity_to_ids.setdefault(node.identity, []).append(item_id)
        node.bind_renderer(self._render_node)
        if node.is_expandable:
            # Placeholder child so Tk draws the expando before children are loaded
            self._tree.insert(item_id, "end", iid=item_id + _PLACEHOLDER_SUFFIX, text="")
        return item_id

    def _load_children(self, item_id: str, item: Any) -> None:
        def _on_children(children: List[Any]) -> None:
            if self.controller.destroyed:
                return
            if item_id != _ROOT_CONTAINER and not self._tree.exists(item_id):
                return
            self._populate(item_id, children)

        self.model.get_children(item, _on_children, self._on_load_error)

    def _populate(self, item_id: str, children: List[Any]) -> None:
        for child_id in self._tree.get_children(item_id):
            self._remove_row(child_id)
        for child in children:
            self._insert_row(item_id, child)
        self._loaded.add(item_id)

    def _remove_row(self, item_id: str) -> None:
        for child_id in self._tree.get_children(item_id):
            self._remove_row(child_id)
        node = self._id_to_node.pop(item_id, None)
        if node is not None:
            self._node_to_id.pop(id(node), None)
            rows = self._identity_to_ids.get(node.identity)
            if rows is not None and item_id in rows:
                rows.remove(item_id)
                if not rows:
                    del self._identity_to_ids[node.identity]
            node.destroy()
        self._loaded.discard(item_id)
        if self._tree.exists(item_id):
            self._tree.delete(item_id)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    @staticmethod
    def _glyph(node: TreeNode) -> str:
        if not node.has_checkbox:
            return ""
        return GLYPHS.get(node.checkbox_state, GLYPHS[False])

    @staticmethod
    def _tags(node: TreeNode) -> tuple:
        tags = []
        if node.read_only:
            tags.append("read-only")
        if node.styling:
            tags.append(str(node.styling))
        return tuple(tags)

    def _item_id_for(self, node: TreeNode) -> Optional[str]:
        return self._node_to_id.get(id(node))

    def _render_node(self, node: TreeNode, prop: str, value: Any) -> None:
        item_id = self._item_id_for(node)
        if item_id is None or not self._tree.exists(item_id):
            return
        if prop == LABEL:
            self._tree.item(item_id, text=" ".join(str(value).split()))
        elif prop == CHECKBOX_STATE:
            self._tree.set(item_id, "checkbox", self._glyph(node))
        elif prop in (READ_ONLY, STYLING):
            self._tree.item(item_id, tags=self._tags(node))
        elif prop == ICON:
            try:
                self._tree.item(item_id, image=value or "")
            except tk.TclError:
                logger.debug("Ignoring unknown image %r for %s", value, node.identity)

    # ------------------------------------------------------------------
    # Controller callbacks
    # ------------------------------------------------------------------
    def _on_children_change(self, parent: Any, children: List[Any]) -> None:
        identity = self.model.get_identity(parent)
        targets = self.find_item_ids(identity)
        if not self.show_root and identity == self._root_identity:
            targets.append(_ROOT_CONTAINER)
        for item_id in targets:
            if item_id in self._loaded:
                self._populate(item_id, children)
            elif children and not self._tree.get_children(item_id):
                self._tree.insert(item_id, "end", iid=item_id + _PLACEHOLDER_SUFFIX, text="")
        if self._user_children_change is not None:
            self._user_children_change(parent, children)

    def _on_item_deleted(self, item: Any) -> None:
        for item_id in self.find_item_ids(self.model.get_identity(item)):
            self._remove_row(item_id)
        if self._user_item_deleted is not None:
            self._user_item_deleted(item)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_open_event(self, _event: tk.Event) -> None:
        item_id = self._tree.focus()
        if item_id and item_id not in self._loaded:
            self.expand(item_id)

    def _on_single_click_event(self, event: tk.Event) -> Optional[str]:
        item_id = self._tree.identify_row(event.y)
        node = self._id_to_node.get(item_id)
        if node is None:
            return None
        on_checkbox = self._tree.identify_column(event.x) == "#1"
        node.click(on_checkbox, event)
        return "break" if on_checkbox else None

    def _on_space_event(self, _event: tk.Event) -> str:
        self.controller.on_key_press(self._id_to_node.get(self._tree.focus()), "space")
        return "break"

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def find_item_ids(self, identity: str) -> List[str]:
        """Return the Treeview item ids of every row showing ``identity``."""
        return list(self._identity_to_ids.get(identity, ()))

    def node_for(self, item_id: str) -> Optional[TreeNode]:
        return self._id_to_node.get(item_id)

    def expand(self, item_id: str) -> None:
        """Open a row, loading its children on first use."""
        node = self._id_to_node.get(item_id)
        if node is None:
            return
        self._tree.item(item_id, open=True)
        if item_id not in self._loaded:
            self._load_children(item_id, node.item)

    def get_row(self, item_id: str) -> Dict[str, Any]:
        """Return what a row currently displays."""
        node = self._id_to_node.get(item_id)
        return {
            "text": self._tree.item(item_id, "text"),
            "checkbox": self._tree.set(item_id, "checkbox"),
            "open": bool(self._tree.item(item_id, "open")),
            "identity": node.identity if node is not None else None,
            "children": [c for c in self._tree.get_children(item_id) if c in self._id_to_node],
        }

    def top_level_ids(self) -> List[str]:
        return [c for c in self._tree.get_children(_ROOT_CONTAINER) if c in self._id_to_node]

    def clear(self) -> None:
        """Remove all rows and destroy their nodes."""
        for item_id in self._tree.get_children(_ROOT_CONTAINER):
            self._remove_row(item_id)
        self._id_to_node.clear()
        self._node_to_id.clear()
        self._identity_to_ids.clear()
        self._loaded.clear()

    def destroy(self) -> None:
        self.clear()
        self.controller.destroy()
        super().destroy()
