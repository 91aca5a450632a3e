# -*- coding: utf-8 -*-
"""Tk demo front-end for checktree.

Two checkbox trees share one :class:`ForestStoreModel`; checking an item in
either tree updates both. Exposes the :class:`CheckTreeDemo` widget, which is
instantiated by ``run.py``.
"""

from __future__ import annotations

import importlib.resources as pkg_resources
import json
import logging
from typing import Any, Dict, List, Optional

import tkinter as tk
from tkinter import ttk

from checktree.config import ConfigManager
from checktree.core.models import ForestStoreModel
from checktree.core.store import ItemStore
from checktree.ui.widgets.checkbox_tree import CheckboxTreeWidget
from checktree.ui.widgets.tree_node import TreeNode

logger = logging.getLogger(__name__)

__all__ = ["CheckTreeDemo", "load_sample_data"]


def load_sample_data() -> Dict[str, Any]:
    """Return the packaged sample data in item-file layout."""
    text = pkg_resources.files("checktree.data").joinpath("sample.json").read_text(encoding="utf-8")
    return json.loads(text)


class CheckTreeDemo:
    """Main demo window: two trees over one model plus a few store actions."""

    def __init__(self, root: tk.Tk, data: Optional[Dict[str, Any]] = None) -> None:
        self.root = root
        self.tree_config = ConfigManager().get_tree_config()

        self.store = ItemStore(data if data is not None else load_sample_data(), schedule_ui=root.after)
        self.model = ForestStoreModel(
            self.store,
            query={"type": "group"},
            root_id=self.tree_config.get("root_id", "$root$"),
            root_label=self.tree_config.get("root_label", "ROOT"),
            checked_attr=self.tree_config.get("checked_attr", "checked"),
            multi_state=bool(self.tree_config.get("multi_state", True)),
            checkbox_all=bool(self.tree_config.get("checkbox_all", True)),
        )
        self._counter = 0

        self._status = tk.StringVar(value="Ready")
        self._build_ui()
        logger.info("Demo ready with %d item(s)", len(self.store.all_items()))

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        options = {
            "show_root": bool(self.tree_config.get("show_root", True)),
            "branch_read_only": bool(self.tree_config.get("branch_read_only", False)),
            "branch_icons": bool(self.tree_config.get("branch_icons", True)),
            "node_icons": bool(self.tree_config.get("node_icons", True)),
            "on_checkbox_click": self._on_checkbox_click,
        }

        panes = ttk.Frame(self.root, padding=8)
        panes.pack(fill="both", expand=True)
        panes.columnconfigure(0, weight=1)
        panes.columnconfigure(1, weight=1)
        panes.rowconfigure(1, weight=1)

        ttk.Label(panes, text="Tree A").grid(row=0, column=0, sticky="w")
        ttk.Label(panes, text="Tree B (no root row)").grid(row=0, column=1, sticky="w")

        self.tree_a = CheckboxTreeWidget(panes, self.model, **options)
        options["show_root"] = False
        self.tree_b = CheckboxTreeWidget(panes, self.model, **options)
        self.tree_a.grid(row=1, column=0, sticky="nsew", padx=(0, 4))
        self.tree_b.grid(row=1, column=1, sticky="nsew", padx=(4, 0))

        buttons = ttk.Frame(self.root, padding=(8, 0, 8, 8))
        buttons.pack(fill="x")
        ttk.Button(buttons, text="Add group", command=self.add_group).pack(side="left")
        ttk.Button(buttons, text="Remove last group", command=self.remove_last_group).pack(side="left", padx=4)
        ttk.Button(buttons, text="Show checked", command=self.show_checked).pack(side="left")
        ttk.Label(buttons, textvariable=self._status).pack(side="right")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _on_checkbox_click(self, item: Any, node: TreeNode, state: Any) -> None:
        self._status.set(f"{node.label}: {state}")

    def add_group(self) -> None:
        self._counter += 1
        group = self.model.new_item(
            {"name": f"New group {self._counter}", "type": "group", "children": []},
            parent=self.model.root,
        )
        self.model.new_item({"name": f"Entry {self._counter}"}, parent=group)
        logger.info("Added group %s", self.model.get_identity(group))

    def remove_last_group(self) -> None:
        children = self.model.root.children or []
        if not children:
            self._status.set("Nothing to remove")
            return
        last = children[-1]
        name = self.model.get_label(last)
        self.store.delete_item(last)
        self._status.set(f"Removed {name}")

    def checked_labels(self) -> List[str]:
        return [
            self.model.get_label(item)
            for item in self.store.all_items()
            if not self.model.may_have_children(item) and self.model.get_checked(item) is True
        ]

    def show_checked(self) -> None:
        labels = self.checked_labels()
        self._status.set(", ".join(labels) if labels else "Nothing checked")
