from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from checktree.core.checkbox import CheckedState, WidgetSpec, validate_checkbox_widget
from checktree.core.events import AttributeEventRouter, EventKey, InternalSignal
from checktree.core.exceptions import ConfigurationError
from checktree.core.identity_index import NodeIdentityIndex
from checktree.core.models import ForestStoreModel
from checktree.ui.widgets.tree_node import CHECKBOX_STATE, ICON, LABEL, STYLING, TreeNode

__all__ = ["TreeController", "STYLING_SIGNAL"]

logger = logging.getLogger(__name__)

STYLING_SIGNAL = InternalSignal("styling")


class TreeController:
    """Controller coordinating one checkbox tree with its model.

    The controller owns the event router and the identity index of a single
    tree. Model notifications are routed to node properties and fanned out
    to every node bound to the item; checkbox interaction on a node is turned
    into a model write, whose notification then reaches all nodes of that
    item, the clicked one included.

    Parameters
    ----------
    model : TreeStoreModel, optional
        The tree model. When omitted, a :class:`ForestStoreModel` is built
        from ``store`` and ``query``.
    store, query : optional
        Compatibility path for callers that hand over a store instead of a model.
    checkbox_style : str, optional
        ``"none"`` disables checkboxes altogether.
    branch_read_only : bool
        Branch checkboxes cannot be clicked; only leaves can.
    branch_icons, node_icons : bool
        Show icons for branches / leaves (see :meth:`get_icon_style`).
    icon_attr : str, optional
        Item attribute holding a custom icon (requires ``tree_styling``).
    tree_styling : bool
        Route the internal styling signal and ``icon_attr`` to nodes.
    widget : WidgetSpec or type, optional
        Custom checkbox widget; validated immediately.
    on_checkbox_click, on_click : callable, optional
        ``(item, node, state)`` and ``(item, node)`` user callbacks.
    on_children_change, on_item_deleted : callable, optional
        Structural callbacks used by the view that renders this tree.

    Raises
    ------
    ConfigurationError
        If checkboxes are requested and the model lacks ``get_checked()`` or
        ``set_checked()``, or the custom widget is not a valid checkbox widget.
    """

    def __init__(
        self,
        model: Any = None,
        *,
        store: Any = None,
        query: Optional[Dict[str, Any]] = None,
        checkbox_style: Optional[str] = None,
        branch_read_only: bool = False,
        branch_icons: bool = True,
        node_icons: bool = True,
        icon_attr: Optional[str] = None,
        tree_styling: bool = False,
        widget: Union[WidgetSpec, type, None] = None,
        on_checkbox_click: Optional[Callable[[Any, TreeNode, CheckedState], None]] = None,
        on_click: Optional[Callable[[Any, TreeNode], None]] = None,
        on_children_change: Optional[Callable[[Any, List[Any]], None]] = None,
        on_item_deleted: Optional[Callable[[Any], None]] = None,
        controller_id: Optional[str] = None,
    ) -> None:
        self.router = AttributeEventRouter()
        self.index = NodeIdentityIndex()

        self.checkbox_style = checkbox_style
        self.branch_read_only = bool(branch_read_only)
        self.branch_icons = bool(branch_icons)
        self.node_icons = bool(node_icons)
        self.icon_attr = icon_attr
        self.tree_styling = bool(tree_styling)
        self.multi_state: bool = True
        self.checked_attr: str = ""

        self._on_checkbox_click = on_checkbox_click
        self._on_click = on_click
        self._on_children_change = on_children_change
        self._on_item_deleted = on_item_deleted
        self._controller_id = controller_id or f"TreeController-{id(self):x}"
        self._custom_widget: Optional[WidgetSpec] = None
        self._destroyed = False

        if widget is not None:
            self.set_widget(widget)

        if model is None:
            model = self._store_to_model(store, query)
        self.model = model
        self._setup()

    # ---------------------------------------------------------------------------------
    # Setup
    # ---------------------------------------------------------------------------------

    def _store_to_model(self, store: Any, query: Optional[Dict[str, Any]]) -> ForestStoreModel:
        if store is None:
            raise ConfigurationError("Either a model or a store is required", component="TreeController")
        logger.warning("Passing a store instead of a model is deprecated; wrapping it in a ForestStoreModel")
        return ForestStoreModel(store, query=query, model_id=f"{self._controller_id}_ForestStoreModel")

    def _model_ok(self) -> bool:
        return callable(getattr(self.model, "get_checked", None)) and callable(getattr(self.model, "set_checked", None))

    def _setup(self) -> None:
        model = self.model
        if self.checkbox_style != "none":
            if not self._model_ok():
                raise ConfigurationError(
                    "Model does not support get_checked() and/or set_checked()", component="TreeController"
                )
            self.multi_state = bool(getattr(model, "multi_state", True))
            self.checked_attr = getattr(model, "checked_attr", "") or ""

            # Store driven checked changes only update the checkbox widget;
            # API driven ones go through the node's "checked" property.
            self.route(None, self.checked_attr or "checked", CHECKBOX_STATE)
            if self.tree_styling:
                self.route(None, STYLING_SIGNAL, STYLING)
                if self.icon_attr:
                    self.route(None, self.icon_attr, ICON)

        model.subscribe(
            self._controller_id,
            change=self.on_item_change,
            children_change=self._on_model_children_change,
            delete=self._on_model_delete,
            label_change=self._on_label_change,
        )
        self.route(None, model.get_label_attr() or "", LABEL)

        if self.checkbox_style != "none":
            model.validate_data()
        logger.debug("Tree controller %s ready (multi_state=%s, checked_attr=%s)",
                     self._controller_id, self.multi_state, self.checked_attr)

    def set_widget(self, widget: Union[WidgetSpec, type, None]) -> None:
        """Install a custom checkbox widget after validating it.

        None restores the default widget for nodes created afterwards.
        """
        self._custom_widget = validate_checkbox_widget(widget)
        if self._custom_widget is None:
            logger.info("Using the default checkbox widget")
        else:
            logger.info("Custom checkbox widget: %s", self._custom_widget.widget.__name__)

    @property
    def widget_spec(self) -> Optional[WidgetSpec]:
        return self._custom_widget

    def route(self, old_source: Union[EventKey, str, None], source: Union[EventKey, str, None],
              target: Optional[str]) -> bool:
        """Map a model attribute or internal signal to a node property."""
        return self.router.route(old_source, source, target)

    # ---------------------------------------------------------------------------------
    # Nodes
    # ---------------------------------------------------------------------------------

    def create_node(self, item: Any, expandable: Optional[bool] = None) -> TreeNode:
        node = TreeNode(self, item, expandable=expandable, widget_spec=self._custom_widget)
        self.register_node(node)
        return node

    def register_node(self, node: TreeNode) -> None:
        self.index.add(node.identity, node)

    def unregister_node(self, node: TreeNode) -> None:
        self.index.remove(node.identity, node)

    def nodes_for(self, item: Any) -> List[TreeNode]:
        return self.index.nodes_for(self.model.get_identity(item))

    # ---------------------------------------------------------------------------------
    # Model -> nodes
    # ---------------------------------------------------------------------------------

    def on_item_change(self, item: Any, key: Union[EventKey, str], value: Any) -> int:
        """Route a model change to the nodes of ``item``.

        Returns the number of nodes updated; unrouted keys update none.
        """
        if self._destroyed:
            return 0
        prop = self.router.resolve(key)
        if prop is None:
            return 0
        return self.broadcast(self.model.get_identity(item), prop, value)

    def broadcast(self, identity: str, prop: str, value: Any) -> int:
        return self.index.broadcast(identity, prop, value)

    def _on_model_children_change(self, parent: Any, children: List[Any]) -> None:
        if self._destroyed:
            return
        if self._on_children_change is not None:
            self._on_children_change(parent, children)

    def _on_model_delete(self, item: Any) -> None:
        if self._destroyed:
            return
        if self._on_item_deleted is not None:
            self._on_item_deleted(item)
        for node in self.index.discard_identity(self.model.get_identity(item)):
            node.destroy()

    def _on_label_change(self, old_attr: str, new_attr: str) -> None:
        self.route(old_attr, new_attr, LABEL)

    # ---------------------------------------------------------------------------------
    # Nodes -> model
    # ---------------------------------------------------------------------------------

    def on_checkbox_activated(self, item: Any, node: TreeNode, new_state: CheckedState, event: Any = None) -> bool:
        """Translate a checkbox click into a model update and user callbacks."""
        if self._destroyed:
            return False
        accepted = self.model.set_checked(item, new_state)
        if not accepted:
            node.set(CHECKBOX_STATE, self.model.get_checked(item))
        logger.debug("Checkbox %s -> %r (accepted=%s)", node.identity, new_state, accepted)
        if self._on_checkbox_click is not None:
            self._on_checkbox_click(item, node, new_state)
        if self._on_click is not None:
            self._on_click(item, node)
        return accepted

    def on_click(self, node: TreeNode, event: Any = None) -> None:
        if self._on_click is not None and not self._destroyed:
            self._on_click(node.item, node)

    def on_key_press(self, node: Optional[TreeNode], key: str, alt: bool = False) -> Optional[CheckedState]:
        """Space toggles the checkbox of the focused node."""
        if node is None or alt or key not in (" ", "space"):
            return None
        return node.toggle_checkbox()

    def get_icon_style(self, item: Any, opened: bool = False) -> Dict[str, str]:
        style: Dict[str, str] = {}
        if self.model.may_have_children(item):
            if not self.branch_icons:
                style["display"] = "none"
        elif not self.node_icons:
            style["display"] = "none"
        return style

    # ---------------------------------------------------------------------------------
    # Teardown
    # ---------------------------------------------------------------------------------

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Detach from the model and destroy every node."""
        if self._destroyed:
            return
        self._destroyed = True
        self.model.unsubscribe(self._controller_id)
        for identity in self.index.identities():
            for node in self.index.discard_identity(identity):
                node.destroy()
        self.router.clear()
        logger.debug("Tree controller %s destroyed", self._controller_id)
