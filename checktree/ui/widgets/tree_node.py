from __future__ import annotations

"""Tree node: the presentation object bound to one store item.

A node exposes a small property surface (label, icon, checked, read-only,
tooltip, styling) that the controller updates through :meth:`TreeNode.set`.
It holds no toolkit objects; a view binds a render callback and redraws its
row whenever a property changes.

Two properties carry the checked state:

``checked``
    API path. ``node.set("checked", True)`` asks the model to change the
    state; the model then notifies every node bound to the item.
``checkbox_state``
    Store path. Delivered by the controller when the model reports a change;
    only the checkbox widget is updated, the model is not written again.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from checktree.core.checkbox import CheckBox, CheckboxWidget, CheckedState, WidgetSpec, next_toggle_state

if TYPE_CHECKING:
    from checktree.ui.controllers.tree_controller import TreeController

__all__ = [
    "TreeNode",
    "LABEL",
    "ICON",
    "CHECKED",
    "CHECKBOX_STATE",
    "READ_ONLY",
    "TOOLTIP",
    "STYLING",
]

logger = logging.getLogger(__name__)

LABEL = "label"
ICON = "icon"
CHECKED = "checked"
CHECKBOX_STATE = "checkbox_state"
READ_ONLY = "read_only"
TOOLTIP = "tooltip"
STYLING = "styling"

RenderCallback = Callable[["TreeNode", str, Any], None]


class TreeNode:
    """View node for one item of a checkbox tree.

    Parameters
    ----------
    tree : TreeController
        Owning controller; gives access to the model and tree options.
    item : object
        The bound store item.
    expandable : bool, optional
        Whether the node has or may have children; asked from the model
        when omitted.
    widget_spec : WidgetSpec, optional
        Custom checkbox widget, already validated by the controller.
    """

    def __init__(
        self,
        tree: "TreeController",
        item: Any,
        *,
        expandable: Optional[bool] = None,
        widget_spec: Optional[WidgetSpec] = None,
    ) -> None:
        self.tree = tree
        self.item = item
        self.identity: str = tree.model.get_identity(item)
        self.is_expandable = tree.model.may_have_children(item) if expandable is None else bool(expandable)
        self._widget_spec = widget_spec
        self._widget_cls = widget_spec.widget if widget_spec is not None else CheckBox
        self._toggle = widget_spec.supports_toggle if widget_spec is not None else True
        self._checkbox: Optional[CheckboxWidget] = None
        self._read_only = False
        self._renderer: Optional[RenderCallback] = None
        self.destroyed = False

        self.label: str = tree.model.get_label(item)
        self.icon: Any = None
        self.tooltip: Optional[str] = None
        self.styling: Any = None

        self._post_create()

    def _post_create(self) -> None:
        tree = self.tree
        if tree.checkbox_style != "none":
            self.create_checkbox(tree.multi_state)
        if tree.tree_styling and tree.icon_attr:
            self.icon = tree.model.get_item_attr(self.item, tree.icon_attr)

    def __repr__(self) -> str:
        return f"<TreeNode {self.identity!r} label={self.label!r}>"

    # ------------------------------------------------------------------
    # Checkbox
    # ------------------------------------------------------------------
    def create_checkbox(self, multi_state: bool) -> Optional[CheckboxWidget]:
        """Create the checkbox widget if the model gives the item a checked state."""
        checked = self.tree.model.get_checked(self.item)
        if checked is None:
            return None
        self._read_only = bool(self.is_expandable and self.tree.branch_read_only)
        args = {"multi_state": multi_state, "checked": checked, "value": self.label, "read_only": self._read_only}
        if self._widget_spec is not None:
            args.update(self._widget_spec.attrs)
        self._checkbox = self._widget_cls(**args)
        return self._checkbox

    @property
    def checkbox(self) -> Optional[CheckboxWidget]:
        return self._checkbox

    @property
    def has_checkbox(self) -> bool:
        return self._checkbox is not None

    @property
    def read_only(self) -> bool:
        # Kept on the node: custom widgets are not required to expose read_only
        return self._checkbox is not None and self._read_only

    @property
    def checkbox_state(self) -> Optional[CheckedState]:
        """State currently displayed by the checkbox widget."""
        return self._checkbox.get(CHECKED) if self._checkbox is not None else None

    def _flip_checkbox(self) -> CheckedState:
        if self._toggle:
            return self._checkbox.toggle()  # type: ignore[union-attr]
        new_state = next_toggle_state(self._checkbox.get(CHECKED))  # type: ignore[union-attr]
        self._checkbox.set(CHECKED, new_state)  # type: ignore[union-attr]
        return new_state

    def toggle_checkbox(self) -> Optional[CheckedState]:
        """Toggle the checkbox and update the model (keyboard activation).

        Returns the new state, or None when the node has no checkbox, the
        checkbox is read-only, or the model rejected the state.
        """
        if self._checkbox is None or self.read_only:
            return None
        new_state = self._flip_checkbox()
        if not self.tree.model.set_checked(self.item, new_state):
            self._set_checkbox_state(self.tree.model.get_checked(self.item))
            return None
        return new_state

    def click(self, on_checkbox: bool, event: Any = None) -> Optional[CheckedState]:
        """Handle a mouse click on the node.

        A click on the checkbox region flips the checkbox and reports the new
        state to the controller. Any other click is a plain node click
        (selection, expando) and is forwarded as such.
        """
        if on_checkbox and self._checkbox is not None:
            if self.read_only:
                return None
            new_state = self._flip_checkbox()
            self.tree.on_checkbox_activated(self.item, self, new_state, event)
            return new_state
        self.tree.on_click(self, event)
        return None

    # ------------------------------------------------------------------
    # Property surface
    # ------------------------------------------------------------------
    def get(self, prop: str) -> Any:
        if prop == CHECKED:
            return self.tree.model.get_checked(self.item) if self._checkbox is not None else None
        if prop == CHECKBOX_STATE:
            return self.checkbox_state
        if prop == READ_ONLY:
            return self.read_only
        return getattr(self, prop, None)

    def set(self, prop: str, value: Any) -> Any:
        """Update one presentation property.

        Known properties have a ``_set_<prop>`` hook; any other name is
        stored as a plain attribute and rendered.
        """
        if self.destroyed:
            return None
        setter = getattr(self, f"_set_{prop}", None)
        if setter is not None:
            return setter(value)
        setattr(self, prop, value)
        self._render(prop, value)
        return None

    def _set_checked(self, state: Any) -> bool:
        if self._checkbox is None:
            return False
        return self.tree.model.set_checked(self.item, state)

    def _set_checkbox_state(self, state: Any) -> None:
        if self._checkbox is None or state is None:
            return
        self._checkbox.set(CHECKED, state)
        self._render(CHECKBOX_STATE, self._checkbox.get(CHECKED))

    def _set_read_only(self, value: Any) -> None:
        if self._checkbox is None:
            return
        self._read_only = bool(value)
        self._checkbox.set(READ_ONLY, self._read_only)
        self._render(READ_ONLY, self._read_only)

    def _set_label(self, value: Any) -> None:
        self.label = "" if value is None else str(value)
        self._render(LABEL, self.label)

    def _set_icon(self, value: Any) -> None:
        self.icon = value
        self._render(ICON, value)

    def _set_tooltip(self, value: Any) -> None:
        self.tooltip = value
        self._render(TOOLTIP, value)

    def _set_styling(self, value: Any) -> None:
        self.styling = value
        self._render(STYLING, value)

    # ------------------------------------------------------------------
    # View binding
    # ------------------------------------------------------------------
    def bind_renderer(self, renderer: Optional[RenderCallback]) -> None:
        self._renderer = renderer

    def _render(self, prop: str, value: Any) -> None:
        if self._renderer is not None:
            self._renderer(self, prop, value)

    def destroy(self) -> None:
        """Destroy the checkbox and unbind the node from its controller."""
        if self.destroyed:
            return
        self.destroyed = True
        if self._checkbox is not None and callable(getattr(self._checkbox, "destroy", None)):
            self._checkbox.destroy()
        self._checkbox = None
        self._renderer = None
        self.tree.unregister_node(self)
