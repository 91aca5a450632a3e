from __future__ import annotations

"""Checked states, the default checkbox widget and custom widget validation.

States
------
A checkbox is either dual-state (``True``/``False``) or tri-state
(``True``/``False``/``"mixed"``). The mode is chosen once per model through
its ``multi_state`` flag. ``"mixed"`` means some, but not all, descendants of
a branch are checked.

Widgets
-------
Tree nodes display their state through a checkbox widget. :class:`CheckBox`
is the default; any class satisfying :class:`CheckboxWidget` can replace it.
Conformance is verified once, when the widget is registered with the tree.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Union, runtime_checkable

from .exceptions import ConfigurationError

__all__ = [
    "MIXED",
    "CheckedState",
    "BranchStatePolicy",
    "is_valid_state",
    "next_toggle_state",
    "aggregate_checked_state",
    "CheckboxWidget",
    "CheckBox",
    "WidgetSpec",
    "validate_checkbox_widget",
]

MIXED = "mixed"

CheckedState = Union[bool, str]

# (child states, multi_state) -> branch state, or None to leave the branch alone
BranchStatePolicy = Callable[[Sequence[Optional[CheckedState]], bool], Optional[CheckedState]]


def is_valid_state(state: Any, multi_state: bool) -> bool:
    """Return True if ``state`` is a legal checked state for the given mode."""
    if state is True or state is False:
        return True
    return multi_state and state == MIXED


def next_toggle_state(state: Optional[CheckedState]) -> bool:
    """State reached by toggling ``state``: mixed -> True, True -> False, False -> True."""
    if state == MIXED:
        return True
    return not state


def aggregate_checked_state(
    states: Sequence[Optional[CheckedState]], multi_state: bool
) -> Optional[CheckedState]:
    """Default branch state derivation.

    Children without a checkbox (None) are ignored. All checked gives True,
    all unchecked gives False, anything else gives ``"mixed"`` in tri-state
    mode and False in dual-state mode. No states at all gives None.
    """
    present = [s for s in states if s is not None]
    if not present:
        return None
    if all(s is True for s in present):
        return True
    if all(s is False for s in present):
        return False
    return MIXED if multi_state else False


@runtime_checkable
class CheckboxWidget(Protocol):
    """Capabilities a checkbox widget must offer to a tree node.

    ``toggle()`` is optional; when missing the node emulates it.
    """

    checked: Any

    def get(self, name: str) -> Any: ...

    def set(self, name: str, value: Any) -> None: ...


class CheckBox:
    """Default checkbox widget: a small state holder the view renders.

    Keyword arguments mirror what a tree node passes on creation, so custom
    widgets can be constructed the same way.
    """

    checked: CheckedState = False

    def __init__(
        self,
        *,
        multi_state: bool = True,
        checked: CheckedState = False,
        value: str = "on",
        read_only: bool = False,
        **extra: Any,
    ) -> None:
        self.multi_state = bool(multi_state)
        self.value = value
        self.read_only = bool(read_only)
        self.extra: Dict[str, Any] = dict(extra)
        self.destroyed = False
        self.checked = self._normalize(checked)

    def _normalize(self, state: Any) -> CheckedState:
        if state == MIXED:
            return MIXED if self.multi_state else True
        return bool(state)

    def get(self, name: str) -> Any:
        return getattr(self, name)

    def set(self, name: str, value: Any) -> None:
        if name == "checked":
            self.checked = self._normalize(value)
        elif name == "read_only":
            self.read_only = bool(value)
        else:
            setattr(self, name, value)

    def toggle(self) -> CheckedState:
        """Flip the state unless read-only and return the resulting state."""
        if not self.read_only:
            self.checked = next_toggle_state(self.checked)
        return self.checked

    def destroy(self) -> None:
        self.destroyed = True


@dataclass
class WidgetSpec:
    """Custom checkbox widget registration.

    Attributes
    ----------
    widget
        Widget class, instantiated once per tree node with keyword arguments
        ``multi_state``, ``checked``, ``value`` and ``read_only``.
    attrs
        Extra keyword arguments passed to every instance.
    target
        Name of the view region that counts as the checkbox for mouse clicks.
    """

    widget: type
    attrs: Dict[str, Any] = field(default_factory=dict)
    target: str = "checkbox"

    @property
    def supports_toggle(self) -> bool:
        return callable(getattr(self.widget, "toggle", None))


def validate_checkbox_widget(spec: Union[WidgetSpec, type, None]) -> Optional[WidgetSpec]:
    """Validate a custom checkbox widget and return it as a :class:`WidgetSpec`.

    Accepts a :class:`WidgetSpec` or a bare widget class; None means "use the
    default widget" and is returned unchanged.

    Raises
    ------
    ConfigurationError
        If the widget is not a class, has no ``checked`` property, or does
        not provide callable ``get()`` and ``set()`` methods.
    """
    if spec is None:
        return None
    if isinstance(spec, type):
        spec = WidgetSpec(widget=spec)
    if not isinstance(spec, WidgetSpec):
        raise ConfigurationError("Object is missing required widget property", component="widget")

    widget = spec.widget
    if not isinstance(widget, type):
        raise ConfigurationError("Argument is not a valid widget class", component="widget")
    if not hasattr(widget, "checked"):
        raise ConfigurationError(
            f"Widget {widget.__name__} MUST have a 'checked' property", component="widget"
        )
    if not (callable(getattr(widget, "get", None)) and callable(getattr(widget, "set", None))):
        raise ConfigurationError(
            f"Widget {widget.__name__} does not support get() and/or set()", component="widget"
        )
    return spec
