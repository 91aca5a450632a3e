"""Routing of model events to tree node presentation properties.

The model reports changes as ``(item, key, value)``. The key is either the name
of a real store attribute (``"name"``, ``"checked"``...) or an internally
synthesized signal (``styling``) that has no store attribute behind it. The
:class:`AttributeEventRouter` maps such keys to the tree node property that
must be updated; a key without a mapping has no impact on the presentation.

Keys are a closed union of :class:`StoreAttribute` and :class:`InternalSignal`,
so an internal signal can never be confused with a store attribute that
happens to carry the same name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple, Union

__all__ = [
    "StoreAttribute",
    "InternalSignal",
    "EventKey",
    "as_event_key",
    "AttributeEventRouter",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreAttribute:
    """A real attribute of a store item."""

    name: str


@dataclass(frozen=True)
class InternalSignal:
    """An event synthesized by the tree or model, not backed by an attribute."""

    name: str


EventKey = Union[StoreAttribute, InternalSignal]


def as_event_key(source: object) -> Optional[EventKey]:
    """Normalize ``source`` to an event key.

    Plain strings are read as store attribute names. Anything else that is not
    already an event key yields None.
    """
    if isinstance(source, (StoreAttribute, InternalSignal)):
        return source
    if isinstance(source, str):
        return StoreAttribute(source)
    return None


class AttributeEventRouter:
    """Mutable mapping from event key to tree node property name.

    At most one entry exists per key; routing an existing key again replaces
    its target. Attribute names are configurable on the model (label
    attribute, checked attribute) and may change at runtime, so :meth:`route`
    accepts the previous key to drop in the same call.
    """

    def __init__(self) -> None:
        self._routes: Dict[EventKey, str] = {}

    def route(
        self,
        old_source: Union[EventKey, str, None],
        source: Union[EventKey, str, None],
        target: Optional[str],
    ) -> bool:
        """Install ``source -> target``, removing ``old_source`` first.

        Empty or missing ``source``/``target`` values are ignored: callers pass
        optional model settings straight through. Returns True when an entry
        was installed.
        """
        key = as_event_key(source)
        if key is None or not key.name or not isinstance(target, str) or not target:
            logger.debug("Ignoring route %r -> %r", source, target)
            return False
        if old_source:
            old_key = as_event_key(old_source)
            if old_key is not None:
                self._routes.pop(old_key, None)
        self._routes[key] = target
        return True

    def unroute(self, source: Union[EventKey, str]) -> bool:
        key = as_event_key(source)
        if key is None:
            return False
        return self._routes.pop(key, None) is not None

    def resolve(self, source: Union[EventKey, str, None]) -> Optional[str]:
        """Return the node property mapped to ``source``, or None."""
        key = as_event_key(source)
        if key is None:
            return None
        return self._routes.get(key)

    def clear(self) -> None:
        self._routes.clear()

    def items(self) -> Iterator[Tuple[EventKey, str]]:
        return iter(list(self._routes.items()))

    def __contains__(self, source: object) -> bool:
        key = as_event_key(source)
        return key is not None and key in self._routes

    def __len__(self) -> int:
        return len(self._routes)
