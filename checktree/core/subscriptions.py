from __future__ import annotations

"""Named subscriptions for store and model notifications.

Subscribers register under an id with one callback per event they care
about::

    store.subscribe("model-1", set=model._on_set_item, delete=model._on_delete_item)
    ...
    store.unsubscribe("model-1")

Notifications are delivered synchronously, in subscription order. A failing
callback is logged and does not prevent the remaining subscribers from being
notified.
"""

import logging
from typing import Any, Callable, Dict, Tuple

__all__ = ["SubscriptionMixin", "SubscriberCallback"]

logger = logging.getLogger(__name__)

SubscriberCallback = Callable[..., Any]


class SubscriptionMixin:
    """Adds ``subscribe``/``unsubscribe``/``_notify`` to a notifier class.

    Subclasses list the events they emit in ``EVENTS``.
    """

    EVENTS: Tuple[str, ...] = ()

    def _subscribers(self) -> Dict[str, Dict[str, SubscriberCallback]]:
        subs = self.__dict__.get("_subscriptions")
        if subs is None:
            subs = {event: {} for event in self.EVENTS}
            self.__dict__["_subscriptions"] = subs
        return subs

    def subscribe(self, subscriber_id: str, **callbacks: SubscriberCallback) -> None:
        """Register callbacks for ``subscriber_id``, replacing earlier ones.

        Raises
        ------
        ValueError
            If an event name is unknown to this notifier.
        """
        subs = self._subscribers()
        for event, callback in callbacks.items():
            if event not in subs:
                raise ValueError(f"Unknown event '{event}' for {type(self).__name__}")
            if callback is not None:
                subs[event][subscriber_id] = callback

    def unsubscribe(self, subscriber_id: str) -> None:
        for callbacks in self._subscribers().values():
            callbacks.pop(subscriber_id, None)

    def _notify(self, event: str, *args: Any) -> None:
        for subscriber_id, callback in list(self._subscribers()[event].items()):
            try:
                callback(*args)
            except Exception:
                logger.exception(
                    "Subscriber '%s' failed handling '%s' from %s",
                    subscriber_id, event, type(self).__name__,
                )
