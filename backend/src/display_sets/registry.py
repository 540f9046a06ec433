"""In-memory display set registry with collection-added notifications."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from .models import DisplaySet


logger = logging.getLogger(__name__)

CollectionCallback = Callable[[DisplaySet], None]


class Subscription:
    """Handle returned by :meth:`DisplaySetRegistry.on_collection_added`.

    The owner must call :meth:`dispose` (or use the handle as a context
    manager) once it no longer wants notifications.
    """

    def __init__(self, registry: "DisplaySetRegistry", callback: CollectionCallback) -> None:
        self._registry = registry
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def notify(self, display_set: DisplaySet) -> None:
        if self._active:
            self._callback(display_set)

    def dispose(self) -> None:
        if not self._active:
            return
        self._active = False
        self._registry._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *_exc) -> None:
        self.dispose()


class DisplaySetRegistry:
    """Ordered store of display sets.

    Subscribers are notified serially, in subscription order, once per added
    display set and on the caller's thread.
    """

    def __init__(self) -> None:
        self._display_sets: list[DisplaySet] = []
        self._subscriptions: list[Subscription] = []

    def current_collections(self) -> list[DisplaySet]:
        return list(self._display_sets)

    def get(self, display_set_uid: str) -> Optional[DisplaySet]:
        for display_set in self._display_sets:
            if display_set.display_set_uid == display_set_uid:
                return display_set
        return None

    def add(self, *display_sets: DisplaySet) -> None:
        self.add_all(display_sets)

    def add_all(self, display_sets: Iterable[DisplaySet]) -> None:
        for display_set in display_sets:
            self._display_sets.append(display_set)
            logger.debug("Display set added: %s", display_set.display_set_uid)
            # Subscribers may dispose themselves during delivery.
            for subscription in list(self._subscriptions):
                subscription.notify(display_set)

    def on_collection_added(self, callback: CollectionCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
