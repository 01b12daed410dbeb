"""
Publish/subscribe signal shared by record controllers.

A bus carries no payload: it only says "the committed records changed",
and every subscriber reloads from the store on its own.  Buses are plain
objects handed to controllers, so separate buses never hear each other.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class SyncBus:
    """Synchronous, in-order notification of record changes."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register a callback.

        Args:
            callback: Called with no arguments on every notify()

        Returns:
            Function that removes this subscription; calling it again is a no-op
        """
        self._listeners.append(callback)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if subscribed:
                subscribed = False
                self._listeners.remove(callback)

        return unsubscribe

    def notify(self) -> None:
        """
        Call every subscriber in subscription order.

        Iterates over a snapshot, so subscribers may unsubscribe (themselves
        or others) while being notified.  A subscriber that raises is logged
        and does not prevent the rest from being called.
        """
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Record change subscriber %r failed", callback)
