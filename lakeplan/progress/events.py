"""
Change notifications for the progress store.

Readers subscribe to a ChangeBus owned by whoever builds the store, and
get a StoreChange after every successful write.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Optional


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreChange:
    """storage_key is the byte-store key written; record_key the record touched, if any."""
    storage_key: str
    record_key: Optional[str] = None


Listener = Callable[[StoreChange], None]


class ChangeBus:
    """Synchronous publish/subscribe channel."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, change: StoreChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                log.exception("Store change listener failed for %s", change.storage_key)
