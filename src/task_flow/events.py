"""Change notification for stores."""

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"
ARCHIVED = "archived"
UNARCHIVED = "unarchived"


@dataclass(frozen=True)
class StoreEvent:
    """Sent to subscribers after a mutation has been written."""

    action: str
    record: Any


Listener = Callable[[StoreEvent], None]


class Observable:
    """Synchronous subscriber list with registration-order delivery."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, action: str, record: Any) -> None:
        event = StoreEvent(action, record)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, action)
