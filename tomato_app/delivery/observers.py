"""Best-effort push of timer state to presentation-layer listeners."""

import threading
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

StateObserver = Callable[[dict[str, Any]], None]


class ObserverBroadcaster:
    """
    Pushes the full timer state to every subscribed observer.

    Delivery is not guaranteed: with no listener the update is dropped, and
    an observer that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self.logger = logger
        self._observers: list[StateObserver] = []
        self._lock = threading.Lock()

    def subscribe(self, observer: StateObserver) -> None:
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def unsubscribe(self, observer: StateObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def broadcast(self, state: dict[str, Any]) -> int:
        """Send the state to all observers; returns how many accepted it."""
        with self._lock:
            observers = list(self._observers)

        delivered = 0
        for observer in observers:
            try:
                observer(dict(state))
                delivered += 1
            except Exception as e:
                self.logger.warning(
                    "State observer failed",
                    observer=getattr(observer, "__qualname__", repr(observer)),
                    error=str(e)
                )
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)
