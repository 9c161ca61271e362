"""Wake-up primitive backed by threading.Timer."""

import threading

from .base import BaseWakeupScheduler


class ThreadingWakeupScheduler(BaseWakeupScheduler):
    """One daemon threading.Timer per alarm name."""

    def __init__(self) -> None:
        super().__init__()
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def arm(self, name: str, delay_seconds: float) -> None:
        delay = self._check_delay(name, delay_seconds)

        with self._lock:
            previous = self._timers.pop(name, None)
            if previous is not None:
                previous.cancel()

            timer = threading.Timer(delay, self._on_timer, args=(name,))
            timer.daemon = True
            self._timers[name] = timer
            timer.start()

        self.logger.debug("Armed alarm", alarm_name=name, delay_seconds=delay)

    def disarm(self, name: str) -> None:
        with self._lock:
            timer = self._timers.pop(name, None)

        if timer is not None:
            timer.cancel()
            self.logger.debug("Disarmed alarm", alarm_name=name)

    def is_armed(self, name: str) -> bool:
        with self._lock:
            return name in self._timers

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()

        for timer in timers:
            timer.cancel()

    def _on_timer(self, name: str) -> None:
        current = threading.current_thread()
        with self._lock:
            # A re-arm may have replaced this timer after it started running
            if self._timers.get(name) is not current:
                return
            del self._timers[name]

        self._fire(name)
