"""Base classes for the wake-up (alarm) primitive."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from ..errors import SchedulerError

logger = structlog.get_logger(__name__)

WakeupCallback = Callable[[str], None]


class BaseWakeupScheduler(ABC):
    """
    Named one-shot alarms.

    Contract: the callback for an armed alarm runs no earlier than the
    requested delay and at most once per arm() call. Arming a name that is
    already armed replaces the previous alarm. Delivery is not guaranteed
    if the process is suspended, so owners must reconcile on restart.
    """

    def __init__(self) -> None:
        self.logger = logger
        self._callback: Optional[WakeupCallback] = None

    def set_callback(self, callback: WakeupCallback) -> None:
        """Register the function invoked with the alarm name when it fires."""
        self._callback = callback

    @abstractmethod
    def arm(self, name: str, delay_seconds: float) -> None:
        """Arm (or re-arm) the named alarm."""

    @abstractmethod
    def disarm(self, name: str) -> None:
        """Cancel the named alarm; disarming an unknown name is a no-op."""

    @abstractmethod
    def is_armed(self, name: str) -> bool:
        """True while the named alarm is pending."""

    def shutdown(self) -> None:
        """Release any resources held by pending alarms."""

    def _fire(self, name: str) -> None:
        if self._callback is None:
            self.logger.warning("Alarm fired with no callback registered", alarm_name=name)
            return

        try:
            self._callback(name)
        except Exception as e:
            self.logger.exception("Alarm callback failed", alarm_name=name, error=str(e))

    @staticmethod
    def _check_delay(name: str, delay_seconds: float) -> float:
        if delay_seconds < 0:
            raise SchedulerError(
                f"Alarm delay must not be negative: {delay_seconds}",
                alarm_name=name
            )
        return float(delay_seconds)
