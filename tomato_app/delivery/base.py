"""Base classes for phase-completion side effects (notifications, sound cues)."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from ..state.machine import DEFAULT_LONG_BREAK_INTERVAL, next_phase
from ..state.models import PHASE_DISPLAY_NAMES, TimerState

NOTIFICATION_TITLE = "Tomato Clock"


class DeliveryStatus(Enum):
    """Side-effect delivery status."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class DeliveryResult:
    """Result of a delivery attempt."""
    status: DeliveryStatus
    message: Optional[str] = None
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class PhaseNotification:
    """What the user is told when a phase ends."""
    title: str
    message: str
    completed_phase: str
    next_phase: str
    cycle: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "completed_phase": self.completed_phase,
            "next_phase": self.next_phase,
            "cycle": self.cycle,
        }


def build_phase_notification(
    state: TimerState,
    long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL
) -> PhaseNotification:
    """Notification for completing the phase `state` is in (pre-transition state)."""
    upcoming = next_phase(state.phase, state.cycle, long_break_interval)
    current_name = PHASE_DISPLAY_NAMES[state.phase]
    next_name = PHASE_DISPLAY_NAMES[upcoming]

    return PhaseNotification(
        title=NOTIFICATION_TITLE,
        message=f"{current_name} is over! {next_name} starts now.",
        completed_phase=state.phase.value,
        next_phase=upcoming.value,
        cycle=state.cycle,
    )


class BaseNotificationDelivery(ABC):
    """Base class for notification and sound delivery mechanisms."""

    def __init__(self, name: str):
        self.name = name
        self.logger = structlog.get_logger(f"tomato.delivery.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def deliver(self, notification: PhaseNotification) -> DeliveryResult:
        """Deliver one notification."""

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the delivery mechanism is usable."""

    def deliver_safely(self, notification: PhaseNotification) -> DeliveryResult:
        """Deliver without ever raising; failures are logged and returned."""
        start_time = time.time()
        try:
            result = self.deliver(notification)
        except Exception as e:
            self._error_count += 1
            self.logger.error(
                "Notification delivery failed",
                delivery_name=self.name,
                error=str(e),
                error_type=type(e).__name__
            )
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=str(e),
                error=e
            )

        result.delivery_time_ms = int((time.time() - start_time) * 1000)
        if result.status == DeliveryStatus.SUCCESS:
            self._delivery_count += 1
        elif result.status == DeliveryStatus.FAILED:
            self._error_count += 1
        return result

    def get_stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
        }


class NotificationDispatcher:
    """Fans a phase-completion notification out to every configured delivery."""

    def __init__(
        self,
        deliveries: Optional[list[BaseNotificationDelivery]] = None,
        long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL
    ):
        self.deliveries = list(deliveries or [])
        self.long_break_interval = long_break_interval
        self.logger = structlog.get_logger(__name__)

    def notify_phase_complete(self, state: TimerState) -> list[DeliveryResult]:
        """Build and deliver the notification for the phase `state` is completing."""
        notification = build_phase_notification(state, self.long_break_interval)
        results = [delivery.deliver_safely(notification) for delivery in self.deliveries]

        self.logger.info(
            "Phase completion notified",
            completed_phase=notification.completed_phase,
            next_phase=notification.next_phase,
            deliveries=len(results),
            failures=sum(1 for r in results if r.status == DeliveryStatus.FAILED)
        )
        return results
