"""Standard output notification delivery."""

import json
import sys
from datetime import datetime, timezone
from typing import TextIO

from ..errors import DeliveryError
from .base import BaseNotificationDelivery, DeliveryResult, DeliveryStatus, PhaseNotification


class StdoutNotificationDelivery(BaseNotificationDelivery):
    """Prints phase-completion notifications to a text stream."""

    def __init__(self, name: str = "stdout", format: str = "pretty",
                 include_timestamp: bool = True, stream: TextIO = None):
        super().__init__(name)
        if format not in ("pretty", "json"):
            raise ValueError(f"Unsupported format: {format}")
        self.format = format
        self.include_timestamp = include_timestamp
        self.stream = stream

    def deliver(self, notification: PhaseNotification) -> DeliveryResult:
        stream = self.stream or sys.stdout
        try:
            print(self._format_notification(notification), file=stream, flush=True)
        except OSError as e:
            raise DeliveryError(f"Failed to print notification: {e}", delivery_method=self.name) from e

        self.logger.debug(
            "Notification printed",
            delivery_name=self.name,
            completed_phase=notification.completed_phase
        )
        return DeliveryResult(status=DeliveryStatus.SUCCESS, message="Printed notification")

    def _format_notification(self, notification: PhaseNotification) -> str:
        if self.format == "pretty":
            output = f"[{notification.title}] {notification.message}"
            if self.include_timestamp:
                output = f"[{datetime.now(timezone.utc).isoformat()}] " + output
            return output

        payload = notification.to_dict()
        if self.include_timestamp:
            payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(payload, ensure_ascii=False)

    def health_check(self) -> bool:
        try:
            return (self.stream or sys.stdout).writable()
        except Exception:
            return False
