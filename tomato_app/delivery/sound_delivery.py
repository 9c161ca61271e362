"""Audible cue on phase completion."""

import sys
from typing import TextIO

from ..errors import DeliveryError
from .base import BaseNotificationDelivery, DeliveryResult, DeliveryStatus, PhaseNotification

BELL = "\a"


class BellSoundDelivery(BaseNotificationDelivery):
    """Rings the terminal bell; skipped when the stream is not a terminal."""

    def __init__(self, name: str = "bell", stream: TextIO = None, require_tty: bool = True):
        super().__init__(name)
        self.stream = stream
        self.require_tty = require_tty

    def deliver(self, notification: PhaseNotification) -> DeliveryResult:
        stream = self.stream or sys.stdout

        if self.require_tty and not stream.isatty():
            return DeliveryResult(status=DeliveryStatus.SKIPPED, message="Stream is not a terminal")

        try:
            stream.write(BELL)
            stream.flush()
        except OSError as e:
            raise DeliveryError(f"Failed to ring bell: {e}", delivery_method=self.name) from e
        return DeliveryResult(status=DeliveryStatus.SUCCESS, message="Bell rung")

    def health_check(self) -> bool:
        stream = self.stream or sys.stdout
        try:
            return stream.writable() and (stream.isatty() or not self.require_tty)
        except Exception:
            return False
