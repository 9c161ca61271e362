"""
System failure error classifications.

These exceptions represent failures of the timer's collaborators or of the
state machine itself. The core logs them and keeps running on its
best-known in-memory state.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class StateTransitionError(SystemFailureError):
    """Invalid phase transition that would corrupt the state machine."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class PersistenceError(SystemFailureError):
    """Key-value store read or write failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class DeliveryError(SystemFailureError):
    """Notification, sound or observer delivery failures."""

    def __init__(self, message: str, delivery_method: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.delivery_method = delivery_method


class SchedulerError(SystemFailureError):
    """Wake-up primitive could not be armed or disarmed."""

    def __init__(self, message: str, alarm_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.alarm_name = alarm_name
