"""
Error classification system for the timer core.

This module provides a structured exception hierarchy for bad data,
collaborator failures and command handling.
"""

from .data_quality import (
    DataQualityError,
    MissingDataError,
    MalformedDataError,
    SettingsValidationError,
)
from .system_failures import (
    SystemFailureError,
    StateTransitionError,
    PersistenceError,
    DeliveryError,
    SchedulerError,
)
from .commands import CommandError

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MissingDataError",
    "MalformedDataError",
    "SettingsValidationError",
    # System Failures
    "SystemFailureError",
    "StateTransitionError",
    "PersistenceError",
    "DeliveryError",
    "SchedulerError",
    # Command Handling
    "CommandError",
]
