"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from .defaults import (
    LONG_BREAK_MINUTES_RANGE,
    SHORT_BREAK_MINUTES_RANGE,
    WORK_MINUTES_RANGE,
)

_DURATION_RANGES = {
    "work_minutes": WORK_MINUTES_RANGE,
    "short_break_minutes": SHORT_BREAK_MINUTES_RANGE,
    "long_break_minutes": LONG_BREAK_MINUTES_RANGE,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid duration
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_timer_settings(params: dict[str, Any]) -> list[ValidationError]:
        """Validate phase durations; only the keys present are checked."""
        errors = []

        for name, (low, high) in _DURATION_RANGES.items():
            if name not in params:
                continue
            value = params[name]
            if not _is_int(value) or not low <= value <= high:
                errors.append(ValidationError(
                    field=name,
                    message=f"Must be an integer between {low} and {high}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_timer_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate the timer section, including the cycle rule."""
        errors = ConfigValidator.validate_timer_settings(params)

        if "long_break_interval" in params:
            value = params["long_break_interval"]
            if not _is_int(value) or value < 1:
                errors.append(ValidationError(
                    field="long_break_interval",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_history_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate history parameters."""
        errors = []

        if "capacity" in params:
            value = params["capacity"]
            if not _is_int(value) or value < 1:
                errors.append(ValidationError(
                    field="capacity",
                    message="Must be a positive integer",
                    value=value
                ))

        if "default_category" in params:
            value = params["default_category"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="default_category",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_scheduler_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate scheduler parameters."""
        errors = []

        if "tick_interval_seconds" in params:
            value = params["tick_interval_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="tick_interval_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "alarm_name" in params:
            value = params["alarm_name"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="alarm_name",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate storage parameters."""
        errors = []

        if "backend" in params and params["backend"] not in ("file", "memory"):
            errors.append(ValidationError(
                field="backend",
                message="Must be 'file' or 'memory'",
                value=params["backend"]
            ))

        return errors

    @staticmethod
    def validate_notification_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate notification parameters."""
        errors = []

        if "format" in params and params["format"] not in ("pretty", "json"):
            errors.append(ValidationError(
                field="format",
                message="Must be 'pretty' or 'json'",
                value=params["format"]
            ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(_LOG_LEVELS)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        for section, value in config.items():
            if not isinstance(value, dict):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a mapping",
                    value=value
                ))
        if errors:
            return errors

        if "timer" in config:
            errors.extend(ConfigValidator.validate_timer_params(config["timer"]))

        if "history" in config:
            errors.extend(ConfigValidator.validate_history_params(config["history"]))

        if "scheduler" in config:
            errors.extend(ConfigValidator.validate_scheduler_params(config["scheduler"]))

        if "storage" in config:
            errors.extend(ConfigValidator.validate_storage_params(config["storage"]))

        if "notifications" in config:
            errors.extend(ConfigValidator.validate_notification_params(config["notifications"]))

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
