"""
Command surface consumed by the presentation layer.

Messages are plain dicts with a `type` and optional payload keys. Every
command returns a CommandResult; nothing raised while handling a command
escapes `CommandDispatcher.handle`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from .errors import CommandError, DataQualityError, MissingDataError, SystemFailureError
from .state.runtime import TimerService
from .utils.time import format_remaining

logger = structlog.get_logger(__name__)


class CommandType(str, Enum):
    """Supported command types."""
    GET_STATE = "GetState"
    START = "Start"
    PAUSE = "Pause"
    SKIP = "Skip"
    RESET = "Reset"
    UPDATE_SETTINGS = "UpdateSettings"
    GET_SETTINGS = "GetSettings"
    GET_HISTORY = "GetHistory"
    EXPORT_HISTORY = "ExportHistory"
    CLEAR_HISTORY = "ClearHistory"
    SET_CATEGORY = "SetCategory"
    GET_STATS = "GetStats"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command."""
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "CommandResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "CommandResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


class CommandDispatcher:
    """Routes presentation-layer messages to the timer service."""

    def __init__(self, service: TimerService):
        self.service = service
        self.logger = logger
        self._handlers: dict[CommandType, Callable[[dict[str, Any]], Any]] = {
            CommandType.GET_STATE: self._get_state,
            CommandType.START: self._start,
            CommandType.PAUSE: lambda message: self._state_payload(self.service.pause()),
            CommandType.SKIP: lambda message: self._state_payload(self.service.skip()),
            CommandType.RESET: lambda message: self._state_payload(self.service.reset()),
            CommandType.UPDATE_SETTINGS: self._update_settings,
            CommandType.GET_SETTINGS: lambda message: self.service.get_settings().to_dict(),
            CommandType.GET_HISTORY: self._get_history,
            CommandType.EXPORT_HISTORY: self._export_history,
            CommandType.CLEAR_HISTORY: self._clear_history,
            CommandType.SET_CATEGORY: self._set_category,
            CommandType.GET_STATS: lambda message: self.service.get_stats().to_dict(),
        }

    def handle(self, message: Any) -> CommandResult:
        """Handle one message; always returns a result."""
        if not isinstance(message, dict):
            self.logger.warning("Rejected non-dict command", payload_type=type(message).__name__)
            return CommandResult.fail("Command must be a mapping with a 'type'")

        raw_type = message.get("type")
        try:
            command = CommandType(raw_type)
        except ValueError:
            self.logger.warning("Unknown command type", command_type=raw_type)
            return CommandResult.fail(f"Unknown command type: {raw_type!r}")

        try:
            data = self._handlers[command](message)
        except (CommandError, DataQualityError, ValueError) as e:
            self.logger.warning("Command rejected", command_type=command.value, error=str(e))
            return CommandResult.fail(str(e))
        except SystemFailureError as e:
            self.logger.error("Command failed", command_type=command.value, error=str(e))
            return CommandResult.fail(str(e))
        except Exception as e:
            self.logger.exception("Unexpected error handling command", command_type=command.value)
            return CommandResult.fail(f"Internal error: {e}")

        self.logger.debug("Command handled", command_type=command.value)
        return CommandResult.ok(data)

    def _state_payload(self, state) -> dict[str, Any]:
        payload = state.to_dict()
        payload["display_time"] = format_remaining(state.time_remaining)
        return payload

    def _get_state(self, message: dict[str, Any]) -> dict[str, Any]:
        return self._state_payload(self.service.get_state())

    def _start(self, message: dict[str, Any]) -> dict[str, Any]:
        settings = message.get("settings")
        if settings is not None:
            self.service.update_settings(self._require_mapping(settings, CommandType.START))
        return self._state_payload(self.service.start())

    def _update_settings(self, message: dict[str, Any]) -> dict[str, Any]:
        settings = self._require_mapping(message.get("settings"), CommandType.UPDATE_SETTINGS)
        return self.service.update_settings(settings).to_dict()

    def _get_history(self, message: dict[str, Any]) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.service.get_history()]

    def _export_history(self, message: dict[str, Any]) -> dict[str, Any]:
        fmt = message.get("format", "json")
        return {"format": fmt, "content": self.service.export_history(fmt)}

    def _clear_history(self, message: dict[str, Any]) -> dict[str, Any]:
        return {"persisted": self.service.clear_history()}

    def _set_category(self, message: dict[str, Any]) -> dict[str, Any]:
        if "label" not in message:
            raise MissingDataError("SetCategory requires a 'label'", data_type="label")
        label = message["label"]
        if not isinstance(label, str):
            raise CommandError("SetCategory requires a string 'label'", command_type=CommandType.SET_CATEGORY.value)
        return {"category": self.service.set_category(label)}

    @staticmethod
    def _require_mapping(value: Any, command: CommandType) -> dict[str, Any]:
        if value is None:
            raise MissingDataError(f"{command.value} requires 'settings'", data_type="settings")
        if not isinstance(value, dict):
            raise CommandError(f"{command.value} requires a 'settings' mapping", command_type=command.value)
        return value
