"""Session record model and builder for completed work phases."""

import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from ..errors import MalformedDataError
from ..utils.time import format_calendar_day, format_clock_time

RECORD_FIELDS = ("id", "date", "start_time", "duration_minutes", "category")


@dataclass(frozen=True)
class SessionRecord:
    """One completed work phase."""

    id: str
    date: str                                        # Local calendar day, YYYY-MM-DD
    start_time: str                                  # Local clock time, HH:MM
    duration_minutes: int
    category: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionRecord":
        if not isinstance(data, dict):
            raise MalformedDataError(
                "Session record must be a mapping",
                raw_data=repr(data),
                expected_format="dict"
            )

        missing = [name for name in RECORD_FIELDS if name not in data]
        if missing:
            raise MalformedDataError(
                f"Session record is missing fields: {', '.join(missing)}",
                raw_data=repr(data),
                expected_format=",".join(RECORD_FIELDS)
            )

        try:
            duration = int(data["duration_minutes"])
        except (TypeError, ValueError) as e:
            raise MalformedDataError(
                "duration_minutes must be an integer",
                raw_data=repr(data),
                expected_format="int"
            ) from e

        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            start_time=str(data["start_time"]),
            duration_minutes=duration,
            category=str(data["category"]),
        )


def _new_record_id() -> str:
    return uuid.uuid4().hex


def build_session_record(
    session_start_ms: Optional[int],
    now_ms: int,
    work_minutes: int,
    category: str,
    id_factory: Callable[[], str] = _new_record_id
) -> SessionRecord:
    """
    Build the history entry for a completed work phase.

    Args:
        session_start_ms: Wall-clock time the work phase was started, if known
        now_ms: Completion time
        work_minutes: Configured work duration
        category: Current category label
        id_factory: Record id generator

    Returns:
        SessionRecord whose start falls back to now minus the work duration
        when no start marker survived (e.g. after a restart)
    """
    start_ms = session_start_ms if session_start_ms is not None else now_ms - work_minutes * 60 * 1000

    return SessionRecord(
        id=id_factory(),
        date=format_calendar_day(start_ms),
        start_time=format_clock_time(start_ms),
        duration_minutes=work_minutes,
        category=category,
    )
