"""
State machine data models for the Pomodoro phase cycle.

This module defines immutable data structures for the timer state,
the user-editable phase durations, and phase transition results.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from ..errors import MalformedDataError


class Phase(str, Enum):
    """Timer phases."""
    WORK = "work"
    SHORT_BREAK = "short-break"
    LONG_BREAK = "long-break"

    @property
    def is_break(self) -> bool:
        return self is not Phase.WORK


PHASE_DISPLAY_NAMES = {
    Phase.WORK: "Work time",
    Phase.SHORT_BREAK: "Short break",
    Phase.LONG_BREAK: "Long break",
}


@dataclass(frozen=True)
class TimerSettings:
    """Phase durations in minutes, persisted separately from the timer state."""

    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15

    def duration_minutes(self, phase: Phase) -> int:
        """Configured length of a phase in minutes."""
        if phase == Phase.SHORT_BREAK:
            return self.short_break_minutes
        if phase == Phase.LONG_BREAK:
            return self.long_break_minutes
        return self.work_minutes

    def duration_seconds(self, phase: Phase) -> int:
        """Configured length of a phase in seconds."""
        return self.duration_minutes(phase) * 60

    def merged(self, updates: dict[str, Any]) -> "TimerSettings":
        """New settings with the known keys from updates applied."""
        known = {k: v for k, v in updates.items() if k in self.__dataclass_fields__}
        return replace(self, **known)

    def to_dict(self) -> dict[str, int]:
        return {
            "work_minutes": self.work_minutes,
            "short_break_minutes": self.short_break_minutes,
            "long_break_minutes": self.long_break_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: Optional["TimerSettings"] = None) -> "TimerSettings":
        """Build settings from a stored dict; missing keys come from base."""
        if not isinstance(data, dict):
            raise MalformedDataError(
                "Timer settings payload must be a mapping",
                raw_data=repr(data),
                expected_format="dict"
            )
        return (base or cls()).merged(data)


@dataclass(frozen=True)
class TimerState:
    """Timer state, replaced on every mutation and persisted after each one."""

    running: bool = False
    phase: Phase = Phase.WORK
    cycle: int = 1
    time_remaining: int = 25 * 60                    # Authoritative only while paused
    end_time: Optional[int] = None                   # Epoch ms deadline, set only while running

    @classmethod
    def initial(cls, settings: TimerSettings) -> "TimerState":
        """Fresh state at cycle 1 with a full work phase."""
        return cls(
            running=False,
            phase=Phase.WORK,
            cycle=1,
            time_remaining=settings.duration_seconds(Phase.WORK),
            end_time=None
        )

    def with_running(self, end_time: int, time_remaining: int) -> "TimerState":
        """Mark the phase as running towards the given deadline."""
        return replace(self, running=True, end_time=end_time, time_remaining=time_remaining)

    def with_stopped(self, time_remaining: Optional[int] = None) -> "TimerState":
        """Stop the clock, optionally freezing a reconciled remaining time."""
        return replace(
            self,
            running=False,
            end_time=None,
            time_remaining=self.time_remaining if time_remaining is None else time_remaining
        )

    def with_time_remaining(self, time_remaining: int) -> "TimerState":
        return replace(self, time_remaining=time_remaining)

    def with_phase(self, phase: Phase, cycle: int, time_remaining: int) -> "TimerState":
        """Enter a new phase; the clock is left stopped."""
        return TimerState(
            running=False,
            phase=phase,
            cycle=cycle,
            time_remaining=time_remaining,
            end_time=None
        )

    def normalized(self) -> "TimerState":
        """Restore the running <=> end_time invariant on a loaded state."""
        if self.running and self.end_time is None:
            return replace(self, running=False)
        if not self.running and self.end_time is not None:
            return replace(self, end_time=None)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "phase": self.phase.value,
            "cycle": self.cycle,
            "time_remaining": self.time_remaining,
            "end_time": self.end_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimerState":
        """Parse a persisted state; raises MalformedDataError on bad payloads."""
        if not isinstance(data, dict):
            raise MalformedDataError(
                "Timer state payload must be a mapping",
                raw_data=repr(data),
                expected_format="dict"
            )

        try:
            phase = Phase(data.get("phase", Phase.WORK.value))
        except ValueError as e:
            raise MalformedDataError(
                f"Unknown phase: {data.get('phase')!r}",
                raw_data=repr(data),
                expected_format="work|short-break|long-break"
            ) from e

        cycle = data.get("cycle", 1)
        time_remaining = data.get("time_remaining", 0)
        end_time = data.get("end_time")

        for name, value in (("cycle", cycle), ("time_remaining", time_remaining)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise MalformedDataError(
                    f"Field {name} must be an integer",
                    raw_data=repr(data),
                    expected_format="int"
                )
        if end_time is not None and (isinstance(end_time, bool) or not isinstance(end_time, (int, float))):
            raise MalformedDataError(
                "Field end_time must be epoch milliseconds or null",
                raw_data=repr(data),
                expected_format="int|null"
            )

        return cls(
            running=bool(data.get("running", False)),
            phase=phase,
            cycle=max(1, cycle),
            time_remaining=max(0, time_remaining),
            end_time=int(end_time) if end_time is not None else None
        ).normalized()


@dataclass(frozen=True)
class PhaseTransition:
    """Represents a phase change computed by the state machine."""

    from_phase: Phase
    to_phase: Phase
    from_cycle: int
    to_cycle: int
    time_remaining: int                              # Full duration of the new phase
