"""Tests for timer state data models."""

import pytest
from dataclasses import FrozenInstanceError

from tomato_app.errors import MalformedDataError
from tomato_app.state.models import (
    PHASE_DISPLAY_NAMES, Phase, PhaseTransition, TimerSettings, TimerState
)


class TestPhase:
    """Test Phase enum."""

    def test_wire_values(self):
        """Test phase values used in persisted state."""
        assert Phase.WORK.value == "work"
        assert Phase.SHORT_BREAK.value == "short-break"
        assert Phase.LONG_BREAK.value == "long-break"

    def test_is_break(self):
        assert Phase.WORK.is_break is False
        assert Phase.SHORT_BREAK.is_break is True
        assert Phase.LONG_BREAK.is_break is True

    def test_every_phase_has_display_name(self):
        assert set(PHASE_DISPLAY_NAMES) == set(Phase)


class TestTimerSettings:
    """Test TimerSettings dataclass."""

    def test_defaults(self):
        settings = TimerSettings()

        assert settings.work_minutes == 25
        assert settings.short_break_minutes == 5
        assert settings.long_break_minutes == 15

    def test_duration_lookup(self):
        """Test per-phase durations in minutes and seconds."""
        settings = TimerSettings(work_minutes=50, short_break_minutes=10, long_break_minutes=30)

        assert settings.duration_minutes(Phase.WORK) == 50
        assert settings.duration_seconds(Phase.SHORT_BREAK) == 600
        assert settings.duration_seconds(Phase.LONG_BREAK) == 1800

    def test_merged_ignores_unknown_keys(self):
        settings = TimerSettings().merged({"work_minutes": 30, "theme": "dark"})

        assert settings.work_minutes == 30
        assert settings.short_break_minutes == 5
        assert not hasattr(settings, "theme")

    def test_from_dict_fills_missing_from_base(self):
        base = TimerSettings(work_minutes=40, short_break_minutes=8, long_break_minutes=20)

        settings = TimerSettings.from_dict({"short_break_minutes": 3}, base=base)

        assert settings == TimerSettings(work_minutes=40, short_break_minutes=3, long_break_minutes=20)

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(MalformedDataError):
            TimerSettings.from_dict(["work_minutes", 25])

    def test_immutable(self):
        settings = TimerSettings()
        with pytest.raises(FrozenInstanceError):
            settings.work_minutes = 10


class TestTimerState:
    """Test TimerState dataclass."""

    def test_initial_state(self):
        """Test fresh state uses the configured work duration."""
        state = TimerState.initial(TimerSettings(work_minutes=30))

        assert state.running is False
        assert state.phase == Phase.WORK
        assert state.cycle == 1
        assert state.time_remaining == 1800
        assert state.end_time is None

    def test_with_running_sets_deadline(self):
        state = TimerState().with_running(end_time=1_000_000, time_remaining=1500)

        assert state.running is True
        assert state.end_time == 1_000_000

    def test_with_stopped_clears_deadline(self):
        """Test stopping keeps the frozen remaining time unless told otherwise."""
        running = TimerState().with_running(end_time=1_000_000, time_remaining=1200)

        stopped = running.with_stopped()
        assert stopped.running is False
        assert stopped.end_time is None
        assert stopped.time_remaining == 1200

        assert running.with_stopped(time_remaining=900).time_remaining == 900

    def test_with_phase_leaves_clock_stopped(self):
        running = TimerState().with_running(end_time=1_000_000, time_remaining=10)

        state = running.with_phase(Phase.SHORT_BREAK, cycle=1, time_remaining=300)

        assert state == TimerState(running=False, phase=Phase.SHORT_BREAK, cycle=1,
                                   time_remaining=300, end_time=None)

    def test_normalized_restores_running_invariant(self):
        assert TimerState(running=True, end_time=None).normalized().running is False
        assert TimerState(running=False, end_time=123).normalized().end_time is None

    def test_to_dict(self):
        state = TimerState(running=True, phase=Phase.LONG_BREAK, cycle=4,
                           time_remaining=900, end_time=1_700_000_000_000)

        assert state.to_dict() == {
            "running": True,
            "phase": "long-break",
            "cycle": 4,
            "time_remaining": 900,
            "end_time": 1_700_000_000_000,
        }

    def test_from_dict_round_trip(self):
        state = TimerState(running=True, phase=Phase.SHORT_BREAK, cycle=3,
                           time_remaining=120, end_time=1_700_000_000_000)

        assert TimerState.from_dict(state.to_dict()) == state

    def test_from_dict_clamps_and_normalizes(self):
        """Test that out-of-range values are clamped on load."""
        state = TimerState.from_dict({
            "running": True,
            "phase": "work",
            "cycle": 0,
            "time_remaining": -5,
            "end_time": None,
        })

        assert state.cycle == 1
        assert state.time_remaining == 0
        assert state.running is False

    @pytest.mark.parametrize("payload", [
        "not a dict",
        {"phase": "lunch"},
        {"phase": "work", "cycle": "two"},
        {"phase": "work", "time_remaining": 1.5},
        {"phase": "work", "end_time": "soon"},
    ])
    def test_from_dict_rejects_malformed(self, payload):
        with pytest.raises(MalformedDataError):
            TimerState.from_dict(payload)


class TestPhaseTransition:
    """Test PhaseTransition dataclass."""

    def test_creation(self):
        transition = PhaseTransition(
            from_phase=Phase.WORK,
            to_phase=Phase.SHORT_BREAK,
            from_cycle=1,
            to_cycle=1,
            time_remaining=300
        )

        assert transition.to_phase == Phase.SHORT_BREAK
        assert transition.time_remaining == 300
