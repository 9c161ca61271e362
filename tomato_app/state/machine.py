"""
Core Pomodoro phase state machine logic.

Pure functions: the phase sequencing rule, duration lookup and deadline
reconciliation. Nothing here touches storage, alarms or observers.
"""

from ..logging.config import get_state_logger
from ..utils.time import remaining_seconds
from .models import Phase, PhaseTransition, TimerSettings, TimerState

state_logger = get_state_logger(__name__)

DEFAULT_LONG_BREAK_INTERVAL = 4


def get_phase_duration(phase: Phase, settings: TimerSettings) -> int:
    """Full length of a phase in seconds, read from the current settings."""
    return settings.duration_seconds(phase)


def next_phase(phase: Phase, cycle: int,
               long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL) -> Phase:
    """
    Phase that follows the given one.

    Work ends in a long break on every cycle that is a multiple of the
    interval and in a short break otherwise; every break is followed by work.
    """
    if phase == Phase.WORK:
        if cycle % long_break_interval == 0:
            return Phase.LONG_BREAK
        return Phase.SHORT_BREAK
    return Phase.WORK


def compute_transition(
    state: TimerState,
    settings: TimerSettings,
    long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL
) -> PhaseTransition:
    """
    Compute the phase change for completing the current phase.

    The cycle counter grows by one on every break -> work edge, so it
    counts work phases entered since the last reset.

    Args:
        state: State whose current phase is being completed
        settings: Durations used for the new phase
        long_break_interval: Work phases per long break

    Returns:
        PhaseTransition describing the new phase, cycle and full duration
    """
    to_phase = next_phase(state.phase, state.cycle, long_break_interval)
    to_cycle = state.cycle + 1 if to_phase == Phase.WORK else state.cycle

    transition = PhaseTransition(
        from_phase=state.phase,
        to_phase=to_phase,
        from_cycle=state.cycle,
        to_cycle=to_cycle,
        time_remaining=get_phase_duration(to_phase, settings)
    )

    state_logger.debug(
        "Computed phase transition",
        from_phase=transition.from_phase.value,
        to_phase=transition.to_phase.value,
        from_cycle=transition.from_cycle,
        to_cycle=transition.to_cycle,
        time_remaining=transition.time_remaining
    )

    return transition


def reconcile_remaining(state: TimerState, now_ms: int) -> int:
    """
    True remaining seconds for a state at the given time.

    While running the deadline is authoritative; while paused the frozen
    counter is.
    """
    if state.running and state.end_time is not None:
        return remaining_seconds(state.end_time, now_ms)
    return state.time_remaining
