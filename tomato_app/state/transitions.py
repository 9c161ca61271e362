"""
Phase transition handlers for the Pomodoro cycle.

This module validates computed phase changes against the sequencing rules
and applies them to the timer state with audit logging.
"""

from typing import Optional

import structlog

from ..errors import StateTransitionError
from ..logging.config import get_state_logger, log_state_transition
from .machine import DEFAULT_LONG_BREAK_INTERVAL, compute_transition
from .models import Phase, PhaseTransition, TimerSettings, TimerState

logger = structlog.get_logger(__name__)
state_logger = get_state_logger(__name__)


class PhaseTransitionHandler:
    """Handles phase transitions with validation and logging."""

    def __init__(self, long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL):
        self.logger = logger
        self.long_break_interval = long_break_interval

    def _validate_transition(self, current_state: TimerState, transition: PhaseTransition) -> None:
        """Validate that a phase transition follows the cycle rules."""
        attempted = f"{transition.to_phase.value}@{transition.to_cycle}"

        if current_state.phase != transition.from_phase or current_state.cycle != transition.from_cycle:
            raise StateTransitionError(
                "Transition does not start from the current phase",
                current_state=f"{current_state.phase.value}@{current_state.cycle}",
                attempted_transition=attempted
            )

        if transition.from_phase == Phase.WORK:
            if not transition.to_phase.is_break:
                raise StateTransitionError(
                    "Work must be followed by a break",
                    current_state=transition.from_phase.value,
                    attempted_transition=attempted
                )
            if transition.to_cycle != transition.from_cycle:
                raise StateTransitionError(
                    "Cycle must not change when entering a break",
                    current_state=f"{transition.from_phase.value}@{transition.from_cycle}",
                    attempted_transition=attempted
                )
            expects_long = transition.from_cycle % self.long_break_interval == 0
            if expects_long != (transition.to_phase == Phase.LONG_BREAK):
                raise StateTransitionError(
                    "Break length does not match the cycle",
                    current_state=f"{transition.from_phase.value}@{transition.from_cycle}",
                    attempted_transition=attempted
                )
        else:
            if transition.to_phase != Phase.WORK:
                raise StateTransitionError(
                    "A break must be followed by work",
                    current_state=transition.from_phase.value,
                    attempted_transition=attempted
                )
            if transition.to_cycle != transition.from_cycle + 1:
                raise StateTransitionError(
                    "Cycle must grow by exactly one when entering work",
                    current_state=f"{transition.from_phase.value}@{transition.from_cycle}",
                    attempted_transition=attempted
                )

        if transition.time_remaining <= 0:
            raise StateTransitionError(
                "New phase must have a positive duration",
                current_state=current_state.phase.value,
                attempted_transition=attempted
            )

    def apply_transition(
        self,
        current_state: TimerState,
        transition: PhaseTransition,
        trigger: str
    ) -> TimerState:
        """
        Apply a phase transition to the current state.

        Args:
            current_state: State whose phase is being completed
            transition: Transition to apply
            trigger: What caused the completion, for the audit log

        Returns:
            New stopped state at the start of the next phase
        """
        try:
            self._validate_transition(current_state, transition)
        except StateTransitionError as e:
            self.logger.error(
                "Phase transition validation failed",
                current_phase=current_state.phase.value,
                cycle=current_state.cycle,
                attempted_transition=e.attempted_transition,
                error=str(e),
                trigger=trigger
            )
            raise

        new_state = current_state.with_phase(
            phase=transition.to_phase,
            cycle=transition.to_cycle,
            time_remaining=transition.time_remaining
        )

        log_state_transition(
            state_logger,
            from_phase=transition.from_phase.value,
            to_phase=transition.to_phase.value,
            trigger=trigger,
            cycle=transition.to_cycle,
            context={"time_remaining": transition.time_remaining}
        )

        return new_state

    def advance(
        self,
        current_state: TimerState,
        settings: TimerSettings,
        trigger: str,
        transition: Optional[PhaseTransition] = None
    ) -> TimerState:
        """Compute (unless given) and apply the transition out of the current phase."""
        if transition is None:
            transition = compute_transition(current_state, settings, self.long_break_interval)
        return self.apply_transition(current_state, transition, trigger)
