"""
Runtime timer service.

Owns the single timer state, drives the phase state machine from user
commands, alarm callbacks and the polling tick, persists after every
mutation, and reconciles a persisted deadline on startup.
"""

import threading
from datetime import date
from typing import Any, Optional

import structlog

from ..config.validation import ConfigValidator
from ..delivery.base import NotificationDispatcher
from ..delivery.observers import ObserverBroadcaster
from ..errors import SchedulerError, SettingsValidationError, StateTransitionError
from ..history.records import SessionRecord, build_session_record
from ..history.session_log import SessionHistory
from ..history.stats import HistorySummary, summarize_history
from ..persistence.timer_store import TimerStore
from ..scheduler.base import BaseWakeupScheduler
from ..utils.time import (
    Clock,
    compute_end_time,
    current_time_ms,
    ms_to_local_datetime,
    remaining_seconds,
)
from .machine import DEFAULT_LONG_BREAK_INTERVAL, get_phase_duration, reconcile_remaining
from .models import Phase, TimerSettings, TimerState
from .transitions import PhaseTransitionHandler

logger = structlog.get_logger(__name__)

DEFAULT_ALARM_NAME = "tomato-timer"
DEFAULT_CATEGORY = "general"

# Completion triggers that only act while the timer is still running
GUARDED_TRIGGERS = ("alarm", "tick", "recovery")


class TimerService:
    """
    Single owner of the timer state.

    Every mutating entry point takes the same re-entrant lock, so alarm
    threads, the polling tick and command callers are serialized.
    """

    def __init__(
        self,
        store: TimerStore,
        scheduler: BaseWakeupScheduler,
        history: SessionHistory,
        notifier: Optional[NotificationDispatcher] = None,
        broadcaster: Optional[ObserverBroadcaster] = None,
        settings: Optional[TimerSettings] = None,
        default_category: str = DEFAULT_CATEGORY,
        alarm_name: str = DEFAULT_ALARM_NAME,
        long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL,
        clock: Clock = current_time_ms
    ):
        self.logger = logger
        self.store = store
        self.scheduler = scheduler
        self.history = history
        self.notifier = notifier or NotificationDispatcher(long_break_interval=long_break_interval)
        self.broadcaster = broadcaster or ObserverBroadcaster()
        self.default_category = default_category
        self.alarm_name = alarm_name
        self.clock = clock
        self.transition_handler = PhaseTransitionHandler(long_break_interval)

        self.settings = settings or TimerSettings()
        self.state = TimerState.initial(self.settings)
        self.category = default_category
        self._session_start_ms: Optional[int] = None
        self._lock = threading.RLock()

        self.scheduler.set_callback(self.on_alarm)

    # Queries

    def get_state(self) -> TimerState:
        """Current state with remaining time reconciled against the deadline."""
        with self._lock:
            remaining = reconcile_remaining(self.state, self.clock())
            return self.state.with_time_remaining(remaining)

    def get_current_phase_duration(self) -> int:
        """Full length of the current phase in seconds, from the current settings."""
        with self._lock:
            return get_phase_duration(self.state.phase, self.settings)

    def get_settings(self) -> TimerSettings:
        with self._lock:
            return self.settings

    @property
    def session_start_ms(self) -> Optional[int]:
        return self._session_start_ms

    # Recovery

    def recover(self) -> TimerState:
        """
        Load persisted data and reconcile a running phase against its deadline.

        A deadline still in the future re-arms the alarm, since the host may
        have dropped it while the process was suspended. A deadline that has
        already passed completes the recorded phase exactly once; any further
        phases missed during a long suspension are not replayed.
        """
        with self._lock:
            self.settings = self.store.load_settings(self.settings)
            self.category = self.store.load_category(self.default_category)
            self.history.load()

            loaded = self.store.load_state()
            if loaded is None:
                self.state = TimerState.initial(self.settings)
                self.logger.info("No persisted timer state, starting fresh")
                self._commit()
                return self.state

            self.state = loaded

            if not (loaded.running and loaded.end_time is not None):
                self.logger.info(
                    "Recovered paused timer",
                    phase=loaded.phase.value,
                    cycle=loaded.cycle,
                    time_remaining=loaded.time_remaining
                )
                self._commit()
                return self.state

            now = self.clock()
            remaining = remaining_seconds(loaded.end_time, now)

            if remaining > 0:
                self.state = loaded.with_time_remaining(remaining)
                self._arm((loaded.end_time - now) / 1000)
                self.logger.info(
                    "Recovered running timer",
                    phase=loaded.phase.value,
                    cycle=loaded.cycle,
                    time_remaining=remaining
                )
                self._commit()
            else:
                self.logger.warning(
                    "Phase deadline passed while suspended",
                    phase=loaded.phase.value,
                    cycle=loaded.cycle,
                    overdue_ms=now - loaded.end_time
                )
                self._complete("recovery")

            return self.state

    # Commands

    def start(self) -> TimerState:
        """Run the current phase towards a fresh absolute deadline."""
        with self._lock:
            if self.state.running:
                self.logger.debug("Start ignored, timer already running")
                return self.state

            now = self.clock()
            remaining = self.state.time_remaining
            if remaining <= 0:
                remaining = get_phase_duration(self.state.phase, self.settings)

            self.state = self.state.with_running(
                end_time=compute_end_time(now, remaining),
                time_remaining=remaining
            )
            if self.state.phase == Phase.WORK and self._session_start_ms is None:
                self._session_start_ms = now

            self._arm(remaining)
            self.logger.info(
                "Timer started",
                phase=self.state.phase.value,
                cycle=self.state.cycle,
                time_remaining=remaining,
                end_time=self.state.end_time
            )
            self._commit()
            return self.state

    def pause(self) -> TimerState:
        """Stop the clock, freezing the last reconciled remaining time."""
        with self._lock:
            if not self.state.running:
                self.logger.debug("Pause ignored, timer not running")
                return self.state

            self.state = self.state.with_stopped()
            self._disarm()
            self.logger.info(
                "Timer paused",
                phase=self.state.phase.value,
                cycle=self.state.cycle,
                time_remaining=self.state.time_remaining
            )
            self._commit()
            return self.state

    def skip(self) -> TimerState:
        """Complete the current phase now, whatever time is left."""
        with self._lock:
            self._complete("skip")
            return self.state

    def reset(self) -> TimerState:
        """Back to a stopped, full work phase at cycle 1."""
        with self._lock:
            self._disarm()
            self._session_start_ms = None
            self.state = TimerState.initial(self.settings)
            self.logger.info("Timer reset", time_remaining=self.state.time_remaining)
            self._commit()
            return self.state

    def on_alarm(self, name: str) -> None:
        """Wake-up callback; a no-op if the timer was paused or already completed."""
        if name != self.alarm_name:
            self.logger.debug("Ignoring foreign alarm", alarm_name=name)
            return
        self.on_complete("alarm")

    def on_complete(self, trigger: str = "alarm") -> TimerState:
        """
        Complete the current phase.

        Alarm, tick and recovery completions only act while the timer is
        running, so a second delivery for the same deadline does nothing.
        """
        with self._lock:
            if trigger in GUARDED_TRIGGERS and not self.state.running:
                self.logger.debug("Completion ignored, timer not running", trigger=trigger)
                return self.state
            self._complete(trigger)
            return self.state

    def tick(self) -> TimerState:
        """Refresh remaining time from the deadline; completes the phase at zero."""
        with self._lock:
            if not self.state.running or self.state.end_time is None:
                return self.state

            remaining = remaining_seconds(self.state.end_time, self.clock())

            if remaining == 0:
                self._complete("tick")
            elif remaining != self.state.time_remaining:
                self.state = self.state.with_time_remaining(remaining)
                self._commit()

            return self.state

    def update_settings(self, updates: dict[str, Any]) -> TimerSettings:
        """
        Validate and apply new phase durations.

        The phase in progress keeps its length; new durations apply the next
        time a full phase duration is computed.
        """
        errors = ConfigValidator.validate_timer_settings(updates)
        if errors:
            raise SettingsValidationError(
                "; ".join(f"{err.field}: {err.message} (got: {err.value!r})" for err in errors),
                errors=errors
            )

        with self._lock:
            self.settings = self.settings.merged(updates)
            self.store.save_settings(self.settings)
            self.logger.info("Timer settings updated", **self.settings.to_dict())
            return self.settings

    def set_category(self, label: str) -> str:
        """Set the label stamped on future session records."""
        category = label.strip() if isinstance(label, str) else ""
        with self._lock:
            self.category = category or self.default_category
            self.store.save_category(self.category)
            self.logger.info("Session category set", category=self.category)
            return self.category

    # History

    def get_history(self) -> list[SessionRecord]:
        return self.history.records()

    def export_history(self, fmt: str = "json") -> str:
        return self.history.export(fmt)

    def clear_history(self) -> bool:
        with self._lock:
            return self.history.clear()

    def get_stats(self, today: Optional[date] = None) -> HistorySummary:
        if today is None:
            today = ms_to_local_datetime(self.clock()).date()
        return summarize_history(self.history.records(), today)

    # Internals

    def _complete(self, trigger: str) -> None:
        self._disarm()
        now = self.clock()
        completed = self.state
        self.state = completed.with_stopped()

        if completed.phase == Phase.WORK:
            record = build_session_record(
                session_start_ms=self._session_start_ms,
                now_ms=now,
                work_minutes=self.settings.work_minutes,
                category=self.category
            )
            self.history.append(record)
        self._session_start_ms = None

        self.notifier.notify_phase_complete(completed)

        try:
            self.state = self.transition_handler.advance(self.state, self.settings, trigger)
        except StateTransitionError as e:
            # Stay on the current phase with a full duration rather than halt
            self.logger.error(
                "Phase transition failed, keeping current phase",
                phase=completed.phase.value,
                cycle=completed.cycle,
                error=str(e)
            )
            self.state = self.state.with_time_remaining(
                get_phase_duration(self.state.phase, self.settings)
            )

        self._commit()

    def _commit(self) -> None:
        self.store.save_state(self.state)
        self.broadcaster.broadcast(self.state.to_dict())

    def _arm(self, delay_seconds: float) -> None:
        try:
            self.scheduler.arm(self.alarm_name, delay_seconds)
        except SchedulerError as e:
            # The polling tick still completes the phase
            self.logger.error("Failed to arm alarm", alarm_name=self.alarm_name, error=str(e))

    def _disarm(self) -> None:
        try:
            self.scheduler.disarm(self.alarm_name)
        except SchedulerError as e:
            self.logger.error("Failed to disarm alarm", alarm_name=self.alarm_name, error=str(e))
