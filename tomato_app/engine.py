"""
Main timer engine coordinator.

Wires configuration, storage, the wake-up scheduler, notification
deliveries and observers around the timer service, runs startup
recovery, and drives the 1 Hz polling tick.
"""

import threading
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from .commands import CommandDispatcher
from .config.defaults import DefaultConfig, get_default_config
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .delivery.base import BaseNotificationDelivery, NotificationDispatcher
from .delivery.observers import ObserverBroadcaster, StateObserver
from .delivery.sound_delivery import BellSoundDelivery
from .delivery.stdout_delivery import StdoutNotificationDelivery
from .history.session_log import SessionHistory
from .logging import configure_logging
from .persistence.kv_store import (
    BaseKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StorageScope,
)
from .persistence.timer_store import TimerStore
from .scheduler.base import BaseWakeupScheduler
from .scheduler.threading_scheduler import ThreadingWakeupScheduler
from .state.models import TimerSettings, TimerState
from .state.runtime import TimerService
from .utils.time import Clock, current_time_ms

logger = structlog.get_logger(__name__)


class TomatoClockEngine:
    """
    Main coordinator for the timer core.

    Lifecycle:
    construct -> start() (recover + tick loop) -> handle_command()* -> shutdown()
    """

    def __init__(
        self,
        config_dir: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None,
        local_store: Optional[BaseKeyValueStore] = None,
        synced_store: Optional[BaseKeyValueStore] = None,
        scheduler: Optional[BaseWakeupScheduler] = None,
        deliveries: Optional[list[BaseNotificationDelivery]] = None,
        clock: Clock = current_time_ms,
        configure_logs: bool = False
    ) -> None:
        """Initialize the engine; nothing is loaded until start()."""
        self.logger = logger

        self.config_loader = ConfigLoader.create(config_dir)
        self.config = self._load_config(overrides)

        if configure_logs:
            configure_logging(
                level=self.config.logging.level,
                format_json=self.config.logging.format_json
            )

        local, synced = self._build_stores(local_store, synced_store)
        self.store = TimerStore(local=local, synced=synced)
        self.history = SessionHistory(self.store, capacity=self.config.history.capacity)
        self.scheduler = scheduler or ThreadingWakeupScheduler()
        self.broadcaster = ObserverBroadcaster()
        self.notifier = NotificationDispatcher(
            deliveries if deliveries is not None else self._build_deliveries(),
            long_break_interval=self.config.timer.long_break_interval
        )

        timer = self.config.timer
        self.service = TimerService(
            store=self.store,
            scheduler=self.scheduler,
            history=self.history,
            notifier=self.notifier,
            broadcaster=self.broadcaster,
            settings=TimerSettings(
                work_minutes=timer.work_minutes,
                short_break_minutes=timer.short_break_minutes,
                long_break_minutes=timer.long_break_minutes,
            ),
            default_category=self.config.history.default_category,
            alarm_name=self.config.scheduler.alarm_name,
            long_break_interval=timer.long_break_interval,
            clock=clock
        )
        self.dispatcher = CommandDispatcher(self.service)

        self._stop_event: Optional[threading.Event] = None
        self._tick_thread: Optional[threading.Thread] = None

        self.logger.info(
            "Timer engine initialized",
            storage_backend=self.config.storage.backend,
            alarm_name=self.config.scheduler.alarm_name,
            history_capacity=self.config.history.capacity
        )

    def start(self, run_tick_loop: bool = True) -> TimerState:
        """Recover persisted state and begin polling; returns the recovered state."""
        state = self.service.recover()
        if run_tick_loop:
            self._start_tick_loop()
        return state

    def shutdown(self) -> None:
        """Stop the tick loop and cancel pending alarms; persisted state is kept."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._tick_thread is not None and self._tick_thread.is_alive():
            self._tick_thread.join(timeout=2)
        self._tick_thread = None
        self._stop_event = None
        self.scheduler.shutdown()
        self.logger.info("Timer engine stopped")

    def handle_command(self, message: Any) -> dict[str, Any]:
        """Handle one presentation-layer message and return its result dict."""
        return self.dispatcher.handle(message).to_dict()

    def subscribe(self, observer: StateObserver) -> None:
        self.broadcaster.subscribe(observer)

    def unsubscribe(self, observer: StateObserver) -> None:
        self.broadcaster.unsubscribe(observer)

    @property
    def tick_running(self) -> bool:
        return self._tick_thread is not None and self._tick_thread.is_alive()

    def __enter__(self) -> "TomatoClockEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _start_tick_loop(self) -> None:
        if self.tick_running:
            return
        self._stop_event = threading.Event()
        self._tick_thread = threading.Thread(
            target=self._run_tick_loop,
            args=(self._stop_event,),
            name="tomato-tick",
            daemon=True
        )
        self._tick_thread.start()

    def _run_tick_loop(self, stop_event: threading.Event) -> None:
        interval = self.config.scheduler.tick_interval_seconds
        while not stop_event.wait(interval):
            try:
                self.service.tick()
            except Exception:
                self.logger.exception("Timer tick failed")

    def _load_config(self, overrides: Optional[dict[str, Any]]) -> DefaultConfig:
        try:
            merged = self.config_loader.merge_config(overrides)
        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.error("Failed to read configuration, using defaults", error=str(e))
            return get_default_config()

        validation_errors = ConfigValidator.validate_config(merged)
        if validation_errors:
            self.logger.error(
                "Configuration validation failed, using defaults",
                errors=[f"{err.field}: {err.message} (got: {err.value})" for err in validation_errors]
            )
            return get_default_config()

        return ConfigLoader.build_config(merged)

    def _build_stores(
        self,
        local_store: Optional[BaseKeyValueStore],
        synced_store: Optional[BaseKeyValueStore]
    ) -> tuple[BaseKeyValueStore, BaseKeyValueStore]:
        storage = self.config.storage

        if local_store is None:
            if storage.backend == "memory":
                local_store = InMemoryKeyValueStore(StorageScope.LOCAL)
            else:
                local_store = JsonFileKeyValueStore(
                    Path(storage.data_dir).expanduser() / storage.local_file,
                    scope=StorageScope.LOCAL
                )

        if synced_store is None:
            if storage.backend == "memory":
                synced_store = InMemoryKeyValueStore(StorageScope.SYNCED)
            else:
                synced_store = JsonFileKeyValueStore(
                    Path(storage.data_dir).expanduser() / storage.synced_file,
                    scope=StorageScope.SYNCED
                )

        return local_store, synced_store

    def _build_deliveries(self) -> list[BaseNotificationDelivery]:
        params = self.config.notifications
        deliveries: list[BaseNotificationDelivery] = []
        if params.enabled:
            deliveries.append(StdoutNotificationDelivery(format=params.format))
        if params.sound_enabled:
            deliveries.append(BellSoundDelivery())
        return deliveries
