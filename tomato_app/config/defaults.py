"""Default configuration parameters for the Tomato Clock timer core."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimerParams:
    """Phase durations and cycle rules."""
    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    long_break_interval: int = 4                     # Every Nth work phase ends in a long break


@dataclass(frozen=True)
class StorageParams:
    """Key-value store locations."""
    backend: str = "file"                            # file, memory
    data_dir: str = "~/.tomato_clock"
    local_file: str = "local.json"
    synced_file: str = "synced.json"


@dataclass(frozen=True)
class HistoryParams:
    """Session history parameters."""
    capacity: int = 1000
    default_category: str = "general"


@dataclass(frozen=True)
class SchedulerParams:
    """Wake-up and polling parameters."""
    alarm_name: str = "tomato-timer"
    tick_interval_seconds: float = 1.0


@dataclass(frozen=True)
class NotificationParams:
    """Desktop notification and sound cue parameters."""
    enabled: bool = True
    format: str = "pretty"                           # pretty, json
    sound_enabled: bool = True


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    timer: TimerParams
    storage: StorageParams
    history: HistoryParams
    scheduler: SchedulerParams
    notifications: NotificationParams
    logging: LoggingParams


# Storage keys
TIMER_STATE_KEY = "timer_state"
TIMER_SETTINGS_KEY = "timer_settings"
SESSION_HISTORY_KEY = "session_history"
CURRENT_CATEGORY_KEY = "current_category"

# Accepted ranges for user-editable durations, in minutes
WORK_MINUTES_RANGE = (1, 60)
SHORT_BREAK_MINUTES_RANGE = (1, 30)
LONG_BREAK_MINUTES_RANGE = (1, 60)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        timer=TimerParams(),
        storage=StorageParams(),
        history=HistoryParams(),
        scheduler=SchedulerParams(),
        notifications=NotificationParams(),
        logging=LoggingParams(),
    )
