"""Timer persistence layer over the local and synced key-value scopes."""

from typing import Any, Optional

from ..config.defaults import (
    CURRENT_CATEGORY_KEY,
    SESSION_HISTORY_KEY,
    TIMER_SETTINGS_KEY,
    TIMER_STATE_KEY,
)
from ..config.validation import ConfigValidator
from ..errors import MalformedDataError, PersistenceError
from ..logging.config import get_storage_logger
from ..state.models import TimerSettings, TimerState
from .kv_store import BaseKeyValueStore

_MISSING = object()


class TimerStore:
    """
    Reads and writes everything the timer core persists.

    Timer state lives in the local scope only. Settings, session history and
    the current category prefer the synced scope and fall back to the local
    scope when a synced read or write fails. No method raises: failures are
    logged and reported through the return value, and the caller keeps its
    in-memory copy.
    """

    def __init__(self, local: BaseKeyValueStore, synced: Optional[BaseKeyValueStore] = None):
        self.local = local
        self.synced = synced or local
        self.logger = get_storage_logger(__name__)

    # Timer state

    def load_state(self) -> Optional[TimerState]:
        """Load the persisted timer state, or None if absent or unreadable."""
        try:
            raw = self.local.get(TIMER_STATE_KEY)
        except PersistenceError as e:
            self.logger.error("Failed to load timer state", error=str(e), target=e.target)
            return None

        if raw is None:
            return None

        try:
            return TimerState.from_dict(raw)
        except MalformedDataError as e:
            self.logger.error(
                "Discarding malformed timer state",
                error=str(e),
                expected_format=e.expected_format
            )
            return None

    def save_state(self, state: TimerState) -> bool:
        """Persist the timer state; returns False when the write failed."""
        try:
            self.local.set(TIMER_STATE_KEY, state.to_dict())
        except PersistenceError as e:
            self.logger.error(
                "Failed to save timer state",
                error=str(e),
                phase=state.phase.value,
                running=state.running
            )
            return False

        self.logger.debug(
            "Saved timer state",
            phase=state.phase.value,
            cycle=state.cycle,
            running=state.running,
            time_remaining=state.time_remaining
        )
        return True

    # Settings

    def load_settings(self, default: TimerSettings) -> TimerSettings:
        raw = self._read_with_fallback(TIMER_SETTINGS_KEY)
        if raw is None:
            return default

        if isinstance(raw, dict):
            errors = ConfigValidator.validate_timer_settings(raw)
            if errors:
                self.logger.error(
                    "Discarding out-of-range timer settings",
                    fields=[error.field for error in errors]
                )
                return default

        try:
            return TimerSettings.from_dict(raw, base=default)
        except MalformedDataError as e:
            self.logger.error("Discarding malformed timer settings", error=str(e))
            return default

    def save_settings(self, settings: TimerSettings) -> bool:
        return self._write_with_fallback(TIMER_SETTINGS_KEY, settings.to_dict())

    # Session history

    def load_history(self) -> list[dict[str, Any]]:
        raw = self._read_with_fallback(SESSION_HISTORY_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            self.logger.error("Discarding malformed session history", payload_type=type(raw).__name__)
            return []
        return raw

    def save_history(self, records: list[dict[str, Any]]) -> bool:
        return self._write_with_fallback(SESSION_HISTORY_KEY, records)

    def clear_history(self) -> bool:
        return self._remove_everywhere(SESSION_HISTORY_KEY)

    # Category

    def load_category(self, default: str) -> str:
        raw = self._read_with_fallback(CURRENT_CATEGORY_KEY)
        if not isinstance(raw, str) or not raw.strip():
            return default
        return raw

    def save_category(self, category: str) -> bool:
        return self._write_with_fallback(CURRENT_CATEGORY_KEY, category)

    # Scope fallback helpers

    def _read_with_fallback(self, key: str) -> Optional[Any]:
        """Read from the synced scope, then the local scope."""
        value = self._safe_get(self.synced, key)
        if value is not _MISSING and value is not None:
            return value

        if self.synced is self.local:
            return None

        value = self._safe_get(self.local, key)
        if value is _MISSING:
            return None
        return value

    def _write_with_fallback(self, key: str, value: Any) -> bool:
        """Write to the synced scope, falling back to the local scope."""
        try:
            self.synced.set(key, value)
            return True
        except PersistenceError as e:
            self.logger.warning(
                "Synced write failed, falling back to local scope",
                key=key,
                error=str(e)
            )

        if self.synced is self.local:
            self.logger.error("Write failed with no fallback scope", key=key)
            return False

        try:
            self.local.set(key, value)
            return True
        except PersistenceError as e:
            self.logger.error("Local fallback write failed", key=key, error=str(e))
            return False

    def _remove_everywhere(self, key: str) -> bool:
        ok = True
        stores = [self.synced] if self.synced is self.local else [self.synced, self.local]
        for store in stores:
            try:
                store.remove(key)
            except PersistenceError as e:
                self.logger.error("Failed to remove key", key=key, scope=store.scope.value, error=str(e))
                ok = False
        return ok

    def _safe_get(self, store: BaseKeyValueStore, key: str) -> Any:
        try:
            return store.get(key)
        except PersistenceError as e:
            self.logger.warning("Read failed", key=key, scope=store.scope.value, error=str(e))
            return _MISSING
