"""Key-value store backends for timer state, settings and history."""

import copy
import json
import os
import threading
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import PersistenceError

logger = structlog.get_logger(__name__)


class StorageScope(Enum):
    """Storage scopes offered by the host."""
    LOCAL = "local"                                  # Device-local
    SYNCED = "synced"                                # Cross-device synced


class BaseKeyValueStore(ABC):
    """
    Opaque key-value store with no transactional guarantees across keys.

    Implementations raise PersistenceError for any read or write failure.
    """

    def __init__(self, scope: StorageScope):
        self.scope = scope
        self.logger = logger.bind(scope=scope.value)

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key, replacing any previous one."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key; removing an absent key is not an error."""


class InMemoryKeyValueStore(BaseKeyValueStore):
    """Process-local store; values are deep-copied in and out."""

    def __init__(self, scope: StorageScope = StorageScope.LOCAL):
        super().__init__(scope)
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileKeyValueStore(BaseKeyValueStore):
    """
    One JSON document per scope on disk.

    Every write rewrites the whole document through a temporary file and
    an atomic rename, so a crash mid-write leaves the previous document.
    Reads of an unreadable document raise; the next write moves it aside
    to ``<name>.corrupt`` and starts a new one.
    """

    def __init__(self, path: Path, scope: StorageScope = StorageScope.LOCAL, create_dirs: bool = True):
        super().__init__(scope)
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

        if create_dirs:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_for_update()
            data[key] = value
            self._write_all(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read_for_update()
            if key in data:
                del data[key]
                self._write_all(data)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read store file: {e}",
                operation="read",
                target=str(self.path)
            ) from e

        if not content.strip():
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                f"Store file is not valid JSON: {e}",
                operation="read",
                target=str(self.path)
            ) from e

        if not isinstance(data, dict):
            raise PersistenceError(
                "Store file must contain a JSON object",
                operation="read",
                target=str(self.path)
            )

        return data

    def _read_for_update(self) -> dict[str, Any]:
        """Current document for a write; an unreadable one is moved aside and replaced."""
        try:
            return self._read_all()
        except PersistenceError as e:
            corrupt_path = self.path.with_name(self.path.name + ".corrupt")
            try:
                os.replace(self.path, corrupt_path)
            except OSError as move_error:
                self.logger.warning(
                    "Failed to move unreadable store file aside",
                    path=str(self.path),
                    error=str(move_error)
                )
            else:
                self.logger.warning(
                    "Unreadable store file moved aside, starting a new document",
                    path=str(self.path),
                    moved_to=str(corrupt_path),
                    error=str(e)
                )
            return {}

    def _write_all(self, data: dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            payload = json.dumps(data, indent=2, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                f"Value is not JSON serializable: {e}",
                operation="write",
                target=str(self.path)
            ) from e

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write store file: {e}",
                operation="write",
                target=str(self.path)
            ) from e

        self.logger.debug("Store file written", path=str(self.path), keys=len(data))
