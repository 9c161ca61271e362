"""Bounded, append-only log of completed work sessions."""

import csv
import io
import json
import threading
from collections import deque
from typing import Optional

import structlog

from ..errors import MalformedDataError
from ..persistence.timer_store import TimerStore
from .records import RECORD_FIELDS, SessionRecord

logger = structlog.get_logger(__name__)

DEFAULT_CAPACITY = 1000
EXPORT_FORMATS = ("json", "csv")


class SessionHistory:
    """
    In-memory session log mirrored to the store after every change.

    Holds at most `capacity` records; appending past capacity evicts the
    oldest record first. The in-memory copy stays authoritative when a
    write fails.
    """

    def __init__(self, store: TimerStore, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.store = store
        self.capacity = capacity
        self.logger = logger
        self._records: deque[SessionRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def load(self) -> int:
        """Replace the in-memory log with the stored one; returns the record count."""
        records = []
        skipped = 0
        for raw in self.store.load_history():
            try:
                records.append(SessionRecord.from_dict(raw))
            except MalformedDataError as e:
                skipped += 1
                self.logger.warning("Skipping malformed session record", error=str(e))

        with self._lock:
            self._records = deque(records[-self.capacity:], maxlen=self.capacity)
            count = len(self._records)

        self.logger.info("Loaded session history", records=count, skipped=skipped)
        return count

    def append(self, record: SessionRecord) -> bool:
        """Append a record, evicting the oldest past capacity; returns persist success."""
        with self._lock:
            evicted: Optional[SessionRecord] = None
            if len(self._records) == self.capacity:
                evicted = self._records[0]
            self._records.append(record)
            snapshot = [r.to_dict() for r in self._records]

        if evicted is not None:
            self.logger.debug("Evicted oldest session record", record_id=evicted.id)

        self.logger.info(
            "Recorded work session",
            record_id=record.id,
            date=record.date,
            start_time=record.start_time,
            duration_minutes=record.duration_minutes,
            category=record.category
        )
        return self.store.save_history(snapshot)

    def records(self) -> list[SessionRecord]:
        """All records, oldest first."""
        with self._lock:
            return list(self._records)

    def clear(self) -> bool:
        with self._lock:
            removed = len(self._records)
            self._records.clear()

        self.logger.info("Cleared session history", removed=removed)
        return self.store.clear_history()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def export(self, fmt: str = "json") -> str:
        """Serialize the log as a JSON array or CSV with a header row."""
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")

        rows = [r.to_dict() for r in self.records()]

        if fmt == "json":
            return json.dumps(rows, indent=2, ensure_ascii=False)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=list(RECORD_FIELDS), lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue()
