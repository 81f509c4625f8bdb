"""Reading store interface and the in-memory implementation."""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .models import DecodedReading, StoredReading

logger = logging.getLogger(__name__)


class ReadingStore(ABC):
    """Append-only store of decoded readings."""

    @abstractmethod
    def append(
        self, reading: DecodedReading, timestamp: Optional[datetime] = None
    ) -> Optional[StoredReading]:
        """Persist a reading.

        Returns:
            The stored reading, or None if it could not be written.
        """
        pass

    @abstractmethod
    def get_recent(self, limit: int = 50) -> List[StoredReading]:
        """Most recent readings, newest first."""
        pass

    @abstractmethod
    def get_range(self, start_time: datetime, end_time: datetime) -> List[StoredReading]:
        """Readings with start_time <= timestamp <= end_time, oldest first."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    def get_latest(self) -> Optional[StoredReading]:
        """Get the most recent reading, or None if the store is empty."""
        readings = self.get_recent(1)
        return readings[0] if readings else None

    def close(self):
        """Release any held resources."""
        pass


class MemoryReadingStore(ReadingStore):
    """Keeps readings in a process-local list.

    Appends and queries share one lock; every query works on its own
    snapshot so callers never see a half-applied append.
    """

    def __init__(self):
        self._readings: List[StoredReading] = []
        self._lock = threading.Lock()

    def _snapshot(self) -> List[StoredReading]:
        with self._lock:
            return list(self._readings)

    def append(
        self, reading: DecodedReading, timestamp: Optional[datetime] = None
    ) -> Optional[StoredReading]:
        stored = StoredReading.create(reading, timestamp)
        with self._lock:
            self._readings.append(stored)
        logger.debug(f"Stored reading {stored.id}")
        return stored

    def get_recent(self, limit: int = 50) -> List[StoredReading]:
        if limit <= 0:
            return []
        # sorted() is stable, so equal timestamps keep append order
        ordered = sorted(self._snapshot(), key=lambda r: r.timestamp)
        ordered.reverse()
        return ordered[:limit]

    def get_range(self, start_time: datetime, end_time: datetime) -> List[StoredReading]:
        if start_time > end_time:
            return []
        matching = [
            r for r in self._snapshot()
            if start_time <= r.timestamp <= end_time
        ]
        return sorted(matching, key=lambda r: r.timestamp)

    def count(self) -> int:
        with self._lock:
            return len(self._readings)
