"""Shared fixtures for hydromon tests."""

import asyncio
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest

from hydromon.decoder.profiles import DeviceProfile
from hydromon.ingest.config import AntaresConfig
from hydromon.ingest.context import MonitorContext
from hydromon.ingest.fetcher import FailureKind, FetchResult
from hydromon.ingest.scheduler import IngestionScheduler
from hydromon.shared.models import DecodedReading
from hydromon.shared.storage import MemoryReadingStore

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeFetcher:
    """Stands in for TelemetryFetcher, replaying queued results."""

    def __init__(self, results: Iterable = (), device_code: str = "default"):
        self.config = AntaresConfig(api_key="test-key", device_id="hydro_sensor")
        self.profile = DeviceProfile.from_code(device_code)
        self.demo_mode = False
        self.results = deque(results)
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.history = []

    async def fetch_latest_result(self) -> FetchResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if not self.results:
            return FetchResult(failure=FailureKind.TRANSPORT_ERROR, detail="no result queued")
        result = self.results.popleft()
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_history(self, limit: int = 100):
        return iter(self.history[:limit])


@pytest.fixture
def sample_reading() -> DecodedReading:
    return DecodedReading(temperature=24.5, ph=6.1, tds_level=720.0)


@pytest.fixture
def memory_store() -> MemoryReadingStore:
    return MemoryReadingStore()


@pytest.fixture
def filled_store(memory_store) -> MemoryReadingStore:
    """Five readings one minute apart, starting at BASE_TIME."""
    for i in range(5):
        memory_store.append(
            DecodedReading(temperature=20.0 + i, ph=6.0, tds_level=700.0 + i),
            BASE_TIME + timedelta(minutes=i),
        )
    return memory_store


@pytest.fixture
def context(memory_store) -> MonitorContext:
    return MonitorContext(memory_store)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def scheduler(context, fake_fetcher) -> IngestionScheduler:
    return IngestionScheduler(context, fake_fetcher, interval=0.01)
