"""Tests for the ingestion scheduler and the monitor context."""

import asyncio
from unittest.mock import MagicMock

import pytest

from hydromon.decoder.profiles import DeviceProfile
from hydromon.ingest.config import AntaresConfig, Config
from hydromon.ingest.context import MonitorContext, create_context, format_uptime
from hydromon.ingest.fetcher import FailureKind, FetchResult, TelemetryFetcher
from hydromon.ingest.scheduler import IngestionScheduler, SchedulerState
from hydromon.shared.models import ConnectionStatus, DecodedReading
from hydromon.shared.storage import MemoryReadingStore


class RejectingStore(MemoryReadingStore):
    def append(self, reading, timestamp=None):
        return None


def ok(temperature=24.0):
    return FetchResult(value=DecodedReading(temperature=temperature, ph=6.0, tds_level=700.0))


# =============================================================================
# Single ingestion
# =============================================================================

@pytest.mark.asyncio
async def test_tick_stores_reading(scheduler, fake_fetcher, context):
    fake_fetcher.results.append(ok(23.5))

    outcome = await scheduler.tick()

    assert outcome.success
    assert outcome.reading.temperature == 23.5
    status = context.get_status()
    assert status.connection_status is ConnectionStatus.CONNECTED
    assert status.data_points == 1
    assert context.store.get_latest().id == outcome.reading.id
    assert scheduler.state is SchedulerState.IDLE


@pytest.mark.asyncio
async def test_tick_failure_keeps_data(scheduler, fake_fetcher, context):
    fake_fetcher.results.extend([ok(), FetchResult(failure=FailureKind.TIMEOUT)])

    await scheduler.tick()
    outcome = await scheduler.tick()

    assert not outcome.success
    assert outcome.failure is FailureKind.TIMEOUT
    assert context.store.count() == 1
    assert context.get_status().connection_status is ConnectionStatus.ERROR
    assert scheduler.consecutive_failures == 1
    assert scheduler.last_failure is FailureKind.TIMEOUT


@pytest.mark.asyncio
async def test_failures_are_counted_and_reset(scheduler, fake_fetcher):
    fake_fetcher.results.extend([
        FetchResult(failure=FailureKind.UPSTREAM_ERROR),
        FetchResult(failure=FailureKind.MALFORMED_ENVELOPE),
        ok(),
    ])

    await scheduler.tick()
    await scheduler.tick()
    assert scheduler.consecutive_failures == 2

    await scheduler.tick()
    assert scheduler.consecutive_failures == 0
    assert scheduler.last_failure is None


@pytest.mark.asyncio
async def test_fetcher_exception_does_not_escape(scheduler, fake_fetcher, context):
    fake_fetcher.results.append(RuntimeError("boom"))

    outcome = await scheduler.tick()

    assert outcome.failure is FailureKind.UNEXPECTED
    assert context.get_status().connection_status is ConnectionStatus.ERROR
    assert scheduler.state is SchedulerState.IDLE


@pytest.mark.asyncio
async def test_store_rejection_is_a_failure(fake_fetcher):
    context = MonitorContext(RejectingStore())
    scheduler = IngestionScheduler(context, fake_fetcher)
    fake_fetcher.results.append(ok())

    outcome = await scheduler.sync_now()

    assert outcome.failure is FailureKind.STORE_ERROR
    assert context.get_status().connection_status is ConnectionStatus.ERROR


@pytest.mark.asyncio
async def test_sync_now_matches_tick(scheduler, fake_fetcher, context):
    fake_fetcher.results.append(ok(25.0))

    outcome = await scheduler.sync_now()

    assert outcome.success
    assert context.get_status().connection_status is ConnectionStatus.CONNECTED
    assert context.store.count() == 1


# =============================================================================
# Overlap
# =============================================================================

@pytest.mark.asyncio
async def test_tick_skipped_while_fetching(scheduler, fake_fetcher, context):
    fake_fetcher.gate = asyncio.Event()
    fake_fetcher.results.extend([ok(21.0), ok(22.0)])

    first = asyncio.create_task(scheduler.tick())
    await asyncio.sleep(0)
    assert scheduler.state is SchedulerState.FETCHING

    assert await scheduler.tick() is None

    # On-demand sync is allowed to overlap
    manual = asyncio.create_task(scheduler.sync_now())
    await asyncio.sleep(0)
    fake_fetcher.gate.set()

    results = await asyncio.gather(first, manual)
    assert all(r.success for r in results)
    assert context.store.count() == 2
    assert fake_fetcher.calls == 2
    assert scheduler.state is SchedulerState.IDLE


# =============================================================================
# Loop
# =============================================================================

@pytest.mark.asyncio
async def test_run_loop_until_stopped(scheduler, fake_fetcher, context):
    fake_fetcher.results.extend(ok(20.0 + i) for i in range(100))

    task = asyncio.create_task(scheduler.run_loop())
    await asyncio.sleep(0.1)
    scheduler.stop()
    await asyncio.wait_for(task, timeout=1)

    assert not scheduler.running
    assert context.store.count() >= 2


@pytest.mark.asyncio
async def test_run_loop_survives_failures(scheduler, fake_fetcher, context):
    # No queued results: every tick is a transport failure
    task = asyncio.create_task(scheduler.run_loop())
    await asyncio.sleep(0.05)
    fake_fetcher.results.append(ok())
    await asyncio.sleep(0.05)
    scheduler.stop()
    await asyncio.wait_for(task, timeout=1)

    assert context.store.count() == 1


# =============================================================================
# Context
# =============================================================================

@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0d 0h 0m"), (59, "0d 0h 0m"), (90061, "1d 1h 1m"), (3 * 86400, "3d 0h 0m")],
)
def test_format_uptime(seconds, expected):
    assert format_uptime(seconds) == expected


def test_context_status_defaults(context):
    status = context.get_status()
    assert status.connection_status is ConnectionStatus.DISCONNECTED
    assert status.data_points == 0
    assert status.cpu_usage == 23.0
    assert status.memory_usage == 30.0
    assert 0 <= status.storage_usage <= 100
    assert status.uptime == "0d 0h 0m"


def test_context_status_is_a_snapshot(context, sample_reading):
    before = context.get_status()
    context.record_reading(sample_reading)
    assert before.data_points == 0
    assert context.get_status().data_points == 1


def test_record_reading_publishes(memory_store, sample_reading):
    publisher = MagicMock()
    context = MonitorContext(memory_store, publisher=publisher)

    stored = context.record_reading(sample_reading)

    publisher.publish_reading.assert_called_once_with(stored)


def test_publisher_failure_does_not_lose_reading(memory_store, sample_reading):
    publisher = MagicMock()
    publisher.publish_reading.side_effect = OSError("broker gone")
    context = MonitorContext(memory_store, publisher=publisher)

    stored = context.record_reading(sample_reading)

    assert stored is not None
    assert memory_store.count() == 1


def test_context_close(memory_store):
    publisher = MagicMock()
    MonitorContext(memory_store, publisher=publisher).close()
    publisher.disconnect.assert_called_once()


def test_create_context_memory():
    context = create_context(Config())
    assert isinstance(context.store, MemoryReadingStore)
    assert context.publisher is None


def test_create_context_unknown_backend():
    with pytest.raises(ValueError):
        create_context(Config(storage_backend="sqlite"))


@pytest.mark.asyncio
async def test_unreachable_upstream_leaves_data_untouched(context, sample_reading):
    context.record_reading(sample_reading)
    config = AntaresConfig(api_key="k", base_url="http://127.0.0.1:1", timeout=2.0)
    scheduler = IngestionScheduler(context, TelemetryFetcher(config, DeviceProfile.from_code(None)))

    for _ in range(2):
        outcome = await scheduler.sync_now()
        assert outcome.failure is FailureKind.TRANSPORT_ERROR
        status = context.get_status()
        assert status.connection_status is ConnectionStatus.ERROR
        assert status.data_points == 1
