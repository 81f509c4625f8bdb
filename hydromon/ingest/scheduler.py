"""Periodic and on-demand ingestion of the latest reading."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hydromon.shared.models import StoredReading, utcnow

from .context import MonitorContext
from .fetcher import FailureKind, TelemetryFetcher

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"


@dataclass
class SyncOutcome:
    """Result of one ingestion attempt."""
    reading: Optional[StoredReading] = None
    failure: Optional[FailureKind] = None

    @property
    def success(self) -> bool:
        return self.reading is not None


class IngestionScheduler:
    """Pulls the latest reading on a flat interval and on request.

    Failures never leave the scheduler: they only flip the connection
    status to error. Stored data is left untouched. There is no backoff;
    consecutive failures are counted for the log only.
    """

    def __init__(
        self,
        context: MonitorContext,
        fetcher: TelemetryFetcher,
        interval: float = 10.0,
    ):
        self.context = context
        self.fetcher = fetcher
        self.interval = interval
        self.running = False
        self.state = SchedulerState.IDLE
        self.consecutive_failures = 0
        self.last_failure: Optional[FailureKind] = None
        self._stop_event: Optional[asyncio.Event] = None

    def _record_failure(self, failure: FailureKind) -> SyncOutcome:
        self.context.mark_error()
        self.consecutive_failures += 1
        self.last_failure = failure
        logger.warning(
            f"Ingestion failed ({failure.value}), "
            f"{self.consecutive_failures} consecutive failure(s)"
        )
        return SyncOutcome(failure=failure)

    async def _ingest_once(self) -> SyncOutcome:
        try:
            result = await self.fetcher.fetch_latest_result()
        except Exception as e:
            logger.error(f"Fetcher raised unexpectedly: {e}")
            return self._record_failure(FailureKind.UNEXPECTED)

        if not result.ok:
            return self._record_failure(result.failure)

        stored = self.context.record_reading(result.value)
        if stored is None:
            return self._record_failure(FailureKind.STORE_ERROR)

        self.context.mark_connected(utcnow())
        if self.consecutive_failures:
            logger.info(f"Ingestion recovered after {self.consecutive_failures} failure(s)")
        self.consecutive_failures = 0
        self.last_failure = None
        logger.debug(f"Stored reading {stored.id}")
        return SyncOutcome(reading=stored)

    async def tick(self) -> Optional[SyncOutcome]:
        """Run one periodic ingestion.

        Returns:
            The outcome, or None if a periodic fetch was already in flight.
        """
        if self.state is SchedulerState.FETCHING:
            logger.debug("Previous tick still fetching, skipping")
            return None

        self.state = SchedulerState.FETCHING
        try:
            return await self._ingest_once()
        finally:
            self.state = SchedulerState.IDLE

    async def sync_now(self) -> SyncOutcome:
        """On-demand ingestion with the same effect as one tick.

        May overlap a periodic tick; whichever finishes last wins.
        """
        return await self._ingest_once()

    async def run_loop(self) -> None:
        """Main ingestion loop, runs until stop() is called."""
        logger.info(
            f"Starting ingestion (device={self.fetcher.config.device_id}, "
            f"interval={self.interval}s, demo={self.fetcher.demo_mode})"
        )
        self.running = True
        self._stop_event = asyncio.Event()

        while self.running:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Error in ingestion loop: {e}")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Ingestion loop stopped")

    def stop(self) -> None:
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()

    def run(self) -> None:
        """Start the ingestion service (blocking)."""
        try:
            asyncio.run(self.run_loop())
        except KeyboardInterrupt:
            logger.info("Shutting down ingestion...")
        finally:
            self.running = False
