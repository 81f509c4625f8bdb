"""Operations exposed to the dashboard, the CLI and export consumers."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from hydromon.decoder.hex_decoder import decode_trace
from hydromon.ingest.context import MonitorContext
from hydromon.ingest.scheduler import IngestionScheduler, SyncOutcome
from hydromon.shared.alerts import generate_alerts
from hydromon.shared.exceptions import StorageError, ValidationError
from hydromon.shared.models import AlertSettings, StoredReading, SystemStatus, parse_iso

from .export import ExportResult, export_readings
from .schemas import AlertSettingsInput, ManualReadingInput, validate_payload

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
EXPORT_LIMIT = 1000


def _parse_bound(name: str, value: str) -> datetime:
    try:
        return parse_iso(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(
            f"{name} is not an ISO-8601 timestamp: {value!r}",
            [f"{name}: expected ISO-8601 timestamp"],
        ) from e


class DashboardService:
    """Thin facade over the monitor context and the scheduler."""

    def __init__(self, context: MonitorContext, scheduler: IngestionScheduler):
        self.context = context
        self.scheduler = scheduler

    def get_recent(self, limit: int = DEFAULT_LIMIT) -> List[StoredReading]:
        """Most recent readings, newest first; limit is clamped to 1..1000."""
        limit = max(1, min(int(limit), EXPORT_LIMIT))
        return self.context.store.get_recent(limit)

    def get_range(self, start_time: str, end_time: str) -> List[StoredReading]:
        """Readings between two ISO-8601 timestamps, inclusive, ascending.

        Raises:
            ValidationError: If either bound cannot be parsed.
        """
        start = _parse_bound("startTime", start_time)
        end = _parse_bound("endTime", end_time)
        return self.context.store.get_range(start, end)

    def get_latest(self) -> Optional[StoredReading]:
        return self.context.store.get_latest()

    def create_reading(self, payload: Any) -> StoredReading:
        """Store a manually entered reading.

        Raises:
            ValidationError: If a field is missing or out of range.
            StorageError: If the store could not write the reading.
        """
        data = validate_payload(ManualReadingInput, payload)
        stored = self.context.record_reading(data.to_reading())
        if stored is None:
            raise StorageError("Reading store rejected the reading")
        logger.info(f"Stored manual reading {stored.id}")
        return stored

    async def sync(self) -> SyncOutcome:
        """Pull the latest reading from the platform right now."""
        outcome = await self.scheduler.sync_now()
        if not outcome.success:
            logger.warning("Manual sync failed")
        return outcome

    def get_status(self) -> SystemStatus:
        return self.context.get_status()

    def get_alert_settings(self) -> AlertSettings:
        return self.context.get_alert_settings()

    def update_alert_settings(self, payload: Any) -> AlertSettings:
        """Replace the alert toggles.

        Raises:
            ValidationError: If any toggle is missing or not a boolean.
        """
        settings = validate_payload(AlertSettingsInput, payload).to_settings()
        return self.context.update_alert_settings(settings)

    def get_alerts(self) -> List[str]:
        """Alerts for the latest reading under the current settings."""
        latest = self.get_latest()
        reading = latest.reading if latest else None
        return generate_alerts(reading, self.get_alert_settings())

    def export(
        self,
        fmt: str = "json",
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> ExportResult:
        """Export a time range, or the last 1000 readings without one."""
        if start_time and end_time:
            readings = self.get_range(start_time, end_time)
        else:
            readings = self.context.store.get_recent(EXPORT_LIMIT)
        return export_readings(readings, fmt)

    def debug_decode(self, payload: str, device_code: Optional[str] = None) -> Dict[str, Any]:
        """Decode a raw hex payload and return every intermediate value.

        Raises:
            ValidationError: If no payload is given.
            InvalidHex: If the payload cannot be decoded.
        """
        if not payload:
            raise ValidationError("Data field is required", ["data: required"])
        code = device_code or self.scheduler.fetcher.profile.device_code
        return decode_trace(payload, code)
