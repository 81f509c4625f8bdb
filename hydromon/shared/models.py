"""Core data models for sensor readings and dashboard state."""

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

# Optional metrics, in the order they are exported
OPTIONAL_METRICS = ("moisture", "ec", "humidity", "light")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Naive timestamps are taken to be UTC.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def finite_or_zero(value: Any) -> float:
    """Coerce a loosely typed value to a finite float, falling back to 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


@dataclass(frozen=True)
class DecodedReading:
    """One normalized reading produced by the decoder or the manual path.

    Required fields are always finite numbers. Optional metrics are None
    for device profiles that do not report them.
    """
    temperature: float
    ph: float
    tds_level: float
    moisture: Optional[float] = None
    ec: Optional[float] = None
    humidity: Optional[float] = None
    light: Optional[float] = None

    def to_dict(self) -> Dict[str, float]:
        data = {
            "temperature": self.temperature,
            "ph": self.ph,
            "tdsLevel": self.tds_level,
        }
        for metric in OPTIONAL_METRICS:
            value = getattr(self, metric)
            if value is not None:
                data[metric] = value
        return data


@dataclass(frozen=True)
class StoredReading:
    """A decoded reading as persisted by a reading store."""
    id: str
    timestamp: datetime
    created_at: datetime
    reading: DecodedReading

    @classmethod
    def create(
        cls, reading: DecodedReading, timestamp: Optional[datetime] = None
    ) -> "StoredReading":
        """Stamp a decoded reading with a fresh id and creation time."""
        now = timestamp or utcnow()
        return cls(id=str(uuid.uuid4()), timestamp=now, created_at=now, reading=reading)

    @property
    def temperature(self) -> float:
        return self.reading.temperature

    @property
    def ph(self) -> float:
        return self.reading.ph

    @property
    def tds_level(self) -> float:
        return self.reading.tds_level

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "timestamp": to_iso(self.timestamp),
        }
        data.update(self.reading.to_dict())
        data["createdAt"] = to_iso(self.created_at)
        return data


class ConnectionStatus(Enum):
    """Upstream connection state shown on the dashboard."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass
class SystemStatus:
    """Connection and resource status of the monitor."""
    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_update: datetime = field(default_factory=utcnow)
    data_points: int = 0
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    storage_usage: float = 0.0
    uptime: str = "0d 0h 0m"

    def snapshot(self) -> "SystemStatus":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connectionStatus": self.connection_status.value,
            "lastUpdate": to_iso(self.last_update),
            "dataPoints": self.data_points,
            "cpuUsage": self.cpu_usage,
            "memoryUsage": self.memory_usage,
            "storageUsage": self.storage_usage,
            "uptime": self.uptime,
        }


@dataclass(frozen=True)
class AlertSettings:
    """Per-metric alert toggles chosen by the user."""
    temperature_alerts: bool = True
    ph_alerts: bool = True
    tds_level_alerts: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "temperatureAlerts": self.temperature_alerts,
            "phAlerts": self.ph_alerts,
            "tdsLevelAlerts": self.tds_level_alerts,
        }
