"""Alert generation for readings outside their optimal range."""

from dataclasses import dataclass
from typing import List, Optional

from .models import AlertSettings, DecodedReading


@dataclass(frozen=True)
class OptimalRange:
    metric: str
    label: str
    unit: str
    low: float
    high: float

    def classify(self, value: float) -> str:
        """Return 'optimal', 'low' or 'high' for a value."""
        if self.low <= value <= self.high:
            return "optimal"
        if abs(value - self.low) < abs(value - self.high):
            return "low"
        return "high"


TEMPERATURE_RANGE = OptimalRange("temperature", "Temperature", "°C", 22.0, 26.0)
PH_RANGE = OptimalRange("ph", "pH", "", 5.5, 6.5)
TDS_RANGE = OptimalRange("tds_level", "TDS", " ppm", 560.0, 840.0)


def generate_alerts(
    reading: Optional[DecodedReading], settings: AlertSettings
) -> List[str]:
    """Generate alert lines for the metrics the user has enabled.

    Args:
        reading: Latest reading, or None if nothing has been stored yet.
        settings: Alert toggles.

    Returns:
        One line per out-of-range metric; empty when everything is optimal.
    """
    if reading is None:
        return []

    checks = [
        (settings.temperature_alerts, TEMPERATURE_RANGE),
        (settings.ph_alerts, PH_RANGE),
        (settings.tds_level_alerts, TDS_RANGE),
    ]

    alerts = []
    for enabled, optimal in checks:
        if not enabled:
            continue
        value = getattr(reading, optimal.metric)
        state = optimal.classify(value)
        if state != "optimal":
            alerts.append(
                f"{optimal.label} {state.upper()}: {value:g}{optimal.unit} "
                f"(optimal {optimal.low:g}-{optimal.high:g}{optimal.unit})"
            )
    return alerts
