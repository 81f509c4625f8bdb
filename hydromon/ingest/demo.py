import logging
import random
from typing import Dict

from hydromon.shared.models import DecodedReading

logger = logging.getLogger(__name__)

# metric -> (base value, per-step variation, lower bound, upper bound)
DEMO_RANGES: Dict[str, tuple] = {
    "temperature": (24.0, 0.5, 18.0, 30.0),
    "ph": (6.0, 0.1, 5.0, 7.5),
    "tds_level": (700.0, 20.0, 400.0, 1200.0),
}


class DemoTelemetrySource:
    """Synthetic readings used when no platform credential is configured."""

    def __init__(self, seed=None):
        self._random = random.Random(seed)
        # Keep last values so readings drift instead of jumping around
        self.last_values: Dict[str, float] = {}
        logger.info("No Antares credential configured, serving demo readings")

    def _get_numeric_value(self, metric: str) -> float:
        """Generate a somewhat realistic varying value"""
        base_value, variation, low, high = DEMO_RANGES[metric]
        current = self.last_values.get(metric, base_value)

        # Random walk with mean reversion
        new_value = current + self._random.uniform(-variation, variation)
        new_value = new_value * 0.9 + base_value * 0.1
        new_value = min(max(new_value, low), high)

        self.last_values[metric] = new_value
        return new_value

    def next_reading(self) -> DecodedReading:
        return DecodedReading(
            temperature=round(self._get_numeric_value("temperature"), 1),
            ph=round(self._get_numeric_value("ph"), 2),
            tds_level=round(self._get_numeric_value("tds_level"), 1),
        )
