"""CSV and JSON export of stored readings."""

import json
from dataclasses import dataclass
from typing import Sequence

from hydromon.shared.exceptions import ValidationError
from hydromon.shared.models import StoredReading, to_iso

CSV_HEADER = "timestamp,temperature,ph,tdsLevel"
EXPORT_FORMATS = ("json", "csv")


@dataclass(frozen=True)
class ExportResult:
    content_type: str
    filename: str
    body: str


def to_csv(readings: Sequence[StoredReading]) -> str:
    """Header plus one line per reading, joined by newlines.

    There is no trailing newline; with no readings only the header is
    returned.
    """
    lines = [CSV_HEADER]
    for r in readings:
        lines.append(f"{to_iso(r.timestamp)},{r.temperature},{r.ph},{r.tds_level}")
    return "\n".join(lines)


def to_json(readings: Sequence[StoredReading]) -> str:
    return json.dumps([r.to_dict() for r in readings], indent=2)


def export_readings(readings: Sequence[StoredReading], fmt: str = "json") -> ExportResult:
    """Render readings in the requested format.

    Raises:
        ValidationError: If the format is not json or csv.
    """
    fmt = (fmt or "json").lower()
    if fmt == "csv":
        return ExportResult("text/csv", "sensor-data.csv", to_csv(readings))
    if fmt == "json":
        return ExportResult("application/json", "sensor-data.json", to_json(readings))
    raise ValidationError(
        f"Unsupported export format: {fmt}",
        [f"format: must be one of {', '.join(EXPORT_FORMATS)}"],
    )
