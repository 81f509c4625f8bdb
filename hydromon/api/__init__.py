"""Dashboard-facing operations."""

from .export import CSV_HEADER, ExportResult, export_readings, to_csv, to_json
from .schemas import AlertSettingsInput, ManualReadingInput
from .service import DashboardService

__all__ = [
    "CSV_HEADER",
    "ExportResult",
    "export_readings",
    "to_csv",
    "to_json",
    "AlertSettingsInput",
    "ManualReadingInput",
    "DashboardService",
]
