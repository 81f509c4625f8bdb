"""Telemetry ingestion service."""

from .context import MonitorContext, create_context
from .fetcher import FailureKind, FetchResult, TelemetryFetcher
from .scheduler import IngestionScheduler, SchedulerState, SyncOutcome


def build_scheduler(config) -> IngestionScheduler:
    """Wire context, fetcher and scheduler from a Config."""
    context = create_context(config)
    fetcher = TelemetryFetcher(config.antares, config.device)
    return IngestionScheduler(context, fetcher, interval=config.collection_interval)


def main():
    """Entry point for ingestion service."""
    from .config import load_config
    from hydromon.shared.logging import setup_logging

    config = load_config()
    setup_logging(config.log_level)

    scheduler = build_scheduler(config)
    try:
        scheduler.run()
    finally:
        scheduler.context.close()


__all__ = [
    "MonitorContext",
    "create_context",
    "FailureKind",
    "FetchResult",
    "TelemetryFetcher",
    "IngestionScheduler",
    "SchedulerState",
    "SyncOutcome",
    "build_scheduler",
    "main",
]
