"""Terminal dashboard service."""

from .terminal_monitor import TerminalMonitor


def main():
    """Entry point for display service."""
    from hydromon.api.service import DashboardService
    from hydromon.ingest import build_scheduler
    from hydromon.ingest.config import load_config
    from hydromon.shared.logging import setup_logging

    config = load_config()
    setup_logging(config.log_level)

    scheduler = build_scheduler(config)
    service = DashboardService(scheduler.context, scheduler)
    monitor = TerminalMonitor(service)

    try:
        monitor.run()
    finally:
        scheduler.context.close()


__all__ = ["TerminalMonitor", "main"]
