"""
Terminal Monitor for the hydroponic reservoir.
Full-screen terminal interface using the Rich library.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hydromon.api.service import DashboardService
from hydromon.shared.alerts import PH_RANGE, TDS_RANGE, TEMPERATURE_RANGE, OptimalRange
from hydromon.shared.models import ConnectionStatus, StoredReading, SystemStatus

logger = logging.getLogger(__name__)

STATE_STYLES = {"optimal": "green", "low": "yellow", "high": "red"}
CONNECTION_STYLES = {
    ConnectionStatus.CONNECTED: ("🟢 CONNECTED", "green"),
    ConnectionStatus.DISCONNECTED: ("⚪ DISCONNECTED", "yellow"),
    ConnectionStatus.ERROR: ("🔴 ERROR", "red"),
}


class TerminalMonitor:
    """Terminal-based dashboard using Rich"""

    RECENT_ROWS = 10

    def __init__(
        self,
        service: DashboardService,
        console: Optional[Console] = None,
        refresh_interval: float = 5.0,
    ):
        self.service = service
        self.console = console or Console(force_terminal=True)
        self.refresh_interval = refresh_interval
        self.running = False

    def update_display(self):
        """Update the display with current readings and status"""
        try:
            layout = self.create_layout(
                self.service.get_status(),
                self.service.get_recent(self.RECENT_ROWS),
                self.service.get_alerts(),
            )
            self.console.clear()
            self.console.print(layout)
        except Exception as e:
            logger.error(f"Display update failed: {e}")
            self._show_error_display(str(e))

    def create_layout(
        self,
        status: SystemStatus,
        recent: List[StoredReading],
        alerts: List[str],
    ) -> Layout:
        """Create the main display layout"""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
        )
        layout["body"].split_row(
            Layout(name="left"),
            Layout(name="right"),
        )
        layout["left"].split_column(
            Layout(name="latest", size=9),
            Layout(name="recent"),
        )
        layout["right"].split_column(
            Layout(name="system", size=11),
            Layout(name="alerts"),
        )

        latest = recent[0] if recent else None
        layout["header"].update(self._create_header(status))
        layout["latest"].update(self._create_latest_panel(latest))
        layout["recent"].update(self._create_recent_panel(recent))
        layout["system"].update(self._create_system_panel(status))
        layout["alerts"].update(self._create_alerts_panel(alerts))
        return layout

    def _create_header(self, status: SystemStatus) -> Panel:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        label, style = CONNECTION_STYLES[status.connection_status]

        header_text = Text()
        header_text.append("HYDROPONIC MONITOR", style="bold cyan")
        header_text.append(f" - {timestamp}", style="white")
        header_text.append(f" - {label}", style=style)

        return Panel(Align.center(header_text), style="cyan")

    @staticmethod
    def _metric_row(table: Table, optimal: OptimalRange, value: float, fmt: str):
        state = optimal.classify(value)
        table.add_row(
            optimal.label,
            f"{value:{fmt}}{optimal.unit}",
            f"{optimal.low:g}-{optimal.high:g}{optimal.unit}",
            state.upper(),
            style=STATE_STYLES[state],
        )

    def _create_latest_panel(self, latest: Optional[StoredReading]) -> Panel:
        if latest is None:
            return Panel(Text("No readings yet", style="yellow"), title="LATEST", style="cyan")

        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Metric", width=12)
        table.add_column("Value", width=12)
        table.add_column("Optimal", width=14)
        table.add_column("State", width=8)

        self._metric_row(table, TEMPERATURE_RANGE, latest.temperature, ".1f")
        self._metric_row(table, PH_RANGE, latest.ph, ".2f")
        self._metric_row(table, TDS_RANGE, latest.tds_level, ".0f")

        reading = latest.reading
        if reading.humidity is not None:
            table.add_row("Humidity", f"{reading.humidity:.1f}%", "", "", style="white")
        if reading.moisture is not None:
            table.add_row("Moisture", f"{reading.moisture:.1f}%", "", "", style="white")
        if reading.light is not None:
            table.add_row("Light", f"{reading.light:.0f} lux", "", "", style="white")

        taken = latest.timestamp.astimezone().strftime("%H:%M:%S")
        return Panel(table, title=f"LATEST ({taken})", style="cyan")

    def _create_recent_panel(self, recent: List[StoredReading]) -> Panel:
        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Time", width=10)
        table.add_column("Temp", width=8)
        table.add_column("pH", width=6)
        table.add_column("TDS", width=8)

        for r in recent:
            table.add_row(
                r.timestamp.astimezone().strftime("%H:%M:%S"),
                f"{r.temperature:.1f}°C",
                f"{r.ph:.2f}",
                f"{r.tds_level:.0f}",
            )

        return Panel(table, title="RECENT READINGS", style="cyan")

    def _create_system_panel(self, status: SystemStatus) -> Panel:
        table = Table(show_header=False, box=None)
        table.add_column("Item", style="white", width=14)
        table.add_column("Value", style="white")

        table.add_row("Data points", str(status.data_points))
        table.add_row("Last update", status.last_update.astimezone().strftime("%H:%M:%S"))
        table.add_row("Uptime", status.uptime)
        table.add_row("CPU", f"{status.cpu_usage:.0f}%")
        table.add_row("Memory", f"{status.memory_usage:.0f}%")
        table.add_row("Storage", f"{status.storage_usage:.0f}%")

        return Panel(table, title="SYSTEM STATUS", style="cyan")

    def _create_alerts_panel(self, alerts: List[str]) -> Panel:
        if not alerts:
            content = Text("✓ All readings optimal", style="green")
        else:
            content = Text()
            for i, alert in enumerate(alerts):
                if i > 0:
                    content.append("\n")
                style = "red" if "HIGH" in alert else "yellow"
                content.append(f"⚠ {alert}", style=f"bold {style}")

        return Panel(content, title="ALERTS", style="cyan")

    def _show_error_display(self, error_msg: str):
        """Show error display when the dashboard cannot be built"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        header = Panel(
            Align.center(Text(f"HYDROPONIC MONITOR - {timestamp} - ERROR", style="bold red")),
            style="red",
        )
        error_panel = Panel(
            Align.center(Text(f"DISPLAY ERROR\n\n{error_msg}", style="bold red")),
            title="System Error",
            style="red",
        )

        layout = Layout()
        layout.split_column(
            Layout(header, size=3),
            Layout(error_panel),
        )
        self.console.clear()
        self.console.print(layout)

    async def run_loop(self):
        """Run ingestion and refresh the screen until stopped."""
        self.running = True
        scheduler = self.service.scheduler
        ingest_task = asyncio.create_task(scheduler.run_loop())

        try:
            while self.running:
                self.update_display()
                await asyncio.sleep(self.refresh_interval)
        finally:
            scheduler.stop()
            await ingest_task

    def run(self):
        """Start the dashboard (blocking)."""
        try:
            asyncio.run(self.run_loop())
        except KeyboardInterrupt:
            logger.info("Display stopped by user")
        finally:
            self.running = False
