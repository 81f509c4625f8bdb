"""Monitor context: owns the reading store, system status and alert settings."""

import logging
import threading
import time
from datetime import datetime
from typing import Optional

from hydromon.shared.database import MySQLReadingStore
from hydromon.shared.disk_check import get_storage_usage
from hydromon.shared.models import (
    AlertSettings,
    ConnectionStatus,
    DecodedReading,
    StoredReading,
    SystemStatus,
    utcnow,
)
from hydromon.shared.mqtt import ReadingPublisher
from hydromon.shared.storage import MemoryReadingStore, ReadingStore

from .config import Config, StatusConfig

logger = logging.getLogger(__name__)


def format_uptime(seconds: float) -> str:
    """Format seconds as '{d}d {h}h {m}m'."""
    minutes = int(seconds // 60)
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    return f"{days}d {hours}h {minutes}m"


class MonitorContext:
    """State shared by the scheduler and the dashboard service.

    Status and settings updates are last-write-wins; there is no
    coordination between reading status and appending a reading.
    """

    def __init__(
        self,
        store: ReadingStore,
        status_config: Optional[StatusConfig] = None,
        publisher: Optional[ReadingPublisher] = None,
        alert_settings: Optional[AlertSettings] = None,
    ):
        self.store = store
        self.publisher = publisher
        self.status_config = status_config or StatusConfig()
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._settings = alert_settings or AlertSettings()
        self._status = SystemStatus(
            data_points=store.count(),
            cpu_usage=self.status_config.cpu_usage,
            memory_usage=self.status_config.memory_usage,
        )

    def record_reading(
        self, reading: DecodedReading, timestamp: Optional[datetime] = None
    ) -> Optional[StoredReading]:
        """Append a reading and refresh dataPoints / lastUpdate.

        Returns:
            The stored reading, or None if the store rejected it.
        """
        stored = self.store.append(reading, timestamp)
        if stored is None:
            return None

        data_points = self.store.count()
        with self._lock:
            self._status.data_points = data_points
            self._status.last_update = stored.timestamp

        if self.publisher is not None:
            try:
                self.publisher.publish_reading(stored)
            except Exception as e:
                logger.error(f"Failed to publish reading {stored.id}: {e}")

        return stored

    def mark_connected(self, when: Optional[datetime] = None):
        with self._lock:
            self._status.connection_status = ConnectionStatus.CONNECTED
            self._status.last_update = when or utcnow()

    def mark_error(self):
        with self._lock:
            self._status.connection_status = ConnectionStatus.ERROR

    def get_status(self) -> SystemStatus:
        """Snapshot of the status with uptime and disk usage filled in."""
        with self._lock:
            status = self._status.snapshot()
        status.uptime = format_uptime(time.monotonic() - self._started)
        status.storage_usage = get_storage_usage(self.status_config.disk_path)
        return status

    def get_alert_settings(self) -> AlertSettings:
        with self._lock:
            return self._settings

    def update_alert_settings(self, settings: AlertSettings) -> AlertSettings:
        with self._lock:
            self._settings = settings
            return self._settings

    def close(self):
        if self.publisher is not None:
            self.publisher.disconnect()
        self.store.close()


def create_context(config: Config) -> MonitorContext:
    """Build the context described by a Config.

    Picks the storage backend and connects the MQTT publisher when it
    is enabled.
    """
    if config.storage_backend == "mysql":
        store: ReadingStore = MySQLReadingStore(config.db_config())
    elif config.storage_backend == "memory":
        store = MemoryReadingStore()
    else:
        raise ValueError(f"Unsupported storage backend: {config.storage_backend}")

    publisher = None
    if config.mqtt.enabled:
        publisher = ReadingPublisher(config.mqtt, sensor_id=config.antares.device_id)
        if not publisher.connect():
            logger.warning("MQTT publishing enabled but broker is unreachable")

    logger.info(f"Using {config.storage_backend} reading store")
    return MonitorContext(store, config.status, publisher)
