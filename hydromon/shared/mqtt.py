"""MQTT configuration and the live reading publisher."""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from .models import OPTIONAL_METRICS, StoredReading

logger = logging.getLogger(__name__)

METRIC_UNITS = {
    "temperature": "C",
    "ph": "pH",
    "tds_level": "ppm",
    "moisture": "%",
    "ec": "mS/cm",
    "humidity": "%",
    "light": "lux",
}


@dataclass
class MQTTConfig:
    """MQTT broker configuration."""
    broker: str = "localhost"
    port: int = 1883
    client_id: str = "hydromon"
    keepalive: int = 60
    qos: int = 1
    topic_prefix: str = "hydromon/reservoir"
    enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "MQTTConfig":
        """Create config from dictionary."""
        return cls(
            broker=data.get("broker", "localhost"),
            port=data.get("port", 1883),
            client_id=data.get("client_id", "hydromon"),
            keepalive=data.get("keepalive", 60),
            qos=data.get("qos", 1),
            topic_prefix=data.get("topic_prefix", "hydromon/reservoir"),
            enabled=data.get("enabled", False),
        )


def create_sensor_payload(
    value: float,
    unit: str,
    sensor_id: str,
    timestamp: Optional[float] = None,
) -> str:
    """Create a standardized MQTT payload for sensor readings.

    Args:
        value: The sensor value.
        unit: Unit of measurement (e.g., 'C', 'ppm').
        sensor_id: Identifier for the sensor.
        timestamp: Unix timestamp (defaults to current time).

    Returns:
        JSON string payload.
    """
    return json.dumps({
        "value": value,
        "unit": unit,
        "ts": timestamp or time.time(),
        "sensor": sensor_id,
    })


class ReadingPublisher:
    """Publishes stored readings to MQTT, one topic per metric."""

    def __init__(self, config: MQTTConfig, sensor_id: str):
        """Initialize MQTT publisher.

        Args:
            config: MQTT configuration.
            sensor_id: Identifier put in every payload (the device id).
        """
        self.config = config
        self.sensor_id = sensor_id
        self.client: Optional[mqtt.Client] = None
        self._connected = False
        self._connect_event = threading.Event()

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code == 0:
            logger.info(
                f"Connected to MQTT broker at {self.config.broker}:{self.config.port}"
            )
            self._connected = True
        else:
            logger.error(f"Failed to connect to MQTT broker: {reason_code}")
            self._connected = False
        self._connect_event.set()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        self._connected = False
        if reason_code != 0:
            logger.warning(f"Unexpected MQTT disconnection (reason={reason_code})")
        else:
            logger.info("Disconnected from MQTT broker")

    def connect(self, timeout: float = 10.0) -> bool:
        """Connect to the MQTT broker.

        Args:
            timeout: Timeout in seconds to wait for connection.

        Returns:
            True if connected successfully, False otherwise.
        """
        self._connect_event.clear()

        self.client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=self.config.client_id,
        )
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        logger.info(
            f"Connecting to MQTT broker at {self.config.broker}:{self.config.port}"
        )

        try:
            self.client.connect(
                self.config.broker, self.config.port, keepalive=self.config.keepalive
            )
            self.client.loop_start()

            if self._connect_event.wait(timeout=timeout):
                return self._connected
            logger.error("Timeout waiting for MQTT connection")
            return False
        except Exception as e:
            logger.error(f"Failed to connect to MQTT broker: {e}")
            return False

    def disconnect(self):
        """Disconnect from the MQTT broker."""
        if self.client:
            self.client.loop_stop()
            self.client.disconnect()
            self.client = None
            self._connected = False

    def publish_reading(self, stored: StoredReading) -> int:
        """Publish every metric of a stored reading.

        Topics are {topic_prefix}/{metric}; optional metrics are only
        published when the device reported them.

        Returns:
            Number of metrics handed to the client.
        """
        if not self._connected or not self.client:
            logger.debug("Not connected to MQTT broker, skipping publish")
            return 0

        ts = stored.timestamp.timestamp()
        metrics = ["temperature", "ph", "tds_level"] + list(OPTIONAL_METRICS)
        published = 0

        for metric in metrics:
            value = getattr(stored.reading, metric)
            if value is None:
                continue
            topic = f"{self.config.topic_prefix}/{metric}"
            payload = create_sensor_payload(value, METRIC_UNITS[metric], self.sensor_id, ts)

            result = self.client.publish(topic, payload, qos=self.config.qos)
            if result.rc == mqtt.MQTT_ERR_SUCCESS:
                logger.debug(f"Published to {topic}: {payload}")
                published += 1
            else:
                logger.warning(f"Failed to publish to {topic}: rc={result.rc}")

        return published

    @property
    def is_connected(self) -> bool:
        """Check if connected to MQTT broker."""
        return self._connected
