"""Configuration for the ingestion service."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from hydromon.decoder.profiles import DeviceProfile
from hydromon.shared.config import get_log_level, load_yaml_config
from hydromon.shared.database import DBConfig
from hydromon.shared.mqtt import MQTTConfig

DEFAULT_BASE_URL = "https://platform.antares.id:8443/~/antares-cse/antares-id"


@dataclass
class AntaresConfig:
    """Upstream platform access."""
    api_key: Optional[str] = None
    application_id: str = "hydroponic_system"
    device_id: str = "hydro_sensor"
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0  # seconds

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_dict(cls, data: dict) -> "AntaresConfig":
        """Create config from dictionary."""
        return cls(
            api_key=data.get("api_key"),
            application_id=data.get("application_id", "hydroponic_system"),
            device_id=data.get("device_id", "hydro_sensor"),
            base_url=data.get("base_url", DEFAULT_BASE_URL).rstrip("/"),
            timeout=data.get("timeout", 10.0),
        )


@dataclass
class StatusConfig:
    """Values shown in the resource section of the system status."""
    cpu_usage: float = 23.0
    memory_usage: float = 30.0
    disk_path: str = "/"

    @classmethod
    def from_dict(cls, data: dict) -> "StatusConfig":
        return cls(
            cpu_usage=data.get("cpu_usage", 23.0),
            memory_usage=data.get("memory_usage", 30.0),
            disk_path=data.get("disk_path", "/"),
        )


@dataclass
class Config:
    """Main configuration container."""
    antares: AntaresConfig = field(default_factory=AntaresConfig)
    device: DeviceProfile = field(default_factory=lambda: DeviceProfile.from_code(None))
    collection_interval: float = 10.0  # seconds
    history_limit: int = 100
    storage_backend: str = "memory"  # memory | mysql
    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    status: StatusConfig = field(default_factory=StatusConfig)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create config from dictionary."""
        device_data = data.get("device", {})
        storage_data = data.get("storage", {})

        return cls(
            antares=AntaresConfig.from_dict(data.get("antares", {})),
            device=DeviceProfile.from_code(device_data.get("code")),
            collection_interval=data.get("collection_interval", 10.0),
            history_limit=data.get("history_limit", 100),
            storage_backend=storage_data.get("backend", "memory"),
            mqtt=MQTTConfig.from_dict(data.get("mqtt", {})),
            status=StatusConfig.from_dict(data.get("status", {})),
            log_level=get_log_level(data),
        )

    def db_config(self) -> DBConfig:
        """Database settings, always taken from the environment."""
        return DBConfig.from_env()


def load_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to YAML config file. If not provided, looks for
            HYDROMON_CONFIG, then config/config-{env}.yaml; a missing
            default file just means defaults.

    Returns:
        Config instance with environment overrides applied.
    """
    data = load_yaml_config(config_path, required=config_path is not None)
    config = Config.from_dict(data)

    # Environment variable overrides
    if api_key := (os.environ.get("ANTARES_API_KEY") or os.environ.get("API_KEY")):
        config.antares.api_key = api_key
    if device_id := os.environ.get("ANTARES_DEVICE_ID"):
        config.antares.device_id = device_id
    if application_id := os.environ.get("ANTARES_APPLICATION_ID"):
        config.antares.application_id = application_id
    if base_url := os.environ.get("ANTARES_BASE_URL"):
        config.antares.base_url = base_url.rstrip("/")
    if device_code := os.environ.get("HYDROMON_DEVICE_CODE"):
        config.device = DeviceProfile.from_code(device_code)
    if mqtt_broker := os.environ.get("MQTT_BROKER"):
        config.mqtt.broker = mqtt_broker

    return config
