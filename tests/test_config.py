"""Tests for configuration loading."""

import pytest
import yaml

from hydromon.decoder.profiles import DeviceFamily
from hydromon.ingest.config import DEFAULT_BASE_URL, Config, load_config
from hydromon.shared.config import get_config_path, get_log_level, load_yaml_config

ENV_VARS = [
    "ANTARES_API_KEY",
    "API_KEY",
    "ANTARES_DEVICE_ID",
    "ANTARES_APPLICATION_ID",
    "ANTARES_BASE_URL",
    "HYDROMON_DEVICE_CODE",
    "HYDROMON_CONFIG",
    "HYDROMON_ENV",
    "MQTT_BROKER",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep load_dotenv away from any developer .env
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "log_level": "debug",
        "antares": {"application_id": "greenhouse", "device_id": "tank1", "base_url": "https://example.test/"},
        "device": {"code": "MZ01"},
        "collection_interval": 30,
        "storage": {"backend": "memory"},
        "mqtt": {"enabled": False, "broker": "mqtt.local"},
    }))
    return path


def test_defaults():
    config = Config.from_dict({})
    assert config.antares.api_key is None
    assert config.antares.base_url == DEFAULT_BASE_URL
    assert config.antares.timeout == 10.0
    assert config.collection_interval == 10.0
    assert config.device.family is DeviceFamily.DEFAULT
    assert config.storage_backend == "memory"
    assert config.log_level == "INFO"


def test_load_config_file(config_file):
    config = load_config(config_file)

    assert config.antares.application_id == "greenhouse"
    assert config.antares.base_url == "https://example.test"
    assert config.device.family is DeviceFamily.WATER_EC
    assert config.collection_interval == 30
    assert config.mqtt.broker == "mqtt.local"
    assert config.log_level == "DEBUG"
    assert not config.antares.has_credentials


def test_env_overrides(config_file, monkeypatch):
    monkeypatch.setenv("ANTARES_API_KEY", "secret")
    monkeypatch.setenv("ANTARES_DEVICE_ID", "tank2")
    monkeypatch.setenv("HYDROMON_DEVICE_CODE", "cz02")
    monkeypatch.setenv("MQTT_BROKER", "broker.env")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    config = load_config(config_file)

    assert config.antares.api_key == "secret"
    assert config.antares.has_credentials
    assert config.antares.device_id == "tank2"
    assert config.device.family is DeviceFamily.SOIL
    assert config.mqtt.broker == "broker.env"
    assert config.log_level == "WARNING"


def test_api_key_fallback(config_file, monkeypatch):
    monkeypatch.setenv("API_KEY", "legacy")
    assert load_config(config_file).antares.api_key == "legacy"


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_missing_default_file_is_optional(tmp_path):
    assert load_yaml_config(tmp_path / "nope.yaml", load_env=False, required=False) == {}


def test_hydromon_config_env(config_file, monkeypatch):
    monkeypatch.setenv("HYDROMON_CONFIG", str(config_file))
    assert load_yaml_config(load_env=False)["device"]["code"] == "MZ01"


def test_get_config_path(tmp_path, monkeypatch):
    monkeypatch.setenv("HYDROMON_ENV", "staging")
    assert get_config_path(config_dir=tmp_path) == tmp_path / "config-staging.yaml"


def test_get_log_level():
    assert get_log_level({}) == "INFO"
    assert get_log_level({"log_level": "error"}) == "ERROR"
