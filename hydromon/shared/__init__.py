"""Shared utilities for hydromon services."""

from .models import (
    AlertSettings,
    ConnectionStatus,
    DecodedReading,
    StoredReading,
    SystemStatus,
)
from .storage import MemoryReadingStore, ReadingStore
from .config import load_yaml_config, get_config_path
from .logging import setup_logging

__all__ = [
    "AlertSettings",
    "ConnectionStatus",
    "DecodedReading",
    "StoredReading",
    "SystemStatus",
    "MemoryReadingStore",
    "ReadingStore",
    "load_yaml_config",
    "get_config_path",
    "setup_logging",
]
