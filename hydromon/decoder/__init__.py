"""Telemetry payload decoding."""

from .content_parser import parse
from .hex_decoder import decode, decode_trace, normalize_hex
from .profiles import DeviceFamily, DeviceProfile, resolve_family

__all__ = [
    "parse",
    "decode",
    "decode_trace",
    "normalize_hex",
    "DeviceFamily",
    "DeviceProfile",
    "resolve_family",
]
