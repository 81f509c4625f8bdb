"""Packed hex payload decoding.

A payload is a run of 4-character hex fields, each one unsigned 16-bit
big-endian integer. The device family decides the field order and the
divisor applied to each field; see profiles.LAYOUTS.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from hydromon.shared.exceptions import InvalidHex
from hydromon.shared.models import DecodedReading

from .profiles import FIELD_WIDTH, LAYOUTS, Layout, resolve_family

_FIELD_RE = re.compile(r"[0-9A-F]{4}")


def normalize_hex(payload: str) -> str:
    """Drop all whitespace and uppercase."""
    return "".join(payload.split()).upper()


def _read_fields(text: str, layout: Layout) -> List[Tuple[str, int]]:
    """Slice and parse the fields required by a layout.

    Raises:
        InvalidHex: If the payload is too short or a field is not hex.
    """
    if len(text) < layout.min_length:
        raise InvalidHex(
            f"Payload has {len(text)} hex characters, "
            f"{layout.family.value} layout needs {layout.min_length}"
        )

    fields = []
    for index, field_spec in enumerate(layout.fields):
        chunk = text[index * FIELD_WIDTH:(index + 1) * FIELD_WIDTH]
        if not _FIELD_RE.fullmatch(chunk):
            raise InvalidHex(f"Field {field_spec.name} is not valid hex: {chunk!r}")
        fields.append((chunk, int(chunk, 16)))
    return fields


def _build_reading(layout: Layout, raw_values: List[int]) -> DecodedReading:
    values: Dict[str, float] = {}
    for field_spec, raw in zip(layout.fields, raw_values):
        values[field_spec.name] = raw / field_spec.scale
    for target, source in layout.derived.items():
        values[target] = values[source]
    values.update(layout.fixed)
    return DecodedReading(**values)


def decode(payload: str, device_code: Optional[str] = None) -> DecodedReading:
    """Decode a packed hex payload for the given device-type code.

    Args:
        payload: Hex string, whitespace and case are ignored.
        device_code: Device-type code used to pick the layout.

    Returns:
        The decoded reading.

    Raises:
        InvalidHex: If the payload is malformed or too short.
    """
    if not isinstance(payload, str):
        raise InvalidHex(f"Payload must be a string, got {type(payload).__name__}")

    layout = LAYOUTS[resolve_family(device_code)]
    fields = _read_fields(normalize_hex(payload), layout)
    return _build_reading(layout, [raw for _, raw in fields])


def _signed16(value: int) -> int:
    return value - 65536 if value > 32767 else value


def decode_trace(payload: str, device_code: Optional[str] = None) -> Dict[str, Any]:
    """Decode a payload and report every intermediate value.

    Used to verify a device's output by hand: for each field the hex
    slice, its integer value, the divisor and the scaled value, plus the
    /10 and /100 alternatives. Temperature fields also carry the signed
    16-bit interpretation, which the decoder itself never applies.

    Raises:
        InvalidHex: If the payload is malformed or too short.
    """
    family = resolve_family(device_code)
    layout = LAYOUTS[family]
    text = normalize_hex(payload)
    fields = _read_fields(text, layout)
    reading = _build_reading(layout, [raw for _, raw in fields])

    trace = []
    for field_spec, (chunk, raw) in zip(layout.fields, fields):
        entry: Dict[str, Any] = {
            "field": field_spec.name,
            "hex": chunk,
            "decimal": raw,
            "scale": field_spec.scale,
            "value": raw / field_spec.scale,
            "valueDiv10": raw / 10,
            "valueDiv100": raw / 100,
        }
        if field_spec.name == "temperature":
            signed = _signed16(raw)
            entry["signedInt16"] = signed
            entry["signedDiv10"] = signed / 10
            entry["signedDiv100"] = signed / 100
        trace.append(entry)

    return {
        "originalHex": payload,
        "normalizedHex": text,
        "deviceCode": device_code or "default",
        "family": family.value,
        "decodedData": reading.to_dict(),
        "fields": trace,
    }
