"""Normalization of upstream content-instance bodies into readings."""

import json
import logging
from typing import Any, Optional

from hydromon.shared.exceptions import InvalidHex
from hydromon.shared.models import OPTIONAL_METRICS, DecodedReading, finite_or_zero

from .hex_decoder import decode

logger = logging.getLogger(__name__)


def _as_object(content: Any) -> Optional[dict]:
    """Turn raw content into a dict, or None if it is structurally unusable."""
    if isinstance(content, dict):
        return content
    if isinstance(content, str):
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, ValueError):
            return {"data": content}
        if isinstance(data, dict):
            return data
        if isinstance(data, str):
            return {"data": data}
        # e.g. an all-digit hex payload is also a valid JSON number
        return {"data": content}
    return None


def _read_flat_fields(data: dict) -> DecodedReading:
    tds_source = data.get("tdsLevel")
    if tds_source is None:
        tds_source = data.get("waterLevel")

    optional = {}
    for metric in OPTIONAL_METRICS:
        if data.get(metric) is not None:
            optional[metric] = finite_or_zero(data[metric])

    return DecodedReading(
        temperature=finite_or_zero(data.get("temperature")),
        ph=finite_or_zero(data.get("ph")),
        tds_level=finite_or_zero(tds_source),
        **optional,
    )


def parse(content: Any, device_code: Optional[str] = None) -> Optional[DecodedReading]:
    """Parse one content instance into a reading.

    Args:
        content: A dict, a JSON string, or a raw hex string.
        device_code: Device-type code used for hex payloads.

    Returns:
        The reading, or None if content is neither a string nor an object.
        Bad numbers inside an object become 0 instead of failing.
    """
    data = _as_object(content)
    if data is None:
        logger.warning(f"Unreadable content of type {type(content).__name__}")
        return None

    payload = data.get("data")
    if isinstance(payload, str):
        try:
            return decode(payload, device_code)
        except InvalidHex as e:
            logger.debug(f"Hex decode failed, falling back to flat fields: {e}")

    return _read_flat_fields(data)
