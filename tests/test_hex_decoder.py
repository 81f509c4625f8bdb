"""Tests for packed hex decoding and device family resolution."""

import pytest

from hydromon.decoder import DeviceFamily, DeviceProfile, decode, decode_trace, resolve_family
from hydromon.decoder.hex_decoder import normalize_hex
from hydromon.shared.exceptions import InvalidHex


@pytest.mark.parametrize(
    "code,family",
    [
        ("CZ01", DeviceFamily.SOIL),
        ("cz-7", DeviceFamily.SOIL),
        ("MZ3", DeviceFamily.WATER_EC),
        ("SZ3", DeviceFamily.WATER_EC),
        ("GZ9", DeviceFamily.CLIMATE),
        ("XX01", DeviceFamily.DEFAULT),
        ("default", DeviceFamily.DEFAULT),
        ("", DeviceFamily.DEFAULT),
        (None, DeviceFamily.DEFAULT),
    ],
)
def test_resolve_family(code, family):
    assert resolve_family(code) is family


def test_device_profile_from_code():
    profile = DeviceProfile.from_code("CZ01")
    assert profile.device_code == "CZ01"
    assert profile.family is DeviceFamily.SOIL
    assert profile.layout.min_length == 16

    assert DeviceProfile.from_code(None).device_code == "default"


def test_normalize_hex():
    assert normalize_hex(" 00f0 003c\n1c20 ") == "00F0003C1C20"


def test_decode_default_layout():
    reading = decode("00F0003C1C20")
    assert reading.temperature == pytest.approx(24.0)
    assert reading.ph == pytest.approx(6.0)
    assert reading.tds_level == pytest.approx(720.0)
    assert reading.humidity is None
    assert reading.moisture is None


def test_decode_fields_are_unsigned():
    """High bit set must not be read as a negative number."""
    reading = decode("FB0AF80B0002", "default")
    assert reading.temperature == pytest.approx(6426.6)
    assert reading.ph == pytest.approx(6349.9)
    assert reading.tds_level == pytest.approx(0.2)


def test_decode_ignores_case_and_whitespace():
    assert decode("00f0 003c 1c20") == decode("00F0003C1C20")


def test_decode_soil_layout():
    reading = decode("025A02BC00C800F5", "CZ01")
    assert reading.ph == pytest.approx(6.02)
    assert reading.moisture == pytest.approx(70.0)
    assert reading.ec == pytest.approx(2.0)
    assert reading.temperature == pytest.approx(24.5)
    assert reading.tds_level == reading.ec


@pytest.mark.parametrize("code", ["MZ01", "SZ01"])
def test_decode_water_ec_layout(code):
    reading = decode("0258009600FA", code)
    assert reading.ph == pytest.approx(6.0)
    assert reading.ec == pytest.approx(1.5)
    assert reading.temperature == pytest.approx(25.0)
    assert reading.tds_level == pytest.approx(1.5)
    assert reading.moisture is None


def test_decode_climate_layout_fills_fixed_values():
    reading = decode("00FA02880320", "GZ01")
    assert reading.temperature == pytest.approx(25.0)
    assert reading.humidity == pytest.approx(64.8)
    assert reading.light == pytest.approx(800.0)
    assert reading.ph == 7.0
    assert reading.tds_level == 0.0


def test_decode_ignores_trailing_characters():
    assert decode("00F0003C1C20FFFF") == decode("00F0003C1C20")


def test_decode_too_short():
    with pytest.raises(InvalidHex):
        decode("00F0003C")


def test_decode_short_for_soil_layout():
    # Long enough for default, too short for CZ
    with pytest.raises(InvalidHex):
        decode("025A02BC00C8", "CZ01")


def test_decode_non_hex():
    with pytest.raises(InvalidHex):
        decode("00G0003C1C20")


def test_decode_non_string():
    with pytest.raises(InvalidHex):
        decode(12345)


def test_decode_trace_reports_each_field():
    trace = decode_trace("fb0a f80b 0002", "default")

    assert trace["originalHex"] == "fb0a f80b 0002"
    assert trace["normalizedHex"] == "FB0AF80B0002"
    assert trace["family"] == "default"
    assert trace["decodedData"]["tdsLevel"] == pytest.approx(0.2)

    temperature = trace["fields"][0]
    assert temperature["field"] == "temperature"
    assert temperature["hex"] == "FB0A"
    assert temperature["decimal"] == 64266
    assert temperature["value"] == pytest.approx(6426.6)
    assert temperature["valueDiv100"] == pytest.approx(642.66)
    assert temperature["signedInt16"] == -1270
    assert temperature["signedDiv10"] == pytest.approx(-127.0)

    assert "signedInt16" not in trace["fields"][1]


def test_decode_trace_invalid():
    with pytest.raises(InvalidHex):
        decode_trace("zz", "default")
