"""Device families and their packed hex field layouts.

Each family is resolved once from the configured device code. Adding a
family means adding a DeviceFamily member, a Layout, and a prefix entry.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

FIELD_WIDTH = 4  # hex characters per field, one unsigned 16-bit integer


class DeviceFamily(Enum):
    """Device families distinguished by their two-letter code prefix."""
    SOIL = "soil"           # CZ: pH, moisture, EC, temperature
    WATER_EC = "water_ec"   # MZ / SZ: pH, EC, temperature
    CLIMATE = "climate"     # GZ: temperature, humidity, light
    DEFAULT = "default"     # temperature, pH, TDS


@dataclass(frozen=True)
class FieldSpec:
    """One packed field: which reading attribute it fills and its divisor."""
    name: str
    scale: int


@dataclass(frozen=True)
class Layout:
    family: DeviceFamily
    fields: Tuple[FieldSpec, ...]
    # target attribute -> source attribute copied after decoding
    derived: Dict[str, str] = field(default_factory=dict)
    # attribute -> constant for sensors the family does not carry
    fixed: Dict[str, float] = field(default_factory=dict)

    @property
    def min_length(self) -> int:
        return FIELD_WIDTH * len(self.fields)


LAYOUTS: Dict[DeviceFamily, Layout] = {
    DeviceFamily.SOIL: Layout(
        family=DeviceFamily.SOIL,
        fields=(
            FieldSpec("ph", 100),
            FieldSpec("moisture", 10),
            FieldSpec("ec", 100),
            FieldSpec("temperature", 10),
        ),
        derived={"tds_level": "ec"},
    ),
    DeviceFamily.WATER_EC: Layout(
        family=DeviceFamily.WATER_EC,
        fields=(
            FieldSpec("ph", 100),
            FieldSpec("ec", 100),
            FieldSpec("temperature", 10),
        ),
        derived={"tds_level": "ec"},
    ),
    DeviceFamily.CLIMATE: Layout(
        family=DeviceFamily.CLIMATE,
        fields=(
            FieldSpec("temperature", 10),
            FieldSpec("humidity", 10),
            FieldSpec("light", 1),
        ),
        fixed={"ph": 7.0, "tds_level": 0.0},
    ),
    DeviceFamily.DEFAULT: Layout(
        family=DeviceFamily.DEFAULT,
        fields=(
            FieldSpec("temperature", 10),
            FieldSpec("ph", 10),
            FieldSpec("tds_level", 10),
        ),
    ),
}

# Checked in order, first match wins
PREFIX_TABLE: Tuple[Tuple[str, DeviceFamily], ...] = (
    ("CZ", DeviceFamily.SOIL),
    ("MZ", DeviceFamily.WATER_EC),
    ("SZ", DeviceFamily.WATER_EC),
    ("GZ", DeviceFamily.CLIMATE),
)


def resolve_family(device_code: Optional[str]) -> DeviceFamily:
    """Map a device-type code to its family by prefix.

    Args:
        device_code: Code such as 'CZ01'; case-insensitive. None or an
            unknown code selects the default layout.

    Returns:
        The matching DeviceFamily.
    """
    code = (device_code or "").strip().upper()
    for prefix, family in PREFIX_TABLE:
        if code.startswith(prefix):
            return family
    return DeviceFamily.DEFAULT


@dataclass(frozen=True)
class DeviceProfile:
    """Decoding profile of the single configured device."""
    device_code: str
    family: DeviceFamily

    @classmethod
    def from_code(cls, device_code: Optional[str]) -> "DeviceProfile":
        code = (device_code or "default").strip() or "default"
        return cls(device_code=code, family=resolve_family(code))

    @property
    def layout(self) -> Layout:
        return LAYOUTS[self.family]
