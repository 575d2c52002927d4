"""
Length units for model and CRS coordinates.

All transform math runs in meters. Model coordinates arrive from the model
host in the model's declared unit; CRS planar coordinates come out of the
projection in the CRS unit. Both are normalized at the boundary.
"""

from enum import Enum
from typing import Any, Dict


class LengthUnit(Enum):
    """Linear unit of a model or coordinate reference system."""
    MILLIMETERS = "millimeters"
    METERS = "meters"
    FEET = "feet"
    US_SURVEY_FEET = "us_survey_feet"

    @property
    def to_meters(self) -> float:
        """Multiplicative factor converting one unit to meters."""
        return _TO_METERS[self]

    @classmethod
    def parse(cls, value: Any) -> 'LengthUnit':
        """Parse a unit from an enum, its value, or a common abbreviation."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        return cls(key)


_TO_METERS: Dict[LengthUnit, float] = {
    LengthUnit.MILLIMETERS: 0.001,
    LengthUnit.METERS: 1.0,
    LengthUnit.FEET: 0.3048,
    LengthUnit.US_SURVEY_FEET: 1200.0 / 3937.0,
}

_ALIASES: Dict[str, LengthUnit] = {
    "mm": LengthUnit.MILLIMETERS,
    "m": LengthUnit.METERS,
    "ft": LengthUnit.FEET,
    "us-ft": LengthUnit.US_SURVEY_FEET,
    "ftus": LengthUnit.US_SURVEY_FEET,
}

# Units a model host may declare for its native coordinates.
MODEL_UNITS = (LengthUnit.MILLIMETERS, LengthUnit.METERS, LengthUnit.FEET)


def to_meters(value: float, unit: LengthUnit) -> float:
    """Convert a length in ``unit`` to meters."""
    return float(value) * unit.to_meters


def from_meters(value: float, unit: LengthUnit) -> float:
    """Convert a length in meters to ``unit``."""
    return float(value) / unit.to_meters
