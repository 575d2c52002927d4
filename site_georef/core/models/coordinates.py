"""
Plain coordinate value types exchanged with the model host and callers.

Conventions:
- ModelPoint: model-frame coordinates in the model's native length unit
- GeoPoint: WGS84 latitude/longitude in decimal degrees, altitude in meters
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ModelPoint:
    """A point picked in the model viewer, in model units."""

    x: float
    y: float
    z: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 geographic position."""

    latitude: float
    longitude: float
    altitude: Optional[float] = None

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def to_dict(self) -> Dict[str, Any]:
        return {"latitude": self.latitude, "longitude": self.longitude, "altitude": self.altitude}
