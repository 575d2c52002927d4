"""
2D similarity transform (Helmert 4-parameter) value object.

Maps model-frame meters (x, y) to CRS planar meters (X, Y):

    X = a*x - b*y + tx
    Y = b*x + a*y + ty

with a = scale*cos(rotation), b = scale*sin(rotation). Rotation is
counter-clockwise positive, in radians.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Optional

from .calibration_point import iso_utc_now


@dataclass(frozen=True)
class SimilarityTransform:
    """
    Self-describing similarity transform.

    Attributes:
        tx, ty: Translation in CRS meters
        rotation: Rotation in radians (counter-clockwise)
        scale: Uniform scale factor
        origin_model: Anchor point in model meters (x, y)
        origin_geographic: Anchor point as WGS84 (lat, lon). For the local
            CRS this is also the origin of the planar approximation.
        computed_at: ISO-8601 UTC time of the solve
    """

    tx: float
    ty: float
    rotation: float
    scale: float
    origin_model: Tuple[float, float] = (0.0, 0.0)
    origin_geographic: Tuple[float, float] = (0.0, 0.0)
    computed_at: Optional[str] = None

    def __post_init__(self):
        if not math.isfinite(self.scale) or self.scale <= 0:
            raise ValueError("scale must be positive and finite")
        if self.computed_at is None:
            object.__setattr__(self, "computed_at", iso_utc_now())

    @property
    def a(self) -> float:
        return self.scale * math.cos(self.rotation)

    @property
    def b(self) -> float:
        return self.scale * math.sin(self.rotation)

    @property
    def rotation_degrees(self) -> float:
        return math.degrees(self.rotation)

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        """Transform model meters to CRS planar meters."""
        a, b = self.a, self.b
        return (a * x - b * y + self.tx, b * x + a * y + self.ty)

    def inverse(self, X: float, Y: float) -> Tuple[float, float]:
        """Transform CRS planar meters back to model meters."""
        a, b = self.a, self.b
        dx = X - self.tx
        dy = Y - self.ty
        s2 = a * a + b * b
        return ((a * dx + b * dy) / s2, (-b * dx + a * dy) / s2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "helmert_2d",
            "translation": {"x": self.tx, "y": self.ty},
            "rotation_rad": self.rotation,
            "rotation_deg": self.rotation_degrees,
            "scale": self.scale,
            "origin_model": {"x": self.origin_model[0], "y": self.origin_model[1]},
            "origin_geographic": {"lat": self.origin_geographic[0], "lon": self.origin_geographic[1]},
            "computed_at": self.computed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimilarityTransform':
        translation = data.get("translation", {})
        origin_model = data.get("origin_model") or {"x": 0.0, "y": 0.0}
        origin_geo = data.get("origin_geographic") or data.get("origin_gps") or {"lat": 0.0, "lon": 0.0}
        rotation = data.get("rotation_rad")
        if rotation is None:
            rotation = math.radians(data.get("rotation_deg", 0.0))
        return cls(
            tx=float(translation.get("x", 0.0)),
            ty=float(translation.get("y", 0.0)),
            rotation=float(rotation),
            scale=float(data.get("scale", 1.0)),
            origin_model=(float(origin_model["x"]), float(origin_model["y"])),
            origin_geographic=(
                float(origin_geo["lat"]),
                float(origin_geo.get("lon", origin_geo.get("lng", 0.0))),
            ),
            computed_at=data.get("computed_at"),
        )

    def __repr__(self) -> str:
        return (
            f"SimilarityTransform(t=({self.tx:.3f}, {self.ty:.3f}), "
            f"rot={self.rotation_degrees:.6f}deg, scale={self.scale:.8f})"
        )
