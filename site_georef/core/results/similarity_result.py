"""
Result classes for the similarity transform fit.

This module defines the output of the similarity solve: the transform, the
per-point residuals, RMSE / maximum error, and the advisory quality tier.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.settings import CalibrationQuality
from ..models.transform import SimilarityTransform


# RMSE upper bounds (meters, exclusive) of each quality tier.
EXCELLENT_RMSE_M = 1.0
GOOD_RMSE_M = 3.0
FAIR_RMSE_M = 10.0


def classify_quality(rmse_m: float) -> CalibrationQuality:
    """Map a fit RMSE in meters to its quality tier."""
    if rmse_m < EXCELLENT_RMSE_M:
        return CalibrationQuality.EXCELLENT
    if rmse_m < GOOD_RMSE_M:
        return CalibrationQuality.GOOD
    if rmse_m < FAIR_RMSE_M:
        return CalibrationQuality.FAIR
    return CalibrationQuality.POOR


def _json_safe_value(value: Any) -> Any:
    """Convert non-JSON-safe floats (nan/inf) to None."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


@dataclass
class PointResidual:
    """
    Residual of a single point pair after the fit.

    Attributes:
        point_id: ID of the calibration point (or index for bare solves)
        predicted_x, predicted_y: transform(source) in destination meters
        observed_x, observed_y: Destination coordinates
        dx, dy: observed - predicted
        error: Euclidean length of (dx, dy) in meters
    """

    point_id: str
    predicted_x: float
    predicted_y: float
    observed_x: float
    observed_y: float

    @property
    def dx(self) -> float:
        return self.observed_x - self.predicted_x

    @property
    def dy(self) -> float:
        return self.observed_y - self.predicted_y

    @property
    def error(self) -> float:
        return math.hypot(self.dx, self.dy)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "point_id": self.point_id,
            "predicted": {"x": self.predicted_x, "y": self.predicted_y},
            "observed": {"x": self.observed_x, "y": self.observed_y},
            "dx": self.dx,
            "dy": self.dy,
            "error_m": _json_safe_value(self.error),
        }


@dataclass
class SimilarityFit:
    """
    Complete output of a similarity solve.

    Attributes:
        transform: Solved SimilarityTransform
        residuals: Per-point residuals in input order
        condition_number: Ratio of extreme singular values of the design matrix
        messages: Warnings and informational messages
    """

    transform: SimilarityTransform
    residuals: List[PointResidual] = field(default_factory=list)
    condition_number: Optional[float] = None
    messages: List[str] = field(default_factory=list)

    @property
    def errors(self) -> List[float]:
        return [r.error for r in self.residuals]

    @property
    def rmse(self) -> float:
        """Root-mean-square of residual distances (meters)."""
        if not self.residuals:
            return 0.0
        return math.sqrt(sum(e * e for e in self.errors) / len(self.residuals))

    @property
    def max_error(self) -> float:
        return max(self.errors, default=0.0)

    @property
    def quality(self) -> CalibrationQuality:
        return classify_quality(self.rmse)

    @property
    def redundancy(self) -> int:
        """Degrees of freedom: 2 equations per point minus 4 unknowns."""
        return 2 * len(self.residuals) - 4

    def residual_for(self, point_id: str) -> PointResidual:
        for r in self.residuals:
            if r.point_id == point_id:
                return r
        raise KeyError(f"No residual for point '{point_id}'")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transform": self.transform.to_dict(),
            "residuals": [r.to_dict() for r in self.residuals],
            "rmse_m": _json_safe_value(self.rmse),
            "max_error_m": _json_safe_value(self.max_error),
            "quality": self.quality.value,
            "redundancy": self.redundancy,
            "condition_number": _json_safe_value(self.condition_number),
            "messages": list(self.messages),
        }
