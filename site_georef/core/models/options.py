"""
Calibration options.

Numerical tolerances for the similarity solve and the parameters of the
planar approximation used by the local CRS. Quality tier thresholds are
fixed constants in ``results.similarity_result`` and are not configurable.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CalibrationOptions:
    """
    Configuration options for the calibration solve.

    Attributes:
        collinearity_tolerance: Ratio of smallest to largest singular value of
            the centred model points below which 3+ points count as collinear
            (default: 1e-9)
        coincidence_tolerance_m: Spread (meters) below which all model points,
            or all projected geographic points, count as coincident (default: 1e-6)
        rank_tolerance: Relative singular value cutoff for the least-squares
            solve; a rank-deficient design matrix is degenerate (default: 1e-12)
        earth_radius_m: Sphere radius for the local equirectangular
            approximation and great-circle distances (default: 6371000)
        local_extent_warning_m: Point spread above which the local
            approximation is logged as inaccurate (default: 2000)
    """

    collinearity_tolerance: float = 1e-9
    coincidence_tolerance_m: float = 1e-6
    rank_tolerance: float = 1e-12
    earth_radius_m: float = 6371000.0
    local_extent_warning_m: float = 2000.0

    def __post_init__(self):
        """Validate options after initialization."""
        if not 0 <= self.collinearity_tolerance < 1:
            raise ValueError("collinearity_tolerance must be in [0, 1)")

        if self.coincidence_tolerance_m < 0:
            raise ValueError("coincidence_tolerance_m cannot be negative")

        if not 0 < self.rank_tolerance < 1:
            raise ValueError("rank_tolerance must be between 0 and 1")

        if self.earth_radius_m <= 0:
            raise ValueError("earth_radius_m must be positive")

        if self.local_extent_warning_m <= 0:
            raise ValueError("local_extent_warning_m must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collinearity_tolerance": self.collinearity_tolerance,
            "coincidence_tolerance_m": self.coincidence_tolerance_m,
            "rank_tolerance": self.rank_tolerance,
            "earth_radius_m": self.earth_radius_m,
            "local_extent_warning_m": self.local_extent_warning_m,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalibrationOptions':
        return cls(
            collinearity_tolerance=data.get("collinearity_tolerance", 1e-9),
            coincidence_tolerance_m=data.get("coincidence_tolerance_m", 1e-6),
            rank_tolerance=data.get("rank_tolerance", 1e-12),
            earth_radius_m=data.get("earth_radius_m", 6371000.0),
            local_extent_warning_m=data.get("local_extent_warning_m", 2000.0),
        )

    @classmethod
    def default(cls) -> 'CalibrationOptions':
        return cls()

    @classmethod
    def strict(cls) -> 'CalibrationOptions':
        """
        Options that also reject nearly collinear point sets.

        Returns:
            CalibrationOptions with a looser collinearity cutoff
        """
        return cls(collinearity_tolerance=1e-3, coincidence_tolerance_m=1e-3)

    def __repr__(self) -> str:
        return (
            f"CalibrationOptions("
            f"collinear={self.collinearity_tolerance}, "
            f"coincident={self.coincidence_tolerance_m})"
        )
