"""Exception hierarchy for site georeferencing.

Geometric and data-insufficiency conditions are raised by the solver but the
calibration engine absorbs them into calibration state. Only configuration
errors (an unknown CRS) and conversion requests against an uncalibrated
project reach callers as exceptions.
"""

from typing import Any, Dict, Optional


class GeorefError(Exception):
    """Base exception for all georeferencing errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class InsufficientPointsError(GeorefError):
    """Raised when fewer than 2 active calibration points are available."""

    def __init__(self, active_count: int, required: int = 2):
        super().__init__(
            f"At least {required} active calibration points required, got {active_count}",
            {"active_count": active_count, "required": required},
        )
        self.active_count = active_count
        self.required = required


class DegenerateGeometryError(GeorefError):
    """Raised when the active points cannot determine a transform.

    This happens when all model points coincide, when three or more model
    points lie on one line, or when the geographic side collapses to a single
    location. Recoverable: the user should add a better distributed point.
    """

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Degenerate calibration geometry: {reason}", details)
        self.reason = reason


class UnsupportedCrsError(GeorefError):
    """Raised when a coordinate reference system cannot be used.

    This is a configuration error: the project's CRS selection must be fixed.
    """

    def __init__(self, crs_id: Optional[str], reason: str = "unknown coordinate reference system"):
        super().__init__(f"Unsupported CRS '{crs_id}': {reason}", {"crs_id": crs_id})
        self.crs_id = crs_id
        self.reason = reason


class NotCalibratedError(GeorefError):
    """Raised when a conversion is requested before a successful calibration."""

    def __init__(self, project_id: str, status: str):
        super().__init__(
            f"Project '{project_id}' is not calibrated",
            {"status": status},
        )
        self.project_id = project_id
        self.status = status
