"""
Site Georeferencing

Calibrates a building model's local coordinate system against GPS readings
taken on site, and converts positions between the two.

Conventions:
- Model coordinates: X right, Y up, in the model's declared unit (mm, m, ft)
- Transform math: meters on both sides; model units converted at the boundary
- Geographic: WGS84 decimal degrees, latitude first in the API
- Projected: easting (X), northing (Y) in meters; feet CRS converted internally
- Rotation: radians internally, counter-clockwise positive, wrapped to (-pi, pi]
- Point IDs: String type
"""

__version__ = "1.0.0"
__author__ = "Site Georeferencing"

from .core.exceptions import (
    GeorefError,
    InsufficientPointsError,
    DegenerateGeometryError,
    UnsupportedCrsError,
    NotCalibratedError,
)
from .core.models import (
    CalibrationPoint,
    ModelPoint,
    GeoPoint,
    ProjectCoordinateSettings,
    CalibrationStatus,
    CalibrationQuality,
    SimilarityTransform,
)
from .core.engine import CalibrationEngine, RecalculationOutcome
from .core.persistence import InMemoryCalibrationStore, JsonFileCalibrationStore

__all__ = [
    # Version
    "__version__",

    # Errors
    "GeorefError",
    "InsufficientPointsError",
    "DegenerateGeometryError",
    "UnsupportedCrsError",
    "NotCalibratedError",

    # Models
    "CalibrationPoint",
    "ModelPoint",
    "GeoPoint",
    "ProjectCoordinateSettings",
    "CalibrationStatus",
    "CalibrationQuality",
    "SimilarityTransform",

    # Engine
    "CalibrationEngine",
    "RecalculationOutcome",
    "InMemoryCalibrationStore",
    "JsonFileCalibrationStore",
]
