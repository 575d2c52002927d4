"""
Core module for site georeferencing.

Pure Python implementations of the calibration solver, CRS catalog,
projection adapter, calibration engine and persistence. The model host
(BIM viewer, field app) only talks to CalibrationEngine and the stores.
"""

from .exceptions import (
    GeorefError,
    InsufficientPointsError,
    DegenerateGeometryError,
    UnsupportedCrsError,
    NotCalibratedError,
)

from .models import (
    LengthUnit,
    CoordinateReferenceSystem,
    CrsCatalog,
    DEFAULT_CATALOG,
    LOCAL_CRS_ID,
    ModelPoint,
    GeoPoint,
    CalibrationPoint,
    CaptureMethod,
    SimilarityTransform,
    ProjectCoordinateSettings,
    CalibrationStatus,
    CalibrationQuality,
    CalibrationOptions,
)

from .results import SimilarityFit, PointResidual, classify_quality

from .solver import solve_similarity_2d

from .projection import ProjectionAdapter, EquirectangularApproximation

from .persistence import CalibrationStore, InMemoryCalibrationStore, JsonFileCalibrationStore

from .engine import CalibrationEngine, RecalculationOutcome

from .reports import render_html_report, save_html_report

__all__ = [
    # Exceptions
    "GeorefError",
    "InsufficientPointsError",
    "DegenerateGeometryError",
    "UnsupportedCrsError",
    "NotCalibratedError",

    # Models
    "LengthUnit",
    "CoordinateReferenceSystem",
    "CrsCatalog",
    "DEFAULT_CATALOG",
    "LOCAL_CRS_ID",
    "ModelPoint",
    "GeoPoint",
    "CalibrationPoint",
    "CaptureMethod",
    "SimilarityTransform",
    "ProjectCoordinateSettings",
    "CalibrationStatus",
    "CalibrationQuality",
    "CalibrationOptions",

    # Results
    "SimilarityFit",
    "PointResidual",
    "classify_quality",

    # Solver
    "solve_similarity_2d",

    # Projection
    "ProjectionAdapter",
    "EquirectangularApproximation",

    # Persistence
    "CalibrationStore",
    "InMemoryCalibrationStore",
    "JsonFileCalibrationStore",

    # Engine
    "CalibrationEngine",
    "RecalculationOutcome",

    # Reports
    "render_html_report",
    "save_html_report",
]
