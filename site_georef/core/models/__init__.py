"""
Data models for site georeferencing.

This module provides the core data structures:
- CoordinateReferenceSystem / CrsCatalog: fixed CRS catalog
- CalibrationPoint: model <-> geographic correspondence sample
- SimilarityTransform: solved 2D similarity transform
- ProjectCoordinateSettings: per-project configuration and calibration state
- CalibrationOptions: solver tolerances
"""

from .units import LengthUnit, MODEL_UNITS, to_meters, from_meters
from .crs import (
    CrsKind,
    CoordinateReferenceSystem,
    GeodeticProjection,
    LocalProjection,
)
from .catalog import CrsCatalog, DEFAULT_CATALOG, LOCAL_CRS_ID, LOCAL_COUNTRY_CODE
from .coordinates import ModelPoint, GeoPoint
from .calibration_point import CalibrationPoint, CaptureMethod, ModelReference
from .transform import SimilarityTransform
from .settings import ProjectCoordinateSettings, CalibrationStatus, CalibrationQuality
from .options import CalibrationOptions

__all__ = [
    # Units
    "LengthUnit",
    "MODEL_UNITS",
    "to_meters",
    "from_meters",

    # CRS
    "CrsKind",
    "CoordinateReferenceSystem",
    "GeodeticProjection",
    "LocalProjection",
    "CrsCatalog",
    "DEFAULT_CATALOG",
    "LOCAL_CRS_ID",
    "LOCAL_COUNTRY_CODE",

    # Points
    "ModelPoint",
    "GeoPoint",
    "CalibrationPoint",
    "CaptureMethod",
    "ModelReference",

    # Calibration state
    "SimilarityTransform",
    "ProjectCoordinateSettings",
    "CalibrationStatus",
    "CalibrationQuality",

    # Options
    "CalibrationOptions",
]
