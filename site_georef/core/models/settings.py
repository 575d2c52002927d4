"""
Per-project coordinate settings.

A ProjectCoordinateSettings record is immutable: every change produces a new
record which the store overwrites wholesale (last write wins).
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from .calibration_point import iso_utc_now
from .catalog import LOCAL_COUNTRY_CODE, LOCAL_CRS_ID
from .transform import SimilarityTransform
from .units import LengthUnit, MODEL_UNITS


class CalibrationStatus(Enum):
    """
    Calibration state of a project.

    - NOT_CALIBRATED: fewer than 2 calibration points exist
    - IN_PROGRESS: points exist but the active set cannot be solved
    - CALIBRATED: a transform was solved from the current active points
    """
    NOT_CALIBRATED = "not_calibrated"
    IN_PROGRESS = "in_progress"
    CALIBRATED = "calibrated"


class CalibrationQuality(Enum):
    """Advisory trust level derived from the fit RMSE."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class ProjectCoordinateSettings:
    """
    Coordinate configuration and calibration result of one project.

    Attributes:
        project_id: Owning project
        country_code: Selected country ("LOCAL" for the local system)
        coordinate_system_id: Catalog CRS identifier
        model_units: Native unit of model coordinates
        model_has_real_coordinates: Model is already in CRS coordinates;
            calibration is skipped entirely
        calibration_status: See CalibrationStatus
        transform: Last successfully computed transform (kept while the
            active set is temporarily unsolvable)
        rmse_m, max_error_m, quality: Fit statistics of ``transform``
        calibration_points_count: Active points used for ``transform``
        calibrated_at, calibrated_by_name: Provenance of ``transform``
        updated_at: Time of the last write
    """

    project_id: str
    country_code: str = LOCAL_COUNTRY_CODE
    coordinate_system_id: str = LOCAL_CRS_ID
    model_units: LengthUnit = LengthUnit.MILLIMETERS
    model_has_real_coordinates: bool = False
    calibration_status: CalibrationStatus = CalibrationStatus.NOT_CALIBRATED
    transform: Optional[SimilarityTransform] = None
    rmse_m: Optional[float] = None
    max_error_m: Optional[float] = None
    quality: Optional[CalibrationQuality] = None
    calibration_points_count: int = 0
    calibrated_at: Optional[str] = None
    calibrated_by_name: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        if not self.project_id:
            raise ValueError("project_id cannot be empty")
        if isinstance(self.model_units, str):
            object.__setattr__(self, "model_units", LengthUnit.parse(self.model_units))
        if self.model_units not in MODEL_UNITS:
            raise ValueError(f"Unsupported model unit: {self.model_units.value}")
        if isinstance(self.calibration_status, str):
            object.__setattr__(self, "calibration_status", CalibrationStatus(self.calibration_status))
        if isinstance(self.quality, str):
            object.__setattr__(self, "quality", CalibrationQuality(self.quality))
        if self.calibration_status == CalibrationStatus.CALIBRATED and self.transform is None:
            raise ValueError("calibrated settings require a transform")
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", iso_utc_now())

    @property
    def is_calibrated(self) -> bool:
        return self.calibration_status == CalibrationStatus.CALIBRATED

    @classmethod
    def default(cls, project_id: str) -> 'ProjectCoordinateSettings':
        """Settings for a freshly configured project."""
        return cls(project_id=project_id)

    def with_calibration(
        self,
        transform: SimilarityTransform,
        rmse_m: float,
        max_error_m: float,
        quality: CalibrationQuality,
        points_count: int,
        user_name: Optional[str] = None,
    ) -> 'ProjectCoordinateSettings':
        """Return a calibrated copy carrying a new transform."""
        now = iso_utc_now()
        return replace(
            self,
            calibration_status=CalibrationStatus.CALIBRATED,
            transform=transform,
            rmse_m=rmse_m,
            max_error_m=max_error_m,
            quality=quality,
            calibration_points_count=points_count,
            calibrated_at=now,
            calibrated_by_name=user_name,
            updated_at=now,
        )

    def with_status(self, status: CalibrationStatus) -> 'ProjectCoordinateSettings':
        """Return a copy with a new status; the stored transform is kept."""
        if status == CalibrationStatus.CALIBRATED and self.transform is None:
            raise ValueError("cannot mark settings calibrated without a transform")
        return replace(self, calibration_status=status, updated_at=iso_utc_now())

    def without_calibration(self) -> 'ProjectCoordinateSettings':
        """Return a copy with the calibration result cleared."""
        return replace(
            self,
            calibration_status=CalibrationStatus.NOT_CALIBRATED,
            transform=None,
            rmse_m=None,
            max_error_m=None,
            quality=None,
            calibration_points_count=0,
            calibrated_at=None,
            calibrated_by_name=None,
            updated_at=iso_utc_now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "country_code": self.country_code,
            "coordinate_system_id": self.coordinate_system_id,
            "model_units": self.model_units.value,
            "model_has_real_coordinates": self.model_has_real_coordinates,
            "calibration_status": self.calibration_status.value,
            "transform": self.transform.to_dict() if self.transform else None,
            "calibration_rmse_m": self.rmse_m,
            "calibration_max_error_m": self.max_error_m,
            "calibration_quality": self.quality.value if self.quality else None,
            "calibration_points_count": self.calibration_points_count,
            "calibrated_at": self.calibrated_at,
            "calibrated_by_name": self.calibrated_by_name,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectCoordinateSettings':
        transform = data.get("transform", data.get("transform_matrix"))
        quality = data.get("calibration_quality")
        return cls(
            project_id=str(data.get("project_id", data.get("trimble_project_id", ""))),
            country_code=data.get("country_code", LOCAL_COUNTRY_CODE),
            coordinate_system_id=data.get("coordinate_system_id", LOCAL_CRS_ID),
            model_units=LengthUnit.parse(data.get("model_units", "millimeters")),
            model_has_real_coordinates=bool(data.get("model_has_real_coordinates", False)),
            calibration_status=CalibrationStatus(data.get("calibration_status", "not_calibrated")),
            transform=SimilarityTransform.from_dict(transform) if transform else None,
            rmse_m=data.get("calibration_rmse_m"),
            max_error_m=data.get("calibration_max_error_m"),
            quality=CalibrationQuality(quality) if quality else None,
            calibration_points_count=int(data.get("calibration_points_count", 0) or 0),
            calibrated_at=data.get("calibrated_at"),
            calibrated_by_name=data.get("calibrated_by_name"),
            updated_at=data.get("updated_at"),
        )
