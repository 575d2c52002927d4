"""
Calibration point (model <-> geographic correspondence) for georeferencing.

Conventions:
- Model coordinates: native model unit (see ProjectCoordinateSettings.model_units)
- Geographic coordinates: WGS84 decimal degrees, altitude in meters
- error_m: planar residual in meters after the last solve, None if the
  point did not take part in it
- Point IDs: String type
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from .coordinates import GeoPoint, ModelPoint


def iso_utc_now() -> str:
    """Return an ISO-8601 UTC timestamp ending with 'Z'."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CaptureMethod(Enum):
    """How the geographic side of a calibration point was obtained."""
    MANUAL = "manual"
    AVERAGED = "averaged"
    RTK = "rtk"


@dataclass(frozen=True)
class ModelReference:
    """Optional reference to the model element the point was picked on."""

    guid: Optional[str] = None
    guid_ifc: Optional[str] = None
    assembly_mark: Optional[str] = None
    object_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference_guid": self.guid,
            "reference_guid_ifc": self.guid_ifc,
            "reference_assembly_mark": self.assembly_mark,
            "reference_object_name": self.object_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['ModelReference']:
        ref = cls(
            guid=data.get("reference_guid"),
            guid_ifc=data.get("reference_guid_ifc"),
            assembly_mark=data.get("reference_assembly_mark"),
            object_name=data.get("reference_object_name"),
        )
        if not any(ref.to_dict().values()):
            return None
        return ref


@dataclass
class CalibrationPoint:
    """
    One correspondence sample between the model frame and the Earth.

    Attributes:
        id: Unique identifier of the point
        project_id: Owning project
        model_x, model_y, model_z: Picked model coordinates (model units)
        latitude, longitude, altitude: Measured WGS84 position
        accuracy_m: Reported horizontal accuracy of the measurement (meters)
        capture_method: manual, averaged or RTK
        is_active: Inactive points are kept but excluded from the solve
        error_m: Residual after the last solve (meters)
        name, description: Free text
        reference: Picked model element, if any
        created_at: ISO-8601 UTC capture time
        created_by_name: Who captured the point
    """

    id: str
    project_id: str
    model_x: float
    model_y: float
    latitude: float
    longitude: float
    model_z: Optional[float] = None
    altitude: Optional[float] = None
    accuracy_m: Optional[float] = None
    capture_method: CaptureMethod = CaptureMethod.MANUAL
    is_active: bool = True
    error_m: Optional[float] = None
    name: str = ""
    description: str = ""
    reference: Optional[ModelReference] = None
    created_at: Optional[str] = None
    created_by_name: Optional[str] = None

    def __post_init__(self):
        """Validate point data after initialization."""
        if not self.id:
            raise ValueError("Calibration point ID cannot be empty")
        if not self.project_id:
            raise ValueError("Calibration point must belong to a project")

        self.model_x = float(self.model_x)
        self.model_y = float(self.model_y)
        self.latitude = float(self.latitude)
        self.longitude = float(self.longitude)

        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")
        if self.accuracy_m is not None and self.accuracy_m < 0:
            raise ValueError("accuracy_m cannot be negative")

        if isinstance(self.capture_method, str):
            self.capture_method = CaptureMethod(self.capture_method.lower())
        if self.created_at is None:
            self.created_at = iso_utc_now()

    @property
    def model_point(self) -> ModelPoint:
        return ModelPoint(self.model_x, self.model_y, self.model_z)

    @property
    def geo_point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude, self.altitude)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize point to a JSON-safe dictionary."""
        data = {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "model_x": self.model_x,
            "model_y": self.model_y,
            "model_z": self.model_z,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "accuracy_m": self.accuracy_m,
            "capture_method": self.capture_method.value,
            "is_active": self.is_active,
            "error_m": self.error_m,
            "created_at": self.created_at,
            "created_by_name": self.created_by_name,
        }
        if self.reference is not None:
            data.update(self.reference.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalibrationPoint':
        """
        Create a CalibrationPoint from a dictionary.

        Accepts the column names used by the hosted backend
        (gps_latitude, calculated_error_m, ...) as aliases.
        """
        return cls(
            id=str(data["id"]),
            project_id=str(data.get("project_id", data.get("trimble_project_id", ""))),
            name=data.get("name") or "",
            description=data.get("description") or "",
            model_x=float(data["model_x"]),
            model_y=float(data["model_y"]),
            model_z=_parse_optional_float(data.get("model_z")),
            latitude=float(data.get("latitude", data.get("gps_latitude"))),
            longitude=float(data.get("longitude", data.get("gps_longitude"))),
            altitude=_parse_optional_float(data.get("altitude", data.get("gps_altitude"))),
            accuracy_m=_parse_optional_float(data.get("accuracy_m", data.get("gps_accuracy_m"))),
            capture_method=CaptureMethod(data.get("capture_method") or "manual"),
            is_active=_parse_bool(data.get("is_active", True)),
            error_m=_parse_optional_float(data.get("error_m", data.get("calculated_error_m"))),
            reference=ModelReference.from_dict(data),
            created_at=data.get("created_at"),
            created_by_name=data.get("created_by_name"),
        )

    def __repr__(self) -> str:
        status = "active" if self.is_active else "inactive"
        return (
            f"CalibrationPoint({self.id}, model=({self.model_x:.3f}, {self.model_y:.3f}), "
            f"geo=({self.latitude:.7f}, {self.longitude:.7f}), {status})"
        )


def _parse_bool(value: Any) -> bool:
    """Parse a value to boolean, handling string representations."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def _parse_optional_float(value: Any) -> Optional[float]:
    """Parse a value to optional float, handling empty strings and None."""
    if value is None or value == '' or value == 'None':
        return None
    return float(value)
