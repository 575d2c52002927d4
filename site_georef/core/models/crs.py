"""
Coordinate reference system definitions.

A CRS is either geodetic (backed by a projection definition string that
pyproj understands) or the local pseudo-CRS, which has no real-world
definition and is georeferenced through a planar approximation anchored at
a calibration point. Every CRS carries one of the two projection variants.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .units import LengthUnit


class CrsKind(Enum):
    """Kind of projection backing a CRS."""
    GEODETIC = "geodetic"
    LOCAL = "local"


@dataclass(frozen=True)
class GeodeticProjection:
    """Projection given by a PROJ definition (proj4 string, WKT or 'EPSG:n')."""

    definition: str
    kind: CrsKind = CrsKind.GEODETIC

    def __post_init__(self):
        if not self.definition or not self.definition.strip():
            raise ValueError("Geodetic projection definition cannot be empty")


@dataclass(frozen=True)
class LocalProjection:
    """Marker for the local system: no real-world projection definition."""

    kind: CrsKind = CrsKind.LOCAL


Projection = Union[GeodeticProjection, LocalProjection]


@dataclass(frozen=True)
class CoordinateReferenceSystem:
    """
    Immutable catalog entry for a coordinate reference system.

    Attributes:
        id: Catalog identifier (e.g. "ee_lest97")
        name: Human-readable name
        country_code: ISO country code, "LOCAL" for the local system
        country_name: Human-readable country name
        projection: GeodeticProjection or LocalProjection
        epsg_code: EPSG code when one exists
        unit: Planar unit of the CRS (meters or feet)
        is_active: Inactive entries stay resolvable but are not offered
    """

    id: str
    name: str
    country_code: str
    projection: Projection
    country_name: str = ""
    epsg_code: Optional[int] = None
    unit: LengthUnit = LengthUnit.METERS
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("CRS ID cannot be empty")
        if self.unit == LengthUnit.MILLIMETERS:
            raise ValueError("CRS unit must be meters or feet")

    @property
    def kind(self) -> CrsKind:
        return self.projection.kind

    @property
    def is_local(self) -> bool:
        return self.kind == CrsKind.LOCAL

    @property
    def definition(self) -> Optional[str]:
        """Projection definition string, None for the local system."""
        if isinstance(self.projection, GeodeticProjection):
            return self.projection.definition
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "country_code": self.country_code,
            "country_name": self.country_name,
            "kind": self.kind.value,
            "definition": self.definition,
            "epsg_code": self.epsg_code,
            "unit": self.unit.value,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoordinateReferenceSystem':
        definition = data.get("definition") or data.get("proj4_string")
        kind = data.get("kind")
        if kind == CrsKind.LOCAL.value or (kind is None and not definition):
            projection: Projection = LocalProjection()
        else:
            projection = GeodeticProjection(definition)
        epsg = data.get("epsg_code")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            country_code=data.get("country_code", ""),
            country_name=data.get("country_name", ""),
            projection=projection,
            epsg_code=int(epsg) if epsg not in (None, "") else None,
            unit=LengthUnit.parse(data.get("unit", "meters")),
            is_active=bool(data.get("is_active", True)),
        )

    def __repr__(self) -> str:
        epsg = f"EPSG:{self.epsg_code}" if self.epsg_code else self.kind.value
        return f"CoordinateReferenceSystem({self.id}, {epsg})"
