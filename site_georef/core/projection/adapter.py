"""site_georef.core.projection.adapter

Conversion between WGS84 geographic coordinates and a CRS's planar meters.

Geodetic CRSs go through pyproj. Transformers are created with
``always_xy=True`` so coordinates are always ordered (longitude/easting,
latitude/northing) regardless of the axis order a definition declares, and
are cached per definition string. Planar output in feet is converted to
meters here so the solver only ever sees meters.

The local CRS has no real-world definition. Both directions then go through
a caller-supplied EquirectangularApproximation anchored at a calibration
point. That approximation is only accurate over short distances (a few
kilometers) and ignores the ellipsoid entirely.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple, Union

from pyproj import CRS, Transformer
from pyproj.enums import TransformDirection
from pyproj.exceptions import CRSError

from ..exceptions import UnsupportedCrsError
from ..models.catalog import CrsCatalog, DEFAULT_CATALOG
from ..models.crs import CoordinateReferenceSystem
from ..solver.geometry import EARTH_RADIUS_M


WGS84_EPSG = 4326

CrsLike = Union[str, CoordinateReferenceSystem]


@dataclass(frozen=True)
class EquirectangularApproximation:
    """Flat-Earth approximation around an anchor, x east / y north in meters."""

    origin_lat: float
    origin_lon: float
    radius: float = EARTH_RADIUS_M

    def __post_init__(self):
        if not -90.0 < self.origin_lat < 90.0:
            raise ValueError("origin_lat must be strictly between the poles")
        if self.radius <= 0:
            raise ValueError("radius must be positive")

    @property
    def _cos_lat0(self) -> float:
        return math.cos(math.radians(self.origin_lat))

    def forward(self, lat: float, lon: float) -> Tuple[float, float]:
        x = self.radius * self._cos_lat0 * math.radians(lon - self.origin_lon)
        y = self.radius * math.radians(lat - self.origin_lat)
        return x, y

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        lat = self.origin_lat + math.degrees(y / self.radius)
        lon = self.origin_lon + math.degrees(x / (self.radius * self._cos_lat0))
        return lat, lon


@lru_cache(maxsize=64)
def _transformer(definition: str) -> Transformer:
    """WGS84 -> CRS transformer for a PROJ definition."""
    try:
        target = CRS.from_user_input(definition)
    except CRSError as exc:
        raise UnsupportedCrsError(definition, f"invalid projection definition: {exc}") from exc
    return Transformer.from_crs(CRS.from_epsg(WGS84_EPSG), target, always_xy=True)


class ProjectionAdapter:
    """Stateless geographic <-> planar conversion over a CRS catalog."""

    def __init__(self, catalog: CrsCatalog | None = None):
        self.catalog = catalog or DEFAULT_CATALOG

    def resolve(self, crs: CrsLike) -> CoordinateReferenceSystem:
        """Resolve a CRS identifier through the catalog.

        Raises:
            UnsupportedCrsError: If the identifier is unknown
        """
        if isinstance(crs, CoordinateReferenceSystem):
            return crs
        return self.catalog.get(crs)

    def to_planar(
        self,
        crs: CrsLike,
        lat: float,
        lon: float,
        approximation: Optional[EquirectangularApproximation] = None,
    ) -> Tuple[float, float]:
        """Project WGS84 (lat, lon) to planar (x, y) meters of ``crs``."""
        system = self.resolve(crs)
        if system.is_local:
            return _require_approximation(system, approximation).forward(lat, lon)

        x, y = _transformer(system.definition).transform(lon, lat, errcheck=True)
        factor = system.unit.to_meters
        return float(x) * factor, float(y) * factor

    def to_geographic(
        self,
        crs: CrsLike,
        x: float,
        y: float,
        approximation: Optional[EquirectangularApproximation] = None,
    ) -> Tuple[float, float]:
        """Unproject planar (x, y) meters of ``crs`` to WGS84 (lat, lon)."""
        system = self.resolve(crs)
        if system.is_local:
            return _require_approximation(system, approximation).inverse(x, y)

        factor = system.unit.to_meters
        lon, lat = _transformer(system.definition).transform(
            x / factor,
            y / factor,
            errcheck=True,
            direction=TransformDirection.INVERSE,
        )
        return float(lat), float(lon)


def _require_approximation(
    system: CoordinateReferenceSystem,
    approximation: Optional[EquirectangularApproximation],
) -> EquirectangularApproximation:
    if approximation is None:
        raise ValueError(
            f"CRS '{system.id}' is local: a planar approximation anchor is required"
        )
    return approximation


_DEFAULT_ADAPTER = ProjectionAdapter()


def to_planar(
    crs: CrsLike,
    lat: float,
    lon: float,
    approximation: Optional[EquirectangularApproximation] = None,
) -> Tuple[float, float]:
    """Project with the default catalog. See ProjectionAdapter.to_planar."""
    return _DEFAULT_ADAPTER.to_planar(crs, lat, lon, approximation)


def to_geographic(
    crs: CrsLike,
    x: float,
    y: float,
    approximation: Optional[EquirectangularApproximation] = None,
) -> Tuple[float, float]:
    """Unproject with the default catalog. See ProjectionAdapter.to_geographic."""
    return _DEFAULT_ADAPTER.to_geographic(crs, x, y, approximation)
