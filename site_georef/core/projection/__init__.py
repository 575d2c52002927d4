"""site_georef.core.projection

WGS84 <-> CRS planar conversion (pyproj backed).
"""

from .adapter import (
    ProjectionAdapter,
    EquirectangularApproximation,
    to_planar,
    to_geographic,
)

__all__ = [
    "ProjectionAdapter",
    "EquirectangularApproximation",
    "to_planar",
    "to_geographic",
]
