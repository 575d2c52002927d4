"""site_georef.core.solver.geometry

Planar and spherical geometry helpers for the calibration solve.

Conventions:
  - Planar coordinates: X = easting, Y = northing, meters
  - Rotation: counter-clockwise positive, radians
  - Geographic coordinates: WGS84 decimal degrees
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np


TAU = 2.0 * math.pi

# Mean Earth radius used for great-circle distances.
EARTH_RADIUS_M = 6371000.0


def wrap_pi(angle: float) -> float:
    """Normalize angle to (-π, π]."""
    a = (angle + math.pi) % TAU - math.pi
    # -π maps to +π.
    if a <= -math.pi:
        a += TAU
    return a


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    radius: float = EARTH_RADIUS_M,
) -> float:
    """Great-circle distance in meters between two WGS84 positions."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lon2 - lon1)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return 2.0 * radius * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def as_point_array(points: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Convert a sequence of (x, y) pairs to a finite (n, 2) float array."""
    arr = np.asarray(points, dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected a sequence of (x, y) pairs, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Point coordinates must be finite")
    return arr


def centroid(points: np.ndarray) -> np.ndarray:
    """Mean of an (n, 2) point array."""
    return points.mean(axis=0)


def max_radius(points: np.ndarray) -> float:
    """Largest distance of any point from the centroid."""
    if len(points) == 0:
        return 0.0
    reduced = points - centroid(points)
    return float(np.max(np.hypot(reduced[:, 0], reduced[:, 1])))


def max_extent(points: np.ndarray) -> float:
    """Largest pairwise distance between points."""
    if len(points) < 2:
        return 0.0
    diff = points[:, None, :] - points[None, :, :]
    return float(np.max(np.hypot(diff[..., 0], diff[..., 1])))


def collinearity_ratio(points: np.ndarray) -> float:
    """Ratio of smallest to largest singular value of the centred points.

    0 for exactly collinear (or coincident) points, 1 for an isotropic spread.
    """
    if len(points) < 2:
        return 0.0
    reduced = points - centroid(points)
    sv = np.linalg.svd(reduced, compute_uv=False)
    if sv[0] == 0.0:
        return 0.0
    return float(sv[-1] / sv[0]) if len(sv) > 1 else 0.0
