"""site_georef.core.solver.similarity_2d

Least-squares 2D similarity (4-parameter Helmert) transform.

Model, per point pair (source s -> destination d):

    dx_i = a*sx_i - b*sy_i + tx
    dy_i = b*sx_i + a*sy_i + ty

The four unknowns (a, b, tx, ty) are solved with ``numpy.linalg.lstsq``
(SVD) on centroid-reduced coordinates, which keeps the design matrix well
conditioned for projected coordinates in the millions of meters. With two
distinct points the system is square and the fit interpolates exactly.

This module contains no projection or persistence code.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from ..exceptions import DegenerateGeometryError, InsufficientPointsError
from ..models.options import CalibrationOptions
from ..models.transform import SimilarityTransform
from ..results.similarity_result import PointResidual, SimilarityFit
from .geometry import as_point_array, centroid, collinearity_ratio, max_radius, wrap_pi


MIN_POINTS = 2
NUM_PARAMS = 4


def check_geometry(
    source: np.ndarray,
    destination: np.ndarray,
    options: CalibrationOptions,
) -> None:
    """Reject point sets for which the similarity fit is singular.

    Raises:
        DegenerateGeometryError: If all source points coincide, if three or
            more source points are collinear, or if all destination points
            coincide
    """
    n = len(source)
    spread = max_radius(source)
    if spread <= options.coincidence_tolerance_m:
        raise DegenerateGeometryError(
            "all model points coincide",
            {"points": n, "spread_m": spread},
        )

    if n >= 3:
        ratio = collinearity_ratio(source)
        if ratio <= options.collinearity_tolerance:
            raise DegenerateGeometryError(
                "model points are collinear",
                {"points": n, "ratio": ratio},
            )

    if max_radius(destination) <= options.coincidence_tolerance_m:
        raise DegenerateGeometryError(
            "geographic points coincide",
            {"points": n},
        )


def _design_matrix(reduced_source: np.ndarray) -> np.ndarray:
    """Design matrix A (2n x 4) for unknowns (a, b, tx, ty)."""
    n = len(reduced_source)
    A = np.zeros((2 * n, NUM_PARAMS), dtype=float)
    sx = reduced_source[:, 0]
    sy = reduced_source[:, 1]
    A[0::2, 0] = sx
    A[0::2, 1] = -sy
    A[0::2, 2] = 1.0
    A[1::2, 0] = sy
    A[1::2, 1] = sx
    A[1::2, 3] = 1.0
    return A


def solve_similarity_2d(
    source: Sequence[Tuple[float, float]],
    destination: Sequence[Tuple[float, float]],
    point_ids: Optional[Sequence[str]] = None,
    options: CalibrationOptions | None = None,
    origin_geographic: Tuple[float, float] = (0.0, 0.0),
) -> SimilarityFit:
    """Fit a similarity transform mapping ``source`` onto ``destination``.

    Args:
        source: Model-frame points (meters)
        destination: Target planar points (meters), same order as source
        point_ids: Optional IDs used to label residuals (defaults to indices)
        options: Solver tolerances (defaults if None)
        origin_geographic: WGS84 (lat, lon) recorded as the geographic anchor

    Returns:
        SimilarityFit with the transform and per-point residuals

    Raises:
        InsufficientPointsError: Fewer than 2 point pairs
        DegenerateGeometryError: Point configuration makes the fit singular
        ValueError: Mismatched or non-finite input
    """
    options = options or CalibrationOptions.default()

    src = as_point_array(source)
    dst = as_point_array(destination)
    n = len(src)
    if len(dst) != n:
        raise ValueError(f"source has {n} points, destination has {len(dst)}")
    if point_ids is None:
        point_ids = [str(i) for i in range(n)]
    elif len(point_ids) != n:
        raise ValueError("point_ids must match the number of point pairs")

    if n < MIN_POINTS:
        raise InsufficientPointsError(n, MIN_POINTS)

    check_geometry(src, dst, options)

    src_c = centroid(src)
    dst_c = centroid(dst)
    A = _design_matrix(src - src_c)
    L = (dst - dst_c).reshape(-1)

    params, _, rank, sv = np.linalg.lstsq(A, L, rcond=options.rank_tolerance)
    if rank < NUM_PARAMS:
        raise DegenerateGeometryError(
            "design matrix is rank deficient",
            {"rank": int(rank), "points": n},
        )

    a, b, tx_r, ty_r = (float(v) for v in params)
    scale = math.hypot(a, b)
    if scale <= 0.0:
        raise DegenerateGeometryError("solved scale is zero", {"points": n})
    rotation = wrap_pi(math.atan2(b, a))

    # Undo the centroid reduction: X = A(s - s_c) + d_c + t_r
    tx = float(dst_c[0]) + tx_r - (a * float(src_c[0]) - b * float(src_c[1]))
    ty = float(dst_c[1]) + ty_r - (b * float(src_c[0]) + a * float(src_c[1]))

    transform = SimilarityTransform(
        tx=tx,
        ty=ty,
        rotation=rotation,
        scale=scale,
        origin_model=(float(src[0, 0]), float(src[0, 1])),
        origin_geographic=(float(origin_geographic[0]), float(origin_geographic[1])),
    )

    residuals: List[PointResidual] = []
    for pid, (sx, sy), (ox, oy) in zip(point_ids, src, dst):
        px, py = transform.apply(float(sx), float(sy))
        residuals.append(PointResidual(
            point_id=str(pid),
            predicted_x=px,
            predicted_y=py,
            observed_x=float(ox),
            observed_y=float(oy),
        ))

    condition = float(sv[0] / sv[-1]) if sv[-1] > 0 else math.inf
    messages: List[str] = []
    if n == MIN_POINTS:
        messages.append("Exactly 2 points: transform interpolates, no redundancy to assess accuracy")

    fit = SimilarityFit(
        transform=transform,
        residuals=residuals,
        condition_number=condition,
        messages=messages,
    )
    logger.debug(
        f"Similarity fit on {n} points: scale={scale:.8f}, "
        f"rotation={math.degrees(rotation):.6f}deg, rmse={fit.rmse:.4f}m, cond={condition:.3g}"
    )
    return fit
