"""site_georef.core.solver

Pure-Python least-squares similarity solver (no projection or I/O).
"""

from .similarity_2d import solve_similarity_2d, check_geometry

__all__ = [
    "solve_similarity_2d",
    "check_geometry",
]
