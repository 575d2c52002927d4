"""
Result data structures for the similarity transform fit.
"""

from .similarity_result import (
    SimilarityFit,
    PointResidual,
    classify_quality,
    EXCELLENT_RMSE_M,
    GOOD_RMSE_M,
    FAIR_RMSE_M,
)

__all__ = [
    "SimilarityFit",
    "PointResidual",
    "classify_quality",
    "EXCELLENT_RMSE_M",
    "GOOD_RMSE_M",
    "FAIR_RMSE_M",
]
