"""site_georef.core.engine

Per-project calibration orchestration and coordinate conversion.
"""

from .calibration_engine import CalibrationEngine, RecalculationOutcome

__all__ = [
    "CalibrationEngine",
    "RecalculationOutcome",
]
