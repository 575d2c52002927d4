"""site_georef.core.persistence

Store contract and implementations for calibration data.
"""

from .store import CalibrationStore, InMemoryCalibrationStore, JsonFileCalibrationStore

__all__ = [
    "CalibrationStore",
    "InMemoryCalibrationStore",
    "JsonFileCalibrationStore",
]
