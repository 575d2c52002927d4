"""site_georef.core.persistence.store

Persistence contract for calibration points and project settings.

The engine only needs flat, per-record atomic operations; no multi-record
transactions. ``list_points`` makes no ordering promise. Two implementations
are provided: an in-memory store and a JSON file store (one document per
project).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from ..models.calibration_point import CalibrationPoint
from ..models.settings import ProjectCoordinateSettings


class CalibrationStore(ABC):
    """Storage for ProjectCoordinateSettings and CalibrationPoint records."""

    @abstractmethod
    def load_settings(self, project_id: str) -> Optional[ProjectCoordinateSettings]:
        """Return the project's settings, or None if never configured."""

    @abstractmethod
    def save_settings(self, settings: ProjectCoordinateSettings) -> None:
        """Overwrite the project's settings record wholesale."""

    @abstractmethod
    def list_points(self, project_id: str) -> List[CalibrationPoint]:
        """Return all points of a project, active and inactive, unordered."""

    @abstractmethod
    def upsert_point(self, point: CalibrationPoint) -> None:
        """Insert or replace a point by ID."""

    @abstractmethod
    def delete_point(self, point_id: str) -> None:
        """Delete a point.

        Raises:
            KeyError: If the point does not exist
        """

    def get_point(self, project_id: str, point_id: str) -> CalibrationPoint:
        """
        Retrieve a point by ID.

        Raises:
            KeyError: If point_id is not found in the project
        """
        for point in self.list_points(project_id):
            if point.id == point_id:
                return point
        raise KeyError(f"Calibration point '{point_id}' not found in project '{project_id}'")


class InMemoryCalibrationStore(CalibrationStore):
    """Dictionary-backed store. Records are copied on the way in and out."""

    def __init__(self):
        self._settings: Dict[str, Dict[str, Any]] = {}
        self._points: Dict[str, Dict[str, Any]] = {}

    def load_settings(self, project_id: str) -> Optional[ProjectCoordinateSettings]:
        data = self._settings.get(project_id)
        return ProjectCoordinateSettings.from_dict(data) if data is not None else None

    def save_settings(self, settings: ProjectCoordinateSettings) -> None:
        self._settings[settings.project_id] = settings.to_dict()

    def list_points(self, project_id: str) -> List[CalibrationPoint]:
        return [
            CalibrationPoint.from_dict(data)
            for data in self._points.values()
            if data["project_id"] == project_id
        ]

    def upsert_point(self, point: CalibrationPoint) -> None:
        self._points[point.id] = point.to_dict()

    def delete_point(self, point_id: str) -> None:
        if point_id not in self._points:
            raise KeyError(f"Calibration point '{point_id}' not found")
        del self._points[point_id]


class JsonFileCalibrationStore(CalibrationStore):
    """One JSON document per project under ``root``.

    Document layout::

        {"settings": {...} | null, "points": {point_id: {...}, ...}}

    Each write rewrites the whole document via a temporary file and rename.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, project_id: str) -> Path:
        """Document path of a project.

        Raises:
            ValueError: If the project id cannot be used as a file name
        """
        if (
            not project_id
            or project_id in (".", "..")
            or "/" in project_id
            or "\\" in project_id
            or "\0" in project_id
        ):
            raise ValueError(f"Invalid project id for file storage: {project_id!r}")
        return self.root / f"{project_id}.json"

    def _read(self, project_id: str) -> Dict[str, Any]:
        path = self._path(project_id)
        if not path.exists():
            return {"settings": None, "points": {}}
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, project_id: str, document: Dict[str, Any]) -> None:
        path = self._path(project_id)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
        tmp.replace(path)
        logger.debug(f"Wrote calibration document {path}")

    def load_settings(self, project_id: str) -> Optional[ProjectCoordinateSettings]:
        data = self._read(project_id).get("settings")
        return ProjectCoordinateSettings.from_dict(data) if data else None

    def save_settings(self, settings: ProjectCoordinateSettings) -> None:
        document = self._read(settings.project_id)
        document["settings"] = settings.to_dict()
        self._write(settings.project_id, document)

    def list_points(self, project_id: str) -> List[CalibrationPoint]:
        points = self._read(project_id).get("points", {})
        return [CalibrationPoint.from_dict(data) for data in points.values()]

    def upsert_point(self, point: CalibrationPoint) -> None:
        document = self._read(point.project_id)
        document.setdefault("points", {})[point.id] = point.to_dict()
        self._write(point.project_id, document)

    def delete_point(self, point_id: str) -> None:
        for path in sorted(self.root.glob("*.json")):
            project_id = path.stem
            document = self._read(project_id)
            points = document.get("points", {})
            if point_id in points:
                del points[point_id]
                self._write(project_id, document)
                return
        raise KeyError(f"Calibration point '{point_id}' not found")
