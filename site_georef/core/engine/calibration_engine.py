"""site_georef.core.engine.calibration_engine

Per-project calibration engine.

The engine pulls the active calibration points from the store, projects their
geographic side into the project's CRS, fits a similarity transform from
model meters to CRS meters, classifies its quality and writes the result
back as a new ProjectCoordinateSettings record. It then serves forward and
inverse coordinate conversion to the rest of the system.

State machine (driven by ``recalculate``)::

    not_calibrated -> in_progress -> calibrated
    calibrated -> in_progress   (active set becomes unsolvable)

- fewer than 2 active points, fewer than 2 points stored: not_calibrated
- fewer than 2 active points, 2+ points stored:            in_progress
- degenerate active geometry:                               in_progress
- successful fit:                                           calibrated

A failed solve never discards the last good transform; it only stops being
used for conversions until the project is calibrated again.

The engine holds no locks. Each call reads the latest settings from the
store, and the store is expected to serialize writes per project.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from loguru import logger

from ..exceptions import (
    DegenerateGeometryError,
    InsufficientPointsError,
    NotCalibratedError,
    UnsupportedCrsError,
)
from ..models.calibration_point import CalibrationPoint, iso_utc_now
from ..models.catalog import CrsCatalog, DEFAULT_CATALOG
from ..models.coordinates import GeoPoint, ModelPoint
from ..models.crs import CoordinateReferenceSystem
from ..models.options import CalibrationOptions
from ..models.settings import CalibrationStatus, ProjectCoordinateSettings
from ..models.transform import SimilarityTransform
from ..models.units import LengthUnit, from_meters, to_meters
from ..persistence.store import CalibrationStore
from ..projection.adapter import EquirectangularApproximation, ProjectionAdapter
from ..results.similarity_result import SimilarityFit
from ..solver.geometry import as_point_array, max_extent
from ..solver.similarity_2d import MIN_POINTS, solve_similarity_2d


@dataclass
class RecalculationOutcome:
    """
    Result of a recalculation, returned to the caller instead of raising.

    Attributes:
        status: Calibration status after the recalculation
        settings: Settings record written to the store
        fit: Similarity fit when the solve succeeded
        warning: Recoverable geometry problem; the caller should ask for a
            better distributed point
        active_points: Number of active points considered
        messages: Informational messages
    """

    status: CalibrationStatus
    settings: ProjectCoordinateSettings
    fit: Optional[SimilarityFit] = None
    warning: Optional[DegenerateGeometryError] = None
    active_points: int = 0
    messages: List[str] = field(default_factory=list)

    @property
    def solved(self) -> bool:
        return self.fit is not None

    @property
    def errors_by_point(self) -> Dict[str, float]:
        if self.fit is None:
            return {}
        return {r.point_id: r.error for r in self.fit.residuals}


def _point_order(point: CalibrationPoint):
    return (point.created_at or "", point.id)


class CalibrationEngine:
    """Calibration engine bound to one project.

    Args:
        project_id: Project whose points and settings are managed
        store: Persistence collaborator
        catalog: CRS catalog (default catalog if None)
        options: Solver tolerances (defaults if None)
        user_name: Recorded as ``calibrated_by_name`` on successful solves
    """

    def __init__(
        self,
        project_id: str,
        store: CalibrationStore,
        catalog: CrsCatalog | None = None,
        options: CalibrationOptions | None = None,
        user_name: Optional[str] = None,
    ):
        if not project_id:
            raise ValueError("project_id cannot be empty")
        self.project_id = project_id
        self.store = store
        self.catalog = catalog or DEFAULT_CATALOG
        self.options = options or CalibrationOptions.default()
        self.projection = ProjectionAdapter(self.catalog)
        self.user_name = user_name

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ProjectCoordinateSettings:
        """Current settings, created with defaults on first access."""
        settings = self.store.load_settings(self.project_id)
        if settings is None:
            settings = ProjectCoordinateSettings.default(self.project_id)
            self.store.save_settings(settings)
            logger.info(f"Created default coordinate settings for project {self.project_id}")
        return settings

    @property
    def status(self) -> CalibrationStatus:
        return self.settings.calibration_status

    @property
    def crs(self) -> CoordinateReferenceSystem:
        return self.catalog.get(self.settings.coordinate_system_id)

    def points(self) -> List[CalibrationPoint]:
        """All points of the project in capture order."""
        return sorted(self.store.list_points(self.project_id), key=_point_order)

    def active_points(self) -> List[CalibrationPoint]:
        return [p for p in self.points() if p.is_active]

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(
        self,
        country_code: Optional[str] = None,
        coordinate_system_id: Optional[str] = None,
        model_units: Optional[LengthUnit | str] = None,
        model_has_real_coordinates: Optional[bool] = None,
    ) -> ProjectCoordinateSettings:
        """Change the project's coordinate configuration.

        Changing country, coordinate system, model units or the real-world
        coordinates flag invalidates the stored transform: it is cleared and,
        unless the model is in real-world coordinates, the project is re-solved
        against the new configuration.

        Raises:
            UnsupportedCrsError: Unknown coordinate system, a system that does
                not belong to the country, or real-world model coordinates
                combined with the local system
        """
        current = self.settings

        if coordinate_system_id is not None:
            system = self.catalog.get(coordinate_system_id)
            if country_code is not None and system.country_code != country_code:
                raise UnsupportedCrsError(
                    coordinate_system_id,
                    f"system belongs to country '{system.country_code}', not '{country_code}'",
                )
        elif country_code is not None and country_code != current.country_code:
            system = self.catalog.default_system_for_country(country_code)
        else:
            system = self.catalog.get(current.coordinate_system_id)

        units = LengthUnit.parse(model_units) if model_units is not None else current.model_units
        real_coords = (
            current.model_has_real_coordinates
            if model_has_real_coordinates is None
            else bool(model_has_real_coordinates)
        )
        if real_coords and system.is_local:
            raise UnsupportedCrsError(system.id, "local system cannot hold real-world model coordinates")

        invalidates = (
            system.country_code != current.country_code
            or system.id != current.coordinate_system_id
            or units != current.model_units
            or real_coords != current.model_has_real_coordinates
        )

        updated = replace(
            current,
            country_code=system.country_code,
            coordinate_system_id=system.id,
            model_units=units,
            model_has_real_coordinates=real_coords,
            updated_at=iso_utc_now(),
        )
        if invalidates:
            updated = updated.without_calibration()
        self.store.save_settings(updated)
        logger.info(
            f"Project {self.project_id} configured: crs={system.id}, units={units.value}, "
            f"real_coordinates={real_coords}"
        )

        if invalidates:
            if real_coords:
                self._write_errors({})
            else:
                self.recalculate()
        return self.settings

    def reset_calibration(self) -> ProjectCoordinateSettings:
        """Discard the stored transform and residuals."""
        settings = self.settings.without_calibration()
        self.store.save_settings(settings)
        self._write_errors({})
        logger.info(f"Calibration of project {self.project_id} reset")
        return settings

    # ------------------------------------------------------------------
    # Point mutations (each triggers a recalculation)
    # ------------------------------------------------------------------

    def add_or_update_point(self, point: CalibrationPoint) -> RecalculationOutcome:
        """Insert or replace a calibration point, then recalculate."""
        if point.project_id != self.project_id:
            raise ValueError(
                f"Point '{point.id}' belongs to project '{point.project_id}', not '{self.project_id}'"
            )
        self.store.upsert_point(point)
        logger.info(f"Upserted calibration point {point.id} in project {self.project_id}")
        return self.recalculate()

    def remove_point(self, point_id: str) -> RecalculationOutcome:
        """Delete a calibration point, then recalculate.

        Raises:
            KeyError: If the point does not exist in this project
        """
        self.store.get_point(self.project_id, point_id)
        self.store.delete_point(point_id)
        logger.info(f"Removed calibration point {point_id} from project {self.project_id}")
        return self.recalculate()

    def set_point_active(self, point_id: str, active: bool) -> RecalculationOutcome:
        """Include or exclude a point from the solve, then recalculate.

        Raises:
            KeyError: If the point does not exist in this project
        """
        point = self.store.get_point(self.project_id, point_id)
        if point.is_active != active:
            self.store.upsert_point(replace(point, is_active=bool(active)))
            logger.info(
                f"Calibration point {point_id} {'activated' if active else 'deactivated'}"
            )
        return self.recalculate()

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def recalculate(self) -> RecalculationOutcome:
        """Re-solve the transform from the current active points.

        Insufficient or degenerate point sets are absorbed into the returned
        outcome and the stored status; the previous transform is kept.

        Raises:
            UnsupportedCrsError: The project's CRS is not in the catalog
        """
        settings = self.settings
        crs = self.catalog.get(settings.coordinate_system_id)
        points = self.points()
        active = [p for p in points if p.is_active]

        if settings.model_has_real_coordinates:
            return RecalculationOutcome(
                status=settings.calibration_status,
                settings=settings,
                active_points=len(active),
                messages=["Model has real-world coordinates: calibration skipped"],
            )

        try:
            fit = self._solve(crs, settings.model_units, active)
        except InsufficientPointsError as exc:
            status = (
                CalibrationStatus.IN_PROGRESS
                if len(points) >= MIN_POINTS
                else CalibrationStatus.NOT_CALIBRATED
            )
            updated = settings.with_status(status)
            self.store.save_settings(updated)
            self._write_errors({})
            logger.info(f"Project {self.project_id}: {exc.message}; status={status.value}")
            return RecalculationOutcome(
                status=status,
                settings=updated,
                active_points=len(active),
                messages=[exc.message],
            )
        except DegenerateGeometryError as exc:
            updated = settings.with_status(CalibrationStatus.IN_PROGRESS)
            self.store.save_settings(updated)
            self._write_errors({})
            logger.warning(f"Project {self.project_id}: {exc}")
            return RecalculationOutcome(
                status=CalibrationStatus.IN_PROGRESS,
                settings=updated,
                warning=exc,
                active_points=len(active),
                messages=[str(exc)],
            )

        updated = settings.with_calibration(
            transform=fit.transform,
            rmse_m=fit.rmse,
            max_error_m=fit.max_error,
            quality=fit.quality,
            points_count=len(active),
            user_name=self.user_name,
        )
        self.store.save_settings(updated)
        self._write_errors({r.point_id: r.error for r in fit.residuals})
        logger.info(
            f"Project {self.project_id} calibrated from {len(active)} points: "
            f"rmse={fit.rmse:.3f}m, max={fit.max_error:.3f}m, quality={fit.quality.value}"
        )
        for r in fit.residuals:
            logger.debug(f"  point {r.point_id}: residual {r.error:.4f}m")

        return RecalculationOutcome(
            status=CalibrationStatus.CALIBRATED,
            settings=updated,
            fit=fit,
            active_points=len(active),
            messages=list(fit.messages),
        )

    def _solve(
        self,
        crs: CoordinateReferenceSystem,
        units: LengthUnit,
        active: List[CalibrationPoint],
    ) -> SimilarityFit:
        if len(active) < MIN_POINTS:
            raise InsufficientPointsError(len(active), MIN_POINTS)

        anchor = active[0]
        approximation = None
        if crs.is_local:
            approximation = EquirectangularApproximation(
                anchor.latitude, anchor.longitude, radius=self.options.earth_radius_m
            )

        source = [(to_meters(p.model_x, units), to_meters(p.model_y, units)) for p in active]
        destination = [
            self.projection.to_planar(crs, p.latitude, p.longitude, approximation)
            for p in active
        ]

        if approximation is not None:
            extent = max_extent(as_point_array(destination))
            if extent > self.options.local_extent_warning_m:
                logger.warning(
                    f"Local CRS calibration spans {extent:.0f}m; the planar approximation "
                    f"is inaccurate beyond {self.options.local_extent_warning_m:.0f}m"
                )

        return solve_similarity_2d(
            source,
            destination,
            point_ids=[p.id for p in active],
            options=self.options,
            origin_geographic=(anchor.latitude, anchor.longitude),
        )

    def _write_errors(self, errors: Dict[str, float]) -> None:
        """Store residuals on points; points not in ``errors`` get None."""
        for point in self.store.list_points(self.project_id):
            new_error = errors.get(point.id)
            if point.error_m != new_error:
                self.store.upsert_point(replace(point, error_m=new_error))

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_geographic(self, model_point: ModelPoint) -> GeoPoint:
        """Convert a model point (model units) to WGS84.

        Raises:
            NotCalibratedError: Project is not calibrated and the model is not
                in real-world coordinates
        """
        settings = self.settings
        crs = self.catalog.get(settings.coordinate_system_id)
        xm = to_meters(model_point.x, settings.model_units)
        ym = to_meters(model_point.y, settings.model_units)

        if settings.model_has_real_coordinates:
            lat, lon = self.projection.to_geographic(crs, xm, ym)
        else:
            transform = self._current_transform(settings)
            X, Y = transform.apply(xm, ym)
            lat, lon = self.projection.to_geographic(crs, X, Y, self._approximation(crs, transform))
        return GeoPoint(latitude=lat, longitude=lon)

    def to_model(self, geo_point: GeoPoint) -> ModelPoint:
        """Convert a WGS84 position to model coordinates (model units).

        Raises:
            NotCalibratedError: Project is not calibrated and the model is not
                in real-world coordinates
        """
        settings = self.settings
        crs = self.catalog.get(settings.coordinate_system_id)

        if settings.model_has_real_coordinates:
            xm, ym = self.projection.to_planar(crs, geo_point.latitude, geo_point.longitude)
        else:
            transform = self._current_transform(settings)
            X, Y = self.projection.to_planar(
                crs, geo_point.latitude, geo_point.longitude, self._approximation(crs, transform)
            )
            xm, ym = transform.inverse(X, Y)
        return ModelPoint(
            x=from_meters(xm, settings.model_units),
            y=from_meters(ym, settings.model_units),
        )

    def _current_transform(self, settings: ProjectCoordinateSettings) -> SimilarityTransform:
        if not settings.is_calibrated or settings.transform is None:
            logger.warning(
                f"Conversion requested for project {self.project_id} "
                f"with status {settings.calibration_status.value}"
            )
            raise NotCalibratedError(self.project_id, settings.calibration_status.value)
        return settings.transform

    def _approximation(
        self,
        crs: CoordinateReferenceSystem,
        transform: SimilarityTransform,
    ) -> Optional[EquirectangularApproximation]:
        if not crs.is_local:
            return None
        lat0, lon0 = transform.origin_geographic
        return EquirectangularApproximation(lat0, lon0, radius=self.options.earth_radius_m)
