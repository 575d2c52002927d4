"""
Tests for the calibration engine: state machine, recalculation, conversion
and project configuration.

GPS readings are generated from known geometry so the solved transform can
be checked against the truth.
"""

import math
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from site_georef.core.engine import CalibrationEngine
from site_georef.core.exceptions import (
    DegenerateGeometryError,
    NotCalibratedError,
    UnsupportedCrsError,
)
from site_georef.core.models import (
    CalibrationPoint,
    CalibrationQuality,
    CalibrationStatus,
    GeoPoint,
    LengthUnit,
    ModelPoint,
    ProjectCoordinateSettings,
    SimilarityTransform,
)
from site_georef.core.persistence import InMemoryCalibrationStore
from site_georef.core.projection import EquirectangularApproximation, to_geographic
from site_georef.core.solver.geometry import haversine_distance


LAT0, LON0 = 59.437, 24.7536
SITE = EquirectangularApproximation(LAT0, LON0)


def make_point(pid, model_x, model_y, east, north, seq, **kwargs):
    """Point whose GPS reading lies ``east``/``north`` meters from the site origin."""
    lat, lon = SITE.inverse(east, north)
    return CalibrationPoint(
        id=pid,
        project_id="proj",
        model_x=model_x,
        model_y=model_y,
        latitude=lat,
        longitude=lon,
        created_at=f"2026-03-01T08:00:{seq:02d}Z",
        **kwargs,
    )


def surveyed_point(pid, model_x, model_y, seq, transform, crs_id="ee_lest97"):
    """Point whose GPS reading is the exact image of the model point under ``transform``."""
    X, Y = transform.apply(model_x, model_y)
    lat, lon = to_geographic(crs_id, X, Y)
    return CalibrationPoint(
        id=pid, project_id="proj", model_x=model_x, model_y=model_y,
        latitude=lat, longitude=lon, created_at=f"2026-03-01T08:00:{seq:02d}Z",
    )


@pytest.fixture
def store():
    return InMemoryCalibrationStore()


@pytest.fixture
def engine(store):
    eng = CalibrationEngine("proj", store, user_name="Mari")
    eng.configure(model_units="m")
    return eng


class TestStateMachine:
    """Status transitions driven by recalculation."""

    def test_fresh_project(self, store):
        engine = CalibrationEngine("new", store)
        assert store.load_settings("new") is None

        assert engine.status == CalibrationStatus.NOT_CALIBRATED
        # Default settings are persisted on first access.
        assert store.load_settings("new") is not None

    def test_single_point_not_calibrated(self, engine):
        outcome = engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))

        assert outcome.status == CalibrationStatus.NOT_CALIBRATED
        assert not outcome.solved
        assert outcome.active_points == 1
        assert engine.settings.transform is None

    def test_two_points_calibrate(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        outcome = engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))

        assert outcome.status == CalibrationStatus.CALIBRATED
        assert outcome.solved
        assert any("Exactly 2 points" in m for m in outcome.messages)

        settings = engine.settings
        assert settings.is_calibrated
        assert settings.calibration_points_count == 2
        assert settings.calibrated_by_name == "Mari"
        assert settings.quality == CalibrationQuality.EXCELLENT
        assert settings.rmse_m == pytest.approx(0.0, abs=1e-6)

    def test_deactivation_keeps_previous_transform(self, engine):
        """Dropping below 2 active points keeps the stored transform untouched."""
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))
        transform = engine.settings.transform

        outcome = engine.set_point_active("p2", False)

        assert outcome.status == CalibrationStatus.IN_PROGRESS
        assert engine.settings.transform == transform
        assert len(engine.points()) == 2
        assert [p.id for p in engine.active_points()] == ["p1"]
        with pytest.raises(NotCalibratedError):
            engine.to_geographic(ModelPoint(5, 0))

        assert engine.set_point_active("p2", True).status == CalibrationStatus.CALIBRATED

    def test_removal_back_to_not_calibrated(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))
        transform = engine.settings.transform

        outcome = engine.remove_point("p2")

        assert outcome.status == CalibrationStatus.NOT_CALIBRATED
        assert engine.settings.transform == transform
        assert [p.id for p in engine.points()] == ["p1"]

    def test_remove_unknown_point(self, engine):
        with pytest.raises(KeyError):
            engine.remove_point("ghost")
        with pytest.raises(KeyError):
            engine.set_point_active("ghost", False)

    def test_point_from_other_project_rejected(self, engine):
        stray = CalibrationPoint(id="x", project_id="other", model_x=0, model_y=0,
                                 latitude=LAT0, longitude=LON0)
        with pytest.raises(ValueError, match="belongs to project"):
            engine.add_or_update_point(stray)

    def test_update_replaces_point(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))
        outcome = engine.add_or_update_point(make_point("p2", 10, 0, 0, 10, 1))

        assert len(engine.points()) == 2
        assert outcome.fit.transform.rotation_degrees == pytest.approx(90.0, abs=1e-6)


class TestDegenerateGeometry:
    """Degenerate point sets are absorbed into the in_progress state."""

    def test_collinear_then_recover(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))
        two_point_transform = engine.settings.transform

        outcome = engine.add_or_update_point(make_point("p3", 20, 0, 20, 0, 2))

        assert outcome.status == CalibrationStatus.IN_PROGRESS
        assert isinstance(outcome.warning, DegenerateGeometryError)
        assert "collinear" in str(outcome.warning)
        assert engine.settings.transform == two_point_transform

        # Excluding the offending point restores calibration.
        assert engine.set_point_active("p3", False).status == CalibrationStatus.CALIBRATED

        # A well placed point makes the full set solvable.
        engine.add_or_update_point(make_point("p4", 0, 10, 0, 10, 3))
        outcome = engine.set_point_active("p3", True)
        assert outcome.status == CalibrationStatus.CALIBRATED
        assert outcome.active_points == 4

    def test_coincident_gps_readings(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        outcome = engine.add_or_update_point(make_point("p2", 10, 0, 0, 0, 1))

        assert outcome.status == CalibrationStatus.IN_PROGRESS
        assert "geographic" in outcome.warning.reason


class TestLocalCalibration:
    """Calibration against the local pseudo-CRS."""

    def test_ten_meters_east(self, engine):
        """Model (0,0) at the anchor and (10,0) 10 m east: identity-like fit."""
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))

        t = engine.settings.transform
        assert t.scale == pytest.approx(1.0, abs=1e-6)
        assert t.rotation == pytest.approx(0.0, abs=1e-6)
        assert t.origin_geographic == (LAT0, LON0)

        p2 = engine.store.get_point("proj", "p2")
        mid = engine.to_geographic(ModelPoint(5, 0))
        assert mid.latitude == pytest.approx(LAT0, abs=1e-9)
        assert mid.longitude == pytest.approx((LON0 + p2.longitude) / 2, abs=1e-9)

    def test_rotated_model_frame(self, engine):
        """Model x pointing north is a 90 degree counter-clockwise rotation."""
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 0, 10, 1))
        outcome = engine.add_or_update_point(make_point("p3", 0, 10, -10, 0, 2))

        assert outcome.status == CalibrationStatus.CALIBRATED
        assert outcome.fit.transform.rotation_degrees == pytest.approx(90.0, abs=1e-6)

    def test_round_trip(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 40, 0, 40, 0, 1))
        engine.add_or_update_point(make_point("p3", 40, 30, 40, 30, 2))

        for x, y in [(0.0, 0.0), (12.3, 45.6), (-80.0, 15.0)]:
            back = engine.to_model(engine.to_geographic(ModelPoint(x, y)))
            assert math.hypot(back.x - x, back.y - y) < 0.01

    def test_millimeter_model(self, store):
        """Model units are converted before solving."""
        engine = CalibrationEngine("proj", store)
        assert engine.settings.model_units == LengthUnit.MILLIMETERS

        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10000, 0, 10, 0, 1))

        assert engine.settings.transform.scale == pytest.approx(1.0, abs=1e-6)
        lat, lon = SITE.inverse(5.0, 0.0)
        back = engine.to_model(GeoPoint(lat, lon))
        assert back.x == pytest.approx(5000.0, abs=0.1)
        assert back.y == pytest.approx(0.0, abs=0.1)
        assert back.z is None

    def test_residuals_written_to_points(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 40, 0, 40, 0, 1))
        engine.add_or_update_point(make_point("p3", 40, 30, 40, 30, 2))
        outcome = engine.add_or_update_point(make_point("p4", 0, 30, 0.5, 30, 3))

        errors = {p.id: p.error_m for p in engine.points()}
        assert all(e is not None for e in errors.values())
        assert errors == pytest.approx(outcome.errors_by_point)
        assert engine.settings.rmse_m > 0.0

        engine.set_point_active("p4", False)
        assert engine.store.get_point("proj", "p4").error_m is None
        assert engine.store.get_point("proj", "p1").error_m is not None


class TestGeodeticCalibration:
    """Calibration against a projected national grid."""

    TRUTH = SimilarityTransform(tx=542000.0, ty=6589000.0, rotation=math.radians(12.0), scale=1.0)

    def _calibrate(self, engine):
        engine.configure(coordinate_system_id="ee_lest97")
        for seq, (x, y) in enumerate([(0, 0), (120, 0), (120, 80), (0, 80), (60, 40)]):
            outcome = engine.add_or_update_point(surveyed_point(f"p{seq}", x, y, seq, self.TRUTH))
        return outcome

    def test_recovers_transform(self, engine):
        outcome = self._calibrate(engine)

        assert outcome.status == CalibrationStatus.CALIBRATED
        t = engine.settings.transform
        assert t.scale == pytest.approx(1.0, abs=1e-7)
        assert t.rotation_degrees == pytest.approx(12.0, abs=1e-6)
        assert t.tx == pytest.approx(542000.0, abs=1e-3)
        assert t.ty == pytest.approx(6589000.0, abs=1e-3)
        assert engine.settings.rmse_m < 1e-3

    def test_round_trip_sub_centimeter(self, engine):
        self._calibrate(engine)

        for x, y in [(10.0, 10.0), (200.0, -50.0), (60.0, 40.0)]:
            geo = engine.to_geographic(ModelPoint(x, y))
            back = engine.to_model(geo)
            assert math.hypot(back.x - x, back.y - y) < 0.01

    def test_geographic_round_trip(self, engine):
        self._calibrate(engine)

        for lat, lon in [(59.4375, 24.7545), (59.4390, 24.7600)]:
            back = engine.to_geographic(engine.to_model(GeoPoint(lat, lon)))
            assert haversine_distance(lat, lon, back.latitude, back.longitude) < 0.01

    def test_calibration_points_map_onto_readings(self, engine):
        self._calibrate(engine)

        for p in engine.points():
            geo = engine.to_geographic(ModelPoint(p.model_x, p.model_y))
            assert haversine_distance(geo.latitude, geo.longitude, p.latitude, p.longitude) < 0.01


class TestConfiguration:
    """CRS, unit and real-coordinate configuration."""

    def test_country_selects_default_system(self, engine):
        settings = engine.configure(country_code="FI")
        assert settings.coordinate_system_id == "fi_tm35fin"
        assert settings.country_code == "FI"

    def test_system_sets_country(self, engine):
        settings = engine.configure(coordinate_system_id="lt_lks94")
        assert settings.country_code == "LT"

    def test_unknown_system(self, engine):
        with pytest.raises(UnsupportedCrsError):
            engine.configure(coordinate_system_id="atlantis_grid")
        assert engine.settings.coordinate_system_id == "local_calibrated"

    def test_system_from_other_country(self, engine):
        with pytest.raises(UnsupportedCrsError):
            engine.configure(country_code="LV", coordinate_system_id="ee_lest97")

    def test_crs_change_resolves_again(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))
        assert abs(engine.settings.transform.tx) < 1.0

        settings = engine.configure(coordinate_system_id="ee_lest97")

        assert settings.is_calibrated
        assert settings.transform.tx > 500000.0

    def test_unit_change_resolves_again(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))

        settings = engine.configure(model_units="mm")

        assert settings.model_units == LengthUnit.MILLIMETERS
        assert settings.transform.scale == pytest.approx(1000.0, rel=1e-6)

    def test_unchanged_configuration_keeps_calibration(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))
        transform = engine.settings.transform

        settings = engine.configure(model_units="m", country_code="LOCAL")

        assert settings.is_calibrated
        assert settings.transform == transform

    def test_reset_calibration(self, engine):
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))

        settings = engine.reset_calibration()

        assert settings.calibration_status == CalibrationStatus.NOT_CALIBRATED
        assert settings.transform is None
        assert all(p.error_m is None for p in engine.points())
        assert engine.recalculate().status == CalibrationStatus.CALIBRATED

    def test_unknown_stored_crs(self, store):
        store.save_settings(ProjectCoordinateSettings(project_id="proj", coordinate_system_id="retired"))
        engine = CalibrationEngine("proj", store)
        with pytest.raises(UnsupportedCrsError):
            engine.recalculate()


class TestRealCoordinates:
    """Models already placed in a national grid skip calibration."""

    def test_converts_without_calibration(self, engine):
        engine.configure(coordinate_system_id="ee_lest97", model_has_real_coordinates=True)
        assert engine.status == CalibrationStatus.NOT_CALIBRATED

        geo = engine.to_geographic(ModelPoint(542000.0, 6589000.0))
        lat, lon = to_geographic("ee_lest97", 542000.0, 6589000.0)
        assert geo.latitude == pytest.approx(lat, abs=1e-12)
        assert geo.longitude == pytest.approx(lon, abs=1e-12)

        back = engine.to_model(geo)
        assert back.x == pytest.approx(542000.0, abs=1e-3)
        assert back.y == pytest.approx(6589000.0, abs=1e-3)

    def test_recalculate_skipped(self, engine):
        engine.configure(coordinate_system_id="ee_lest97", model_has_real_coordinates=True)
        engine.add_or_update_point(make_point("p1", 0, 0, 0, 0, 0))
        outcome = engine.add_or_update_point(make_point("p2", 10, 0, 10, 0, 1))

        assert not outcome.solved
        assert outcome.status == CalibrationStatus.NOT_CALIBRATED
        assert "skipped" in outcome.messages[0]

    def test_local_system_rejected(self, engine):
        with pytest.raises(UnsupportedCrsError):
            engine.configure(model_has_real_coordinates=True)

    def test_leaving_real_coordinates_resolves(self, engine):
        """Point edits made while in real coordinates are honoured when switching back."""
        engine.configure(coordinate_system_id="ee_lest97")
        truth = TestGeodeticCalibration.TRUTH
        engine.add_or_update_point(surveyed_point("p1", 0, 0, 0, truth))
        engine.add_or_update_point(surveyed_point("p2", 100, 0, 1, truth))
        assert engine.status == CalibrationStatus.CALIBRATED

        settings = engine.configure(model_has_real_coordinates=True)
        assert settings.transform is None
        assert all(p.error_m is None for p in engine.points())

        engine.set_point_active("p1", False)
        engine.set_point_active("p2", False)
        settings = engine.configure(model_has_real_coordinates=False)

        assert settings.calibration_status == CalibrationStatus.IN_PROGRESS
        assert settings.transform is None
        with pytest.raises(NotCalibratedError):
            engine.to_geographic(ModelPoint(0, 0))

    def test_leaving_real_coordinates_with_active_points(self, engine):
        engine.configure(coordinate_system_id="ee_lest97", model_has_real_coordinates=True)
        truth = TestGeodeticCalibration.TRUTH
        engine.add_or_update_point(surveyed_point("p1", 0, 0, 0, truth))
        engine.add_or_update_point(surveyed_point("p2", 100, 0, 1, truth))

        settings = engine.configure(model_has_real_coordinates=False)

        assert settings.is_calibrated
        assert settings.calibration_points_count == 2
        assert settings.transform.tx == pytest.approx(truth.tx, abs=1e-3)
