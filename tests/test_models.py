"""
Tests for the calibration data model: points, units, transform, settings
and options.
"""

import math
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from site_georef.core.models import (
    CalibrationOptions,
    CalibrationPoint,
    CalibrationQuality,
    CalibrationStatus,
    CaptureMethod,
    GeoPoint,
    LengthUnit,
    ModelReference,
    ProjectCoordinateSettings,
    SimilarityTransform,
    from_meters,
    to_meters,
)


class TestCalibrationPoint:
    """Tests for CalibrationPoint creation and validation."""

    def test_create_basic_point(self):
        """A point with minimal fields gets defaults and a timestamp."""
        p = CalibrationPoint(
            id="cp1", project_id="proj", model_x=1200, model_y=-350.5,
            latitude=59.437, longitude=24.7536,
        )

        assert p.model_x == 1200.0
        assert isinstance(p.model_x, float)
        assert p.is_active is True
        assert p.error_m is None
        assert p.capture_method == CaptureMethod.MANUAL
        assert p.created_at.endswith("Z")

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError, match="ID cannot be empty"):
            CalibrationPoint(id="", project_id="proj", model_x=0, model_y=0,
                             latitude=0, longitude=0)

    def test_missing_project_rejected(self):
        with pytest.raises(ValueError, match="project"):
            CalibrationPoint(id="cp1", project_id="", model_x=0, model_y=0,
                             latitude=0, longitude=0)

    @pytest.mark.parametrize("lat,lon", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.1), (0.0, -181.0)])
    def test_out_of_range_coordinates_rejected(self, lat, lon):
        with pytest.raises(ValueError, match="out of range"):
            CalibrationPoint(id="cp1", project_id="proj", model_x=0, model_y=0,
                             latitude=lat, longitude=lon)

    def test_negative_accuracy_rejected(self):
        with pytest.raises(ValueError, match="accuracy_m"):
            CalibrationPoint(id="cp1", project_id="proj", model_x=0, model_y=0,
                             latitude=0, longitude=0, accuracy_m=-0.1)

    def test_capture_method_from_string(self):
        p = CalibrationPoint(id="cp1", project_id="proj", model_x=0, model_y=0,
                             latitude=0, longitude=0, capture_method="RTK")
        assert p.capture_method == CaptureMethod.RTK

    def test_model_and_geo_point(self):
        p = CalibrationPoint(id="cp1", project_id="proj", model_x=1, model_y=2, model_z=3,
                             latitude=10, longitude=20, altitude=30)
        assert p.model_point.x == 1.0
        assert p.model_point.z == 3
        assert p.geo_point == GeoPoint(10.0, 20.0, 30)

    def test_dict_round_trip_with_reference(self):
        """to_dict / from_dict preserves every field, including the model reference."""
        p = CalibrationPoint(
            id="cp1", project_id="proj", model_x=1.5, model_y=2.5,
            latitude=59.4, longitude=24.7, altitude=31.2, accuracy_m=0.02,
            capture_method=CaptureMethod.AVERAGED, is_active=False, error_m=0.004,
            name="NE corner", description="column C4",
            reference=ModelReference(guid="abc", object_name="Column"),
            created_at="2026-01-01T00:00:00Z", created_by_name="Kati",
        )
        restored = CalibrationPoint.from_dict(p.to_dict())

        assert restored == p
        assert restored.reference.guid == "abc"
        assert restored.reference.guid_ifc is None

    def test_from_dict_without_reference(self):
        p = CalibrationPoint.from_dict({
            "id": "cp1", "project_id": "proj", "model_x": 0, "model_y": 0,
            "latitude": 1, "longitude": 2,
        })
        assert p.reference is None
        assert p.is_active is True

    def test_from_dict_accepts_backend_column_names(self):
        """Hosted backend rows use gps_* and calculated_error_m columns."""
        p = CalibrationPoint.from_dict({
            "id": 7,
            "trimble_project_id": "tp-1",
            "model_x": "10", "model_y": "20", "model_z": "",
            "gps_latitude": 59.1, "gps_longitude": 24.2, "gps_altitude": None,
            "gps_accuracy_m": "0.5",
            "calculated_error_m": 0.12,
            "is_active": "false",
        })

        assert p.id == "7"
        assert p.project_id == "tp-1"
        assert p.model_z is None
        assert p.latitude == 59.1
        assert p.accuracy_m == 0.5
        assert p.error_m == 0.12
        assert p.is_active is False


class TestLengthUnits:
    """Tests for unit parsing and conversion."""

    @pytest.mark.parametrize("text,unit", [
        ("mm", LengthUnit.MILLIMETERS),
        ("millimeters", LengthUnit.MILLIMETERS),
        ("M", LengthUnit.METERS),
        ("ft", LengthUnit.FEET),
        ("us-ft", LengthUnit.US_SURVEY_FEET),
        ("us_survey_feet", LengthUnit.US_SURVEY_FEET),
    ])
    def test_parse(self, text, unit):
        assert LengthUnit.parse(text) == unit

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            LengthUnit.parse("cubits")

    def test_conversions(self):
        assert to_meters(1500.0, LengthUnit.MILLIMETERS) == pytest.approx(1.5)
        assert to_meters(10.0, LengthUnit.FEET) == pytest.approx(3.048)
        assert to_meters(3937.0, LengthUnit.US_SURVEY_FEET) == pytest.approx(1200.0)
        assert from_meters(1.0, LengthUnit.MILLIMETERS) == pytest.approx(1000.0)
        assert from_meters(to_meters(123.4, LengthUnit.FEET), LengthUnit.FEET) == pytest.approx(123.4)


class TestSimilarityTransform:
    """Tests for the transform value object."""

    def test_apply_and_inverse(self):
        t = SimilarityTransform(tx=500000.0, ty=6500000.0, rotation=math.radians(30), scale=1.0002)
        X, Y = t.apply(12.5, -40.0)
        x, y = t.inverse(X, Y)

        assert x == pytest.approx(12.5, abs=1e-9)
        assert y == pytest.approx(-40.0, abs=1e-9)

    def test_quarter_turn(self):
        t = SimilarityTransform(tx=0.0, ty=0.0, rotation=math.pi / 2, scale=2.0)
        X, Y = t.apply(1.0, 0.0)
        assert X == pytest.approx(0.0, abs=1e-12)
        assert Y == pytest.approx(2.0)

    @pytest.mark.parametrize("scale", [0.0, -1.0, float("nan"), float("inf")])
    def test_invalid_scale_rejected(self, scale):
        with pytest.raises(ValueError, match="scale"):
            SimilarityTransform(tx=0, ty=0, rotation=0, scale=scale)

    def test_dict_round_trip(self):
        t = SimilarityTransform(
            tx=1.0, ty=2.0, rotation=0.1, scale=0.9999,
            origin_model=(3.0, 4.0), origin_geographic=(59.0, 24.0),
        )
        data = t.to_dict()

        assert data["type"] == "helmert_2d"
        assert data["rotation_deg"] == pytest.approx(math.degrees(0.1))
        assert SimilarityTransform.from_dict(data) == t

    def test_from_dict_degrees_and_lng(self):
        t = SimilarityTransform.from_dict({
            "translation": {"x": 5, "y": 6},
            "rotation_deg": 90.0,
            "scale": 1.0,
            "origin_gps": {"lat": 40.0, "lng": -74.0},
        })
        assert t.rotation == pytest.approx(math.pi / 2)
        assert t.origin_geographic == (40.0, -74.0)


class TestProjectCoordinateSettings:
    """Tests for settings records and their transitions."""

    def _transform(self):
        return SimilarityTransform(tx=10.0, ty=20.0, rotation=0.0, scale=1.0)

    def test_default(self):
        s = ProjectCoordinateSettings.default("proj")

        assert s.coordinate_system_id == "local_calibrated"
        assert s.country_code == "LOCAL"
        assert s.model_units == LengthUnit.MILLIMETERS
        assert s.calibration_status == CalibrationStatus.NOT_CALIBRATED
        assert s.transform is None
        assert s.updated_at is not None

    def test_calibrated_requires_transform(self):
        with pytest.raises(ValueError, match="transform"):
            ProjectCoordinateSettings(project_id="proj", calibration_status=CalibrationStatus.CALIBRATED)

    def test_us_survey_feet_not_a_model_unit(self):
        with pytest.raises(ValueError, match="model unit"):
            ProjectCoordinateSettings(project_id="proj", model_units=LengthUnit.US_SURVEY_FEET)

    def test_string_fields_coerced(self):
        s = ProjectCoordinateSettings(project_id="proj", model_units="ft", calibration_status="in_progress")
        assert s.model_units == LengthUnit.FEET
        assert s.calibration_status == CalibrationStatus.IN_PROGRESS

    def test_with_calibration(self):
        s = ProjectCoordinateSettings.default("proj").with_calibration(
            self._transform(), rmse_m=0.2, max_error_m=0.3,
            quality=CalibrationQuality.EXCELLENT, points_count=3, user_name="Mari",
        )

        assert s.is_calibrated
        assert s.calibration_points_count == 3
        assert s.calibrated_by_name == "Mari"
        assert s.calibrated_at == s.updated_at

    def test_with_status_keeps_transform(self):
        """Leaving the calibrated state keeps the last transform."""
        calibrated = ProjectCoordinateSettings.default("proj").with_calibration(
            self._transform(), 0.2, 0.3, CalibrationQuality.EXCELLENT, 2,
        )
        s = calibrated.with_status(CalibrationStatus.IN_PROGRESS)

        assert not s.is_calibrated
        assert s.transform == calibrated.transform
        assert s.rmse_m == 0.2

    def test_with_status_calibrated_without_transform(self):
        with pytest.raises(ValueError):
            ProjectCoordinateSettings.default("proj").with_status(CalibrationStatus.CALIBRATED)

    def test_without_calibration(self):
        s = ProjectCoordinateSettings.default("proj").with_calibration(
            self._transform(), 0.2, 0.3, CalibrationQuality.EXCELLENT, 2, "Mari",
        ).without_calibration()

        assert s.calibration_status == CalibrationStatus.NOT_CALIBRATED
        assert s.transform is None
        assert s.quality is None
        assert s.calibrated_by_name is None

    def test_dict_round_trip(self):
        s = ProjectCoordinateSettings(
            project_id="proj", country_code="EE", coordinate_system_id="ee_lest97",
            model_units=LengthUnit.METERS,
        ).with_calibration(self._transform(), 1.5, 2.0, CalibrationQuality.GOOD, 4)
        data = s.to_dict()

        assert data["calibration_quality"] == "good"
        assert data["model_units"] == "meters"
        assert ProjectCoordinateSettings.from_dict(data) == s

    def test_from_dict_legacy_keys(self):
        s = ProjectCoordinateSettings.from_dict({
            "trimble_project_id": "tp-9",
            "transform_matrix": self._transform().to_dict(),
            "calibration_status": "calibrated",
        })
        assert s.project_id == "tp-9"
        assert s.is_calibrated
        assert s.transform.tx == 10.0


class TestCalibrationOptions:
    """Tests for CalibrationOptions."""

    def test_defaults(self):
        opts = CalibrationOptions.default()
        assert opts.collinearity_tolerance == 1e-9
        assert opts.earth_radius_m == 6371000.0

    def test_strict(self):
        assert CalibrationOptions.strict().collinearity_tolerance == 1e-3

    @pytest.mark.parametrize("kwargs", [
        {"collinearity_tolerance": 1.0},
        {"coincidence_tolerance_m": -1.0},
        {"rank_tolerance": 0.0},
        {"earth_radius_m": 0.0},
        {"local_extent_warning_m": -5.0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            CalibrationOptions(**kwargs)

    def test_dict_round_trip(self):
        opts = CalibrationOptions(collinearity_tolerance=1e-6, earth_radius_m=6378137.0)
        assert CalibrationOptions.from_dict(opts.to_dict()) == opts
