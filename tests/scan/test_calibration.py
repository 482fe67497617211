import math

import numpy as np
import pytest

from linescan.core.errors import InvalidCalibration
from linescan.core.types import CalibrationPoint, CalibrationSet
from linescan.scan.calibration import (
    display_positions,
    edit_calibration_point,
    flip_position,
    nearest_position_index,
    position_to_wavelength,
    positions_to_wavelengths,
    usable_points,
    validate_calibration_points,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def two_point():
    return CalibrationSet(points=((0.25, 450.0), (0.75, 650.0)), enabled=True)


class TestPositionToWavelength:
    """Piecewise-linear mapping with edge extrapolation."""

    @pytest.mark.parametrize("position, expected", [
        (0.5, 550.0),
        (0.0, 350.0),
        (1.0, 750.0),
        (0.25, 450.0),
        (0.75, 650.0),
    ])
    def test_two_point_mapping(self, two_point, position, expected):
        assert position_to_wavelength(position, two_point) == pytest.approx(expected)

    def test_disabled_is_identity(self):
        cal = CalibrationSet(points=((0.25, 450.0), (0.75, 650.0)), enabled=False)
        assert position_to_wavelength(0.3, cal) == 0.3

    def test_point_order_does_not_matter(self):
        cal = CalibrationSet(points=((0.75, 650.0), (0.25, 450.0)), enabled=True)
        assert position_to_wavelength(0.5, cal) == pytest.approx(550.0)

    def test_multi_segment_interpolation(self):
        cal = CalibrationSet(points=((0.0, 400.0), (0.5, 500.0), (1.0, 700.0)), enabled=True)
        assert position_to_wavelength(0.25, cal) == pytest.approx(450.0)
        assert position_to_wavelength(0.75, cal) == pytest.approx(600.0)

    def test_extrapolation_uses_edge_segments(self):
        cal = CalibrationSet(points=((0.2, 400.0), (0.4, 500.0), (0.8, 600.0)), enabled=True)
        assert position_to_wavelength(0.0, cal) == pytest.approx(300.0)
        assert position_to_wavelength(1.0, cal) == pytest.approx(650.0)

    def test_duplicate_positions_keep_first_point(self):
        cal = CalibrationSet(points=((0.2, 400.0), (0.2, 999.0), (0.8, 600.0)), enabled=True)
        assert position_to_wavelength(0.5, cal) == pytest.approx(500.0)

    def test_fewer_than_two_usable_points_is_identity(self):
        cal = CalibrationSet(points=((0.5, 500.0), (0.5, 600.0)), enabled=True)
        assert position_to_wavelength(0.3, cal) == 0.3

    def test_non_finite_points_are_ignored(self):
        cal = CalibrationSet(points=((0.25, 450.0), (math.nan, 500.0), (0.75, 650.0)), enabled=True)
        assert position_to_wavelength(0.5, cal) == pytest.approx(550.0)

    def test_vectorized_matches_scalar(self, two_point):
        positions = np.linspace(0, 1, 11)
        expected = [position_to_wavelength(p, two_point) for p in positions]
        np.testing.assert_allclose(positions_to_wavelengths(positions, two_point), expected)

    def test_input_positions_not_modified(self, two_point):
        positions = np.linspace(0, 1, 5)
        positions_to_wavelengths(positions, two_point)
        np.testing.assert_array_equal(positions, np.linspace(0, 1, 5))


class TestValidation:
    """Calibration edits are rejected when they would break the mapper."""

    def test_valid_points_pass(self):
        points = validate_calibration_points([(0.1, 400), {"position": 0.9, "wavelength": 700}])
        assert points == (CalibrationPoint(0.1, 400.0), CalibrationPoint(0.9, 700.0))

    @pytest.mark.parametrize("points", [
        [(0.5, 500)],
        [(0.5, 500), (0.5, 600)],
        [(0.2, 400), (1.5, 600)],
        [(0.2, 400), (math.inf, 600)],
        [("a", 400), (0.8, 600)],
        [(0.2,), (0.8, 600)],
    ])
    def test_invalid_points_raise(self, points):
        with pytest.raises(InvalidCalibration):
            validate_calibration_points(points)

    def test_invalid_calibration_is_value_error(self):
        with pytest.raises(ValueError):
            validate_calibration_points([])

    def test_usable_points_sorted(self):
        points = usable_points([(0.9, 700), (0.1, 400), (0.5, 550)])
        assert [p.position for p in points] == [0.1, 0.5, 0.9]


class TestEditPoint:
    """Single-point edits."""

    def test_position_rounded_to_three_decimals(self):
        points = validate_calibration_points([(0.25, 450), (0.75, 650)])
        edited = edit_calibration_point(points, 0, position=0.12345)
        assert edited[0] == CalibrationPoint(0.123, 450.0)
        assert edited[1] == points[1]

    def test_wavelength_only(self):
        points = validate_calibration_points([(0.25, 450), (0.75, 650)])
        edited = edit_calibration_point(points, 1, wavelength=700)
        assert edited[1] == CalibrationPoint(0.75, 700.0)

    def test_duplicate_after_rounding_is_rejected(self):
        points = validate_calibration_points([(0.25, 450), (0.75, 650)])
        with pytest.raises(InvalidCalibration):
            edit_calibration_point(points, 0, position=0.7501)
        assert points[0] == CalibrationPoint(0.25, 450.0)

    @pytest.mark.parametrize("index", [-1, 2])
    def test_bad_index(self, index):
        points = validate_calibration_points([(0.25, 450), (0.75, 650)])
        with pytest.raises(InvalidCalibration):
            edit_calibration_point(points, index, wavelength=500)

    def test_non_numeric_value(self):
        points = validate_calibration_points([(0.25, 450), (0.75, 650)])
        with pytest.raises(InvalidCalibration):
            edit_calibration_point(points, 0, wavelength="blue")


class TestDisplayAxis:
    """Flip is display-only."""

    @pytest.mark.parametrize("p", [0.0, 0.3, 0.5, 1.0])
    def test_flip_is_involution(self, p):
        assert flip_position(flip_position(p)) == pytest.approx(p)

    def test_display_positions(self):
        positions = np.array([0.0, 0.25, 1.0])
        np.testing.assert_allclose(display_positions(positions, True), [1.0, 0.75, 0.0])
        np.testing.assert_array_equal(display_positions(positions, False), positions)
        np.testing.assert_array_equal(positions, [0.0, 0.25, 1.0])

    def test_nearest_position_index(self):
        positions = np.linspace(0, 1, 11)
        assert nearest_position_index(positions, 0.22) == 2
        assert nearest_position_index(positions, 0.22, flip=True) == 8

    def test_nearest_position_index_empty(self):
        with pytest.raises(ValueError):
            nearest_position_index([], 0.5)
