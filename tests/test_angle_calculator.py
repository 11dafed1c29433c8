"""Tests for the geometry helpers."""

import math

import pytest

from swing_core.domain import PoseLandmark
from swing_core.services.angle_calculator import AngleCalculator


def lm(x, y, z=0.0):
    return PoseLandmark(x, y, z, visibility=1.0)


def test_vector_angle():
    assert AngleCalculator.vector_angle((1, 0, 0), (0, 1, 0)) == pytest.approx(90.0)
    assert AngleCalculator.vector_angle((1, 0, 0), (-2, 0, 0)) == pytest.approx(180.0)
    assert AngleCalculator.vector_angle((0, 0, 0), (1, 0, 0)) is None


def test_line_rotation_in_depth():
    # Shoulder line turning from facing the camera to side-on
    angle = AngleCalculator.line_rotation(
        lm(0.4, 0.3), lm(0.6, 0.3),
        lm(0.5, 0.3, -0.1), lm(0.5, 0.3, 0.1),
    )
    assert angle == pytest.approx(90.0)


def test_line_rotation_unchanged():
    angle = AngleCalculator.line_rotation(lm(0.4, 0.3), lm(0.6, 0.3), lm(0.3, 0.5), lm(0.5, 0.5))
    assert angle == pytest.approx(0.0)


def test_distance_and_midpoint():
    a, b = lm(0.0, 0.0, 0.0), lm(0.3, 0.4, 0.0)
    assert AngleCalculator.calculate_distance(a, b) == pytest.approx(0.5)
    assert AngleCalculator.calculate_midpoint(a, b) == pytest.approx((0.15, 0.2, 0.0))
    assert AngleCalculator.calculate_distance(a, None) is None
    assert AngleCalculator.calculate_midpoint(None, b) is None


def test_normalize():
    x, y, z = AngleCalculator.normalize((3.0, 4.0, 0.0))
    assert math.isclose(x, 0.6) and math.isclose(y, 0.8) and z == 0.0
    assert AngleCalculator.normalize((0.0, 0.0, 0.0)) is None
