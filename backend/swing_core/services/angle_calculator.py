"""
Angle Calculator Service

Geometry helpers for body-line angles used in golf swing analysis.
All angles are in degrees (0-180).

This is pure mathematics - no external dependencies except numpy.
"""

import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..domain.pose import PoseLandmark
from ..domain.trajectory import TrajectoryPoint

Point = Union[PoseLandmark, TrajectoryPoint]
Vector = Tuple[float, float, float]


class AngleCalculator:
    """
    Calculates angles and distances between tracked points.

    Golf-specific uses:
    - Shoulder turn (shoulder-line rotation between address and top)
    - Hip turn (hip-line rotation between address and top)
    - Shaft direction (forearm line)

    All methods are static - no state needed.
    """

    # -------------------------------------------------------------------------
    # Core Angle Calculations
    # -------------------------------------------------------------------------

    @staticmethod
    def vector_angle(v1: Sequence[float], v2: Sequence[float]) -> Optional[float]:
        """
        Angle between two vectors of equal dimension.

        Returns:
            Angle in degrees (0-180), or None if either vector has zero length
        """
        a = np.asarray(v1, dtype=float)
        b = np.asarray(v2, dtype=float)

        norm = np.linalg.norm(a) * np.linalg.norm(b)
        if norm == 0:
            return None

        cos_angle = np.dot(a, b) / norm

        # Clamp to valid range (handles floating point errors)
        cos_angle = np.clip(cos_angle, -1.0, 1.0)

        return float(np.degrees(np.arccos(cos_angle)))

    # -------------------------------------------------------------------------
    # Golf-Specific Angle Calculations
    # -------------------------------------------------------------------------

    @staticmethod
    def line_rotation(
        left_start: Point,
        right_start: Point,
        left_end: Point,
        right_end: Point,
    ) -> Optional[float]:
        """
        Angular displacement of a body line (e.g. the shoulder line)
        between two moments.

        The line vector is left -> right; the result is the angle between
        the vector at the start and the vector at the end.

        Returns:
            Rotation in degrees (0 = unchanged, 180 = fully reversed)
        """
        start = AngleCalculator.line_vector(left_start, right_start)
        end = AngleCalculator.line_vector(left_end, right_end)
        return AngleCalculator.vector_angle(start, end)

    @staticmethod
    def line_vector(left: Point, right: Point) -> Vector:
        return (right.x - left.x, right.y - left.y, right.z - left.z)

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_distance(p1: Optional[Point], p2: Optional[Point]) -> Optional[float]:
        """Calculate 3D distance between two points."""
        if p1 is None or p2 is None:
            return None
        return math.sqrt((p1.x - p2.x) ** 2 + (p1.y - p2.y) ** 2 + (p1.z - p2.z) ** 2)

    @staticmethod
    def calculate_midpoint(
        p1: Optional[Point],
        p2: Optional[Point]
    ) -> Optional[Vector]:
        """Calculate 3D midpoint between two points."""
        if p1 is None or p2 is None:
            return None
        return ((p1.x + p2.x) / 2, (p1.y + p2.y) / 2, (p1.z + p2.z) / 2)

    @staticmethod
    def normalize(v: Sequence[float]) -> Optional[Vector]:
        """Unit vector, or None for a zero vector."""
        length = math.sqrt(sum(c * c for c in v))
        if length == 0:
            return None
        return tuple(c / length for c in v)  # type: ignore[return-value]
