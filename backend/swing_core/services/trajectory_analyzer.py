"""
Trajectory Analyzer Service

Kinematics of a single tracked point: velocity profile, travelled
distance and path smoothness. Gaps in the trajectory are tolerated;
velocities are measured between consecutive available points over the
elapsed frame time.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..domain.trajectory import TrajectoryPoint

# Relative to the speed scale; accelerations below it are rounding error
ACCELERATION_NOISE_FLOOR = 1e-9


@dataclass(frozen=True)
class VelocityProfile:
    """
    Attributes:
        frames: Frame index at the end of each velocity step
        velocities: Speed per step (normalized units per second)
        accelerations: Absolute change in speed per second, one per
            pair of consecutive steps
        peak_velocity_frame: Frame with the highest speed (-1 if none)
        peak_acceleration_frame: Frame with the highest acceleration (-1 if none)
    """
    frames: tuple[int, ...]
    velocities: tuple[float, ...]
    accelerations: tuple[float, ...]
    peak_velocity_frame: int
    peak_acceleration_frame: int


@dataclass(frozen=True)
class TrajectoryStats:
    total_distance: float
    max_velocity: float
    avg_velocity: float
    max_acceleration: float
    avg_acceleration: float
    peak_frame: int
    smoothness: float


class TrajectoryAnalyzer:
    """
    Analyzes one tracked point's path.

    Usage:
        analyzer = TrajectoryAnalyzer(fps=60)
        stats = analyzer.analyze(trajectory.path(TrackedPoint.RIGHT_WRIST))
    """

    def __init__(self, fps: float = 30.0):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.fps = fps

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def analyze(self, points: Sequence[TrajectoryPoint]) -> TrajectoryStats:
        if len(points) < 2:
            return TrajectoryStats(
                total_distance=0.0,
                max_velocity=0.0,
                avg_velocity=0.0,
                max_acceleration=0.0,
                avg_acceleration=0.0,
                peak_frame=points[0].frame if points else -1,
                # A single point is perfectly smooth, an empty path is not
                smoothness=1.0 if points else 0.0,
            )

        profile = self.velocity_profile(points)
        velocities = np.asarray(profile.velocities)
        accelerations = np.asarray(profile.accelerations)

        return TrajectoryStats(
            total_distance=self.total_distance(points),
            max_velocity=float(velocities.max()),
            avg_velocity=float(velocities.mean()),
            max_acceleration=float(accelerations.max()) if accelerations.size else 0.0,
            avg_acceleration=float(accelerations.mean()) if accelerations.size else 0.0,
            peak_frame=profile.peak_velocity_frame,
            smoothness=self._smoothness_of(accelerations, velocities),
        )

    def velocity_profile(self, points: Sequence[TrajectoryPoint]) -> VelocityProfile:
        positions = _positions(points)
        frames = np.array([p.frame for p in points], dtype=float)

        if len(points) < 2:
            return VelocityProfile((), (), (), -1, -1)

        distances = np.linalg.norm(np.diff(positions, axis=0), axis=1)
        dt = np.diff(frames) / self.fps
        velocities = distances / dt

        # Acceleration between consecutive steps, over the midpoint spacing
        if len(velocities) >= 2:
            mid_dt = (dt[:-1] + dt[1:]) / 2
            accelerations = np.abs(np.diff(velocities)) / mid_dt
        else:
            accelerations = np.array([])

        step_frames = [p.frame for p in points[1:]]
        peak_velocity_frame = step_frames[int(np.argmax(velocities))]
        peak_acceleration_frame = (
            step_frames[int(np.argmax(accelerations)) + 1] if accelerations.size else -1
        )

        return VelocityProfile(
            frames=tuple(step_frames),
            velocities=tuple(float(v) for v in velocities),
            accelerations=tuple(float(a) for a in accelerations),
            peak_velocity_frame=peak_velocity_frame,
            peak_acceleration_frame=peak_acceleration_frame,
        )

    def total_distance(self, points: Sequence[TrajectoryPoint]) -> float:
        if len(points) < 2:
            return 0.0
        return float(np.linalg.norm(np.diff(_positions(points), axis=0), axis=1).sum())

    def smoothness(self, points: Sequence[TrajectoryPoint]) -> float:
        """
        Path smoothness in [0, 1], higher is smoother.

        smoothness = 1 - variance(acceleration) / max(acceleration)^2
        """
        if len(points) < 3:
            return 1.0
        profile = self.velocity_profile(points)
        return self._smoothness_of(
            np.asarray(profile.accelerations), np.asarray(profile.velocities)
        )

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _smoothness_of(accelerations: np.ndarray, velocities: np.ndarray) -> float:
        if accelerations.size == 0:
            return 1.0
        peak = accelerations.max()
        # Rounding noise of a constant-speed path is not jerk
        scale = max(1.0, float(velocities.max())) if velocities.size else 1.0
        if peak <= ACCELERATION_NOISE_FLOOR * scale:
            return 1.0
        normalized_variance = accelerations.var() / (peak * peak)
        return float(np.clip(1.0 - normalized_variance, 0.0, 1.0))


def moving_average(values: np.ndarray, window: int) -> np.ndarray:
    """
    Centered moving average along axis 0.

    Windows shrink at the edges so the output has the same length.
    """
    values = np.asarray(values, dtype=float)
    n = len(values)
    if window <= 1 or n < window:
        return values.copy()

    half_before = window // 2
    half_after = window - half_before
    smoothed = np.empty_like(values)
    for i in range(n):
        start = max(0, i - half_before)
        end = min(n, i + half_after)
        smoothed[i] = values[start:end].mean(axis=0)
    return smoothed


def _positions(points: Sequence[TrajectoryPoint]) -> np.ndarray:
    return np.array([(p.x, p.y, p.z) for p in points], dtype=float).reshape(-1, 3)
