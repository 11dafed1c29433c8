"""
Metrics Engine Service

Computes the biomechanical swing metrics from a phase-segmented
trajectory. Pure computation: no state is kept between calls.

Every metric degrades to an "insufficient data" MetricValue instead of
raising when the phases it needs have too few points.
"""

import logging
from typing import Optional

import numpy as np

from ..config import MetricsConfig
from ..domain.analysis import (
    MetricValue,
    PhaseInterval,
    PhaseSegmentation,
    SwingMetrics,
    SwingPhase,
)
from ..domain.trajectory import SwingTrajectory, TrackedPoint, TrajectoryPoint
from .angle_calculator import AngleCalculator
from .trajectory_analyzer import TrajectoryAnalyzer

logger = logging.getLogger(__name__)

MPS_TO_MPH = 2.23694

# Search radius (frames) for a body reference point around a key frame
KEY_FRAME_RADIUS = 2

FALLBACK_REASON = "phases estimated by proportional split"


class MetricsEngine:
    """
    Derives SwingMetrics from a trajectory and its phases.

    Usage:
        engine = MetricsEngine()
        metrics = engine.compute(trajectory, segmentation, fps=60)
        if metrics.tempo_ratio.insufficient:
            ...
    """

    def __init__(self, config: Optional[MetricsConfig] = None):
        self.config = config or MetricsConfig()

    def compute(
        self,
        trajectory: SwingTrajectory,
        segmentation: PhaseSegmentation,
        fps: float = 30.0,
    ) -> SwingMetrics:
        if fps <= 0:
            raise ValueError("fps must be positive")

        shoulder_turn = self._line_turn(
            trajectory, segmentation, TrackedPoint.LEFT_SHOULDER, TrackedPoint.RIGHT_SHOULDER
        )
        hip_turn = self._line_turn(
            trajectory, segmentation, TrackedPoint.LEFT_HIP, TrackedPoint.RIGHT_HIP
        )

        metrics = SwingMetrics(
            tempo_ratio=self._tempo(segmentation),
            shoulder_turn=shoulder_turn,
            hip_turn=hip_turn,
            x_factor=self._x_factor(shoulder_turn, hip_turn),
            plane_consistency=self._plane_consistency(trajectory, segmentation),
            clubhead_speed=self._clubhead_speed(trajectory, segmentation, fps),
            balance_stability=self._balance(trajectory),
            path_smoothness=self._smoothness(trajectory, segmentation, fps),
        )

        insufficient = [name for name, value in metrics.items() if value.insufficient]
        if insufficient:
            logger.info(f"Insufficient data for metrics: {', '.join(insufficient)}")
        return metrics

    # -------------------------------------------------------------------------
    # Tempo
    # -------------------------------------------------------------------------

    def _tempo(self, segmentation: PhaseSegmentation) -> MetricValue:
        """Backswing duration / downswing duration (top to impact)."""
        backswing = segmentation.get(SwingPhase.BACKSWING).length
        downswing = (
            segmentation.get(SwingPhase.TOP).length
            + segmentation.get(SwingPhase.DOWNSWING).length
        )
        if backswing <= 0 or downswing <= 0:
            return MetricValue.missing("ratio", "backswing or downswing has no frames")

        return self._qualified(backswing / downswing, "ratio", segmentation)

    # -------------------------------------------------------------------------
    # Rotation
    # -------------------------------------------------------------------------

    def _line_turn(
        self,
        trajectory: SwingTrajectory,
        segmentation: PhaseSegmentation,
        left: TrackedPoint,
        right: TrackedPoint,
    ) -> MetricValue:
        """Rotation of a body line (left -> right) from address to the top."""
        address = segmentation.get(SwingPhase.ADDRESS)
        top = segmentation.get(SwingPhase.TOP)

        # Just before the takeaway, and at the top
        start_frame = self._line_frame(trajectory, left, right, address.end_frame - 1, address)
        search = PhaseInterval(
            SwingPhase.TOP,
            max(0, top.start_frame - KEY_FRAME_RADIUS),
            top.start_frame + KEY_FRAME_RADIUS + 1,
        )
        end_frame = self._line_frame(trajectory, left, right, top.start_frame, search)
        if start_frame is None or end_frame is None:
            return MetricValue.missing("deg", f"no {left.value.split('_')[1]} line at address or top")

        angle = AngleCalculator.line_rotation(
            trajectory.point_at(left, start_frame),
            trajectory.point_at(right, start_frame),
            trajectory.point_at(left, end_frame),
            trajectory.point_at(right, end_frame),
        )
        if angle is None:
            return MetricValue.missing("deg", "degenerate body line")
        return self._qualified(angle, "deg", segmentation)

    @staticmethod
    def _line_frame(
        trajectory: SwingTrajectory,
        left: TrackedPoint,
        right: TrackedPoint,
        target: int,
        interval: PhaseInterval,
    ) -> Optional[int]:
        """Frame inside `interval` closest to `target` where both points exist."""
        right_frames = set(trajectory.frames(right))
        frames = [
            f for f in trajectory.frames(left)
            if interval.contains(f) and f in right_frames
        ]
        if not frames:
            return None
        return min(frames, key=lambda f: (abs(f - target), f))

    def _x_factor(self, shoulder_turn: MetricValue, hip_turn: MetricValue) -> MetricValue:
        if shoulder_turn.value is None or hip_turn.value is None:
            return MetricValue.missing("deg", "shoulder or hip turn unavailable")
        return MetricValue(
            value=shoulder_turn.value - hip_turn.value,
            unit="deg",
            low_confidence=shoulder_turn.low_confidence or hip_turn.low_confidence,
            reason=shoulder_turn.reason or hip_turn.reason,
        )

    # -------------------------------------------------------------------------
    # Swing Plane
    # -------------------------------------------------------------------------

    def _plane_consistency(
        self,
        trajectory: SwingTrajectory,
        segmentation: PhaseSegmentation,
    ) -> MetricValue:
        """
        1 - normalized variance of the clubhead's distance from its
        best-fit plane, over backswing, top and downswing.

        normalized variance = 3 * var(deviation) / total variance, so a
        point cloud with no preferred plane scores 0 and a flat one 1.
        """
        start = segmentation.get(SwingPhase.BACKSWING).start_frame
        end = segmentation.get(SwingPhase.DOWNSWING).end_frame
        points = trajectory.in_range(TrackedPoint.CLUB_HEAD, start, end)
        if len(points) < max(self.config.min_phase_points, 4):
            return MetricValue.missing("ratio", f"only {len(points)} clubhead points in the swing")

        positions = np.array([(p.x, p.y, p.z) for p in points], dtype=float)
        centered = positions - positions.mean(axis=0)
        singular_values = np.linalg.svd(centered, compute_uv=False)
        total = float(np.sum(singular_values ** 2))
        if total < 1e-12:
            return MetricValue.missing("ratio", "clubhead did not move")

        # Smallest singular value = spread along the plane normal
        normalized_variance = 3.0 * float(singular_values[-1] ** 2) / total
        consistency = float(np.clip(1.0 - normalized_variance, 0.0, 1.0))
        return self._qualified(consistency, "ratio", segmentation)

    # -------------------------------------------------------------------------
    # Clubhead Speed
    # -------------------------------------------------------------------------

    def _clubhead_speed(
        self,
        trajectory: SwingTrajectory,
        segmentation: PhaseSegmentation,
        fps: float,
    ) -> MetricValue:
        """
        Peak clubhead speed from top to the end of impact, in mph.

        Measured on the grip (wrist midpoint) and scaled by the club
        lever ratio; normalized units are converted with unit_meters.
        """
        start = segmentation.get(SwingPhase.TOP).start_frame
        end = segmentation.get(SwingPhase.IMPACT).end_frame

        left = {p.frame: p for p in trajectory.in_range(TrackedPoint.LEFT_WRIST, start, end)}
        right = {p.frame: p for p in trajectory.in_range(TrackedPoint.RIGHT_WRIST, start, end)}
        frames = sorted(set(left) & set(right))
        if len(frames) < 2:
            return MetricValue.missing("mph", f"only {len(frames)} hand positions in the downswing")

        grip_path = [
            TrajectoryPoint(
                *AngleCalculator.calculate_midpoint(left[f], right[f]),
                timestamp=left[f].timestamp,
                frame=f,
            )
            for f in frames
        ]
        stats = TrajectoryAnalyzer(fps=fps).analyze(grip_path)
        logger.debug(f"Peak hand speed at frame {stats.peak_frame}")
        hand_speed = stats.max_velocity * self.config.unit_meters

        speed = hand_speed * self.config.club_lever_ratio * MPS_TO_MPH
        return self._qualified(speed, "mph", segmentation)

    # -------------------------------------------------------------------------
    # Balance
    # -------------------------------------------------------------------------

    def _balance(self, trajectory: SwingTrajectory) -> MetricValue:
        """
        Hip-centre stability over the whole recording.

        stability = 1 - (horizontal sway range / mean hip width) / 2
        """
        left = {p.frame: p for p in trajectory.path(TrackedPoint.LEFT_HIP)}
        right = {p.frame: p for p in trajectory.path(TrackedPoint.RIGHT_HIP)}
        frames = sorted(set(left) & set(right))
        if len(frames) < self.config.min_phase_points:
            return MetricValue.missing("ratio", f"only {len(frames)} frames with both hips")

        centers = np.array([(left[f].x + right[f].x) / 2 for f in frames])
        widths = np.array([AngleCalculator.calculate_distance(left[f], right[f]) for f in frames])
        hip_width = float(widths.mean())
        if hip_width <= 0:
            return MetricValue.missing("ratio", "hip width is zero")

        sway = float(centers.max() - centers.min()) / hip_width
        return MetricValue(value=float(np.clip(1.0 - sway / 2.0, 0.0, 1.0)), unit="ratio")

    # -------------------------------------------------------------------------
    # Path Smoothness
    # -------------------------------------------------------------------------

    def _smoothness(
        self,
        trajectory: SwingTrajectory,
        segmentation: PhaseSegmentation,
        fps: float,
    ) -> MetricValue:
        """Lead-hand (left wrist) path smoothness from takeaway to finish."""
        start = segmentation.get(SwingPhase.BACKSWING).start_frame
        points = trajectory.in_range(TrackedPoint.LEFT_WRIST, start, segmentation.total_frames)
        if len(points) < max(self.config.min_phase_points, 3):
            return MetricValue.missing("ratio", f"only {len(points)} hand positions in the swing")

        smoothness = TrajectoryAnalyzer(fps=fps).smoothness(points)
        return self._qualified(smoothness, "ratio", segmentation)

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _qualified(value: float, unit: str, segmentation: PhaseSegmentation) -> MetricValue:
        """A computed value, low-confidence when the phases were estimated."""
        if segmentation.low_confidence:
            return MetricValue(value=value, unit=unit, low_confidence=True, reason=FALLBACK_REASON)
        return MetricValue(value=value, unit=unit)
