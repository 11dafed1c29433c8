"""
Phase Segmenter Service

Splits a swing recording into its phases by detecting events on the
estimated clubhead path (image y grows downward, so smaller y = higher):

- Address: before the clubhead starts moving
- Backswing: from the takeaway to the top
- Top: the direction change (highest clubhead point before the fastest
  downward motion)
- Downswing: from leaving the top to impact
- Impact: the clubhead is back near address height and stops descending
- Follow-through: the remainder

When the path is too short or shows no clear reversal, the recording is
split proportionally instead and the result is marked low-confidence.
"""

import logging
from typing import Optional

import numpy as np

from ..config import SegmenterConfig
from ..domain.analysis import PHASE_ORDER, PhaseInterval, PhaseSegmentation
from ..domain.trajectory import SwingTrajectory, TrackedPoint
from .trajectory_analyzer import moving_average

logger = logging.getLogger(__name__)

# Impact when the clubhead is back within this fraction of the swing
# amplitude from its address height
IMPACT_HEIGHT_TOLERANCE = 0.10

# Frames averaged for the address height
ADDRESS_SAMPLE = 3


class PhaseSegmenter:
    """
    Detects swing phases from a SwingTrajectory.

    Usage:
        segmenter = PhaseSegmenter()
        segmentation = segmenter.segment(trajectory)
        for interval in segmentation:
            print(interval.phase, interval.start_frame, interval.end_frame)

    The intervals always cover [0, total_frames) without gaps or overlaps.
    """

    def __init__(self, config: Optional[SegmenterConfig] = None):
        self.config = config or SegmenterConfig()
        if len(self.config.fallback_fractions) != len(PHASE_ORDER):
            raise ValueError("fallback_fractions needs one entry per phase")

    def segment(
        self,
        trajectory: SwingTrajectory,
        total_frames: Optional[int] = None,
        point: TrackedPoint = TrackedPoint.CLUB_HEAD,
    ) -> PhaseSegmentation:
        """
        Partition the recording into phases.

        Args:
            trajectory: Trajectory to segment
            total_frames: Length of the analyzed range (defaults to the
                trajectory's own total)
            point: Tracked point whose path drives the detection
        """
        total = trajectory.total_frames if total_frames is None else total_frames
        if total < 0:
            raise ValueError("total_frames must not be negative")

        path = trajectory.path(point)
        if len(path) < self.config.min_points:
            logger.info(
                f"Only {len(path)} {point.value} points, using proportional phase split"
            )
            return self._proportional(trajectory, point, total)

        boundaries = self._detect_boundaries(path)
        if boundaries is None:
            logger.info("No clear backswing reversal found, using proportional phase split")
            return self._proportional(trajectory, point, total)

        return self._build(boundaries, total, method="events", low_confidence=False)

    # -------------------------------------------------------------------------
    # Event Detection
    # -------------------------------------------------------------------------

    def _detect_boundaries(self, path) -> Optional[list[int]]:
        """
        Returns:
            Start frames of backswing, top, downswing, impact and
            follow-through, or None when no reversal is found
        """
        cfg = self.config
        frames = np.array([p.frame for p in path])
        raw = np.array([(p.x, p.y, p.z) for p in path], dtype=float)
        smoothed = moving_average(raw, cfg.smoothing_window)
        y = smoothed[:, 1]

        # Speed and vertical velocity per step, normalized per frame so gaps
        # do not show up as jumps. Step i runs from point i to point i + 1.
        frame_steps = np.diff(frames).astype(float)
        steps = np.diff(smoothed, axis=0)
        speeds = np.linalg.norm(steps, axis=1) / frame_steps
        down_velocity = steps[:, 1] / frame_steps

        peak_speed = float(speeds.max())
        if peak_speed <= 0:
            return None

        # Top: highest point before the fastest downward motion
        peak_down_step = int(np.argmax(down_velocity))
        if down_velocity[peak_down_step] <= 0:
            return None
        top_idx = int(np.argmin(y[:peak_down_step + 1]))
        top_idx = self._refine_extremum(raw[:, 1], top_idx)

        address_y = float(y[:min(ADDRESS_SAMPLE, len(y))].mean())
        amplitude = address_y - float(y[top_idx])
        if top_idx == 0 or amplitude < cfg.min_reversal_amplitude:
            return None

        # Backswing start: first step above the motion threshold
        threshold = max(cfg.velocity_threshold, cfg.velocity_peak_fraction * peak_speed)
        moving = np.nonzero(speeds[:top_idx] > threshold)[0]
        backswing_idx = int(moving[0]) if moving.size else 0

        # Downswing start: first point after the top moving down above threshold
        leaving = np.nonzero(down_velocity[top_idx:] > threshold)[0]
        downswing_idx = top_idx + int(leaving[0]) if leaving.size else top_idx + 1

        # Impact: back near address height and no longer descending
        impact_idx = self._find_impact(y, top_idx, address_y, amplitude)

        impact_frame = int(frames[impact_idx])
        top_frame = int(frames[top_idx])
        downswing_frame = int(frames[min(downswing_idx, len(frames) - 1)])
        logger.info(
            f"Phase events: takeaway frame {int(frames[backswing_idx])}, "
            f"top frame {top_frame}, impact frame {impact_frame}"
        )
        return [
            int(frames[backswing_idx]),
            top_frame,
            downswing_frame,
            impact_frame,
            impact_frame + self.config.impact_window,
        ]

    def _refine_extremum(self, raw_y: np.ndarray, index: int) -> int:
        """Move the smoothed extremum to the raw minimum within the smoothing window."""
        half = self.config.smoothing_window // 2
        start = max(0, index - half)
        end = min(len(raw_y), index + half + 1)
        return start + int(np.argmin(raw_y[start:end]))

    @staticmethod
    def _find_impact(y: np.ndarray, top_idx: int, address_y: float, amplitude: float) -> int:
        target = address_y - IMPACT_HEIGHT_TOLERANCE * amplitude
        candidates = np.nonzero(y[top_idx + 1:] >= target)[0]
        if not candidates.size:
            # Never got back down: lowest point after the top
            return top_idx + 1 + int(np.argmax(y[top_idx + 1:])) if top_idx + 1 < len(y) else top_idx

        index = top_idx + 1 + int(candidates[0])
        while index + 1 < len(y) and y[index + 1] > y[index]:
            index += 1
        return index

    # -------------------------------------------------------------------------
    # Fallback and Assembly
    # -------------------------------------------------------------------------

    def _proportional(
        self,
        trajectory: SwingTrajectory,
        point: TrackedPoint,
        total: int,
    ) -> PhaseSegmentation:
        """Split the frames that have detections by the fixed fallback fractions."""
        frames = trajectory.frames(point)
        if frames:
            start, end = frames[0], min(frames[-1] + 1, total)
        else:
            start, end = 0, total
        if end <= start:
            start, end = 0, total

        span = end - start
        cumulative = np.cumsum(self.config.fallback_fractions)
        boundaries = [start + int(round(span * c)) for c in cumulative[:-1]]
        return self._build(boundaries, total, method="proportional", low_confidence=True)

    @staticmethod
    def _build(
        inner: list[int],
        total: int,
        method: str,
        low_confidence: bool,
    ) -> PhaseSegmentation:
        """
        Turn the five inner phase boundaries into contiguous intervals.

        Boundaries are clamped to [0, total] and made non-decreasing; with
        at least one frame per phase available, every phase gets one.
        """
        bounds = [0] + [min(max(b, 0), total) for b in inner] + [total]
        count = len(bounds)

        if total >= len(PHASE_ORDER):
            for k in range(1, count - 1):
                bounds[k] = max(bounds[k], bounds[k - 1] + 1)
            for k in range(count - 2, 0, -1):
                bounds[k] = min(bounds[k], bounds[k + 1] - 1)
        else:
            for k in range(1, count - 1):
                bounds[k] = max(bounds[k], bounds[k - 1])

        intervals = tuple(
            PhaseInterval(phase=phase, start_frame=bounds[i], end_frame=bounds[i + 1])
            for i, phase in enumerate(PHASE_ORDER)
        )
        return PhaseSegmentation(
            intervals=intervals,
            total_frames=total,
            method=method,
            low_confidence=low_confidence,
        )
