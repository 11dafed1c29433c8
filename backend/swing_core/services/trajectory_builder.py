"""
Trajectory Builder

Accumulates per-frame pose results into one SwingTrajectory.

The landmark set has no club keypoint, so the clubhead is estimated
from the hands: the shaft extends from the grip along the forearm line,
lagging behind the direction the hands are moving.
"""

import logging
from typing import Iterable, Optional, Tuple

import numpy as np

from ..domain.pose import BodyPart, PoseFrame, PoseLandmark
from ..domain.trajectory import SwingTrajectory, TrackedPoint, TrajectoryPoint
from .angle_calculator import AngleCalculator, Vector

logger = logging.getLogger(__name__)

# Tracked body points and their landmark indices
JOINT_LANDMARKS = {
    TrackedPoint.RIGHT_WRIST: BodyPart.RIGHT_WRIST,
    TrackedPoint.LEFT_WRIST: BodyPart.LEFT_WRIST,
    TrackedPoint.RIGHT_SHOULDER: BodyPart.RIGHT_SHOULDER,
    TrackedPoint.LEFT_SHOULDER: BodyPart.LEFT_SHOULDER,
    TrackedPoint.RIGHT_HIP: BodyPart.RIGHT_HIP,
    TrackedPoint.LEFT_HIP: BodyPart.LEFT_HIP,
}

# Club length relative to torso length (shoulder centre to hip centre)
SHAFT_TO_TORSO_RATIO = 1.2

# How strongly the shaft trails the hands' direction of travel
LAG_BLEND = 0.25

# Landmarks below this visibility are not used for the clubhead estimate
ESTIMATE_VISIBILITY = 0.3


class TrajectoryBuilder:
    """
    Builds a SwingTrajectory from an ordered stream of detection outcomes.

    Usage:
        builder = TrajectoryBuilder(total_frames=len(frames))
        for index, pose in outcomes:
            builder.add(index, pose)   # pose may be None (absence)
        trajectory = builder.build()

    Absent frames append nothing for any point: they stay gaps.
    """

    def __init__(self, total_frames: int = 0):
        self._trajectory = SwingTrajectory(total_frames=total_frames)
        self._previous_grip: Optional[Vector] = None

    def add(self, frame_index: int, pose: Optional[PoseFrame]) -> None:
        """
        Record the outcome for one frame.

        Raises:
            ValueError: If frame_index does not increase
        """
        if frame_index >= self._trajectory.total_frames:
            self._trajectory.total_frames = frame_index + 1

        if pose is None or not pose.landmarks:
            return

        timestamp = pose.timestamp_ms
        for point, body_part in JOINT_LANDMARKS.items():
            landmark = pose.get_landmark(body_part)
            if landmark is None:
                continue
            self._trajectory.append(point, TrajectoryPoint(
                x=landmark.x, y=landmark.y, z=landmark.z,
                timestamp=timestamp, frame=frame_index,
            ))

        club_head = self._estimate_club_head(pose)
        if club_head is not None:
            x, y, z = club_head
            self._trajectory.append(TrackedPoint.CLUB_HEAD, TrajectoryPoint(
                x=x, y=y, z=z, timestamp=timestamp, frame=frame_index,
            ))

    def build(self) -> SwingTrajectory:
        logger.info(
            f"Built trajectory: {len(self._trajectory)} of "
            f"{self._trajectory.total_frames} frames with poses"
        )
        return self._trajectory

    @classmethod
    def from_frames(
        cls,
        outcomes: Iterable[Tuple[int, Optional[PoseFrame]]],
        total_frames: int = 0,
    ) -> SwingTrajectory:
        """Build a trajectory from (frame index, PoseFrame or None) pairs."""
        builder = cls(total_frames=total_frames)
        for frame_index, pose in outcomes:
            builder.add(frame_index, pose)
        return builder.build()

    # -------------------------------------------------------------------------
    # Clubhead Estimate
    # -------------------------------------------------------------------------

    def _estimate_club_head(self, pose: PoseFrame) -> Optional[Vector]:
        """
        Estimate the clubhead position for one frame.

        grip = wrist midpoint
        shaft = forearm direction, blended against the hands' motion
        clubhead = grip + shaft * SHAFT_TO_TORSO_RATIO * torso length

        Falls back to the grip when elbows or torso are not available.
        """
        grip = AngleCalculator.calculate_midpoint(
            pose.get_landmark(BodyPart.LEFT_WRIST),
            pose.get_landmark(BodyPart.RIGHT_WRIST),
        )
        if grip is None:
            return None

        previous_grip = self._previous_grip
        self._previous_grip = grip

        elbows = _visible_midpoint(pose, BodyPart.LEFT_ELBOW, BodyPart.RIGHT_ELBOW)
        shoulders = _visible_midpoint(pose, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER)
        hips = _visible_midpoint(pose, BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP)
        if elbows is None or shoulders is None or hips is None:
            return grip

        forearm = AngleCalculator.normalize(np.subtract(grip, elbows))
        torso_length = float(np.linalg.norm(np.subtract(shoulders, hips)))
        if forearm is None or torso_length == 0:
            return grip

        direction = np.asarray(forearm)
        if previous_grip is not None:
            motion = AngleCalculator.normalize(np.subtract(grip, previous_grip))
            if motion is not None:
                blended = AngleCalculator.normalize(direction - LAG_BLEND * np.asarray(motion))
                if blended is not None:
                    direction = np.asarray(blended)

        shaft_length = SHAFT_TO_TORSO_RATIO * torso_length
        club_head = np.asarray(grip) + direction * shaft_length
        return tuple(float(c) for c in club_head)  # type: ignore[return-value]


def _visible_midpoint(pose: PoseFrame, left: BodyPart, right: BodyPart) -> Optional[Vector]:
    p1 = pose.get_landmark(left)
    p2 = pose.get_landmark(right)
    if not _usable(p1) or not _usable(p2):
        return None
    return AngleCalculator.calculate_midpoint(p1, p2)


def _usable(landmark: Optional[PoseLandmark]) -> bool:
    return landmark is not None and landmark.is_visible(ESTIMATE_VISIBILITY)

