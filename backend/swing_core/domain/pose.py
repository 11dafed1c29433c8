"""
Pose Domain Models

Data structures for body landmarks produced by the pose engine.

MediaPipe Pose Landmarker returns 33 landmarks per detected person:
https://developers.google.com/mediapipe/solutions/vision/pose_landmarker
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class BodyPart(IntEnum):
    """
    MediaPipe Pose landmark indices.

    The landmark list of a PoseFrame is indexed by these values.
    Only the points relevant to golf swing analysis are named.
    """
    # Face
    NOSE = 0

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16

    # Hands (grip)
    LEFT_INDEX = 19
    RIGHT_INDEX = 20

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28


NUM_LANDMARKS = 33


@dataclass(frozen=True)
class PoseLandmark:
    """
    A single body landmark with 3D coordinates and optional confidence.

    Attributes:
        x: Horizontal position (0.0 = left edge, 1.0 = right edge)
        y: Vertical position (0.0 = top edge, 1.0 = bottom edge)
        z: Depth (smaller = closer to camera)
        visibility: Detection confidence in [0, 1], None if the engine gave none
    """
    x: float
    y: float
    z: float
    visibility: Optional[float] = None

    def is_visible(self, threshold: float = 0.5) -> bool:
        """Landmarks without a confidence value count as visible."""
        if self.visibility is None:
            return True
        return self.visibility >= threshold


@dataclass(frozen=True)
class PoseFrame:
    """
    Pose detection result for one analyzed video frame.

    Only produced when a pose was detected; frames without a pose
    produce no PoseFrame at all.

    Attributes:
        landmarks: Normalized image-space landmarks (indexed by BodyPart)
        world_landmarks: Same landmarks in metric world coordinates (may be empty)
        timestamp_ms: Video timestamp in milliseconds
        frame_number: Index of the frame in the recording
    """
    landmarks: tuple[PoseLandmark, ...]
    world_landmarks: tuple[PoseLandmark, ...] = field(default_factory=tuple)
    timestamp_ms: int = 0
    frame_number: int = 0

    @property
    def confidence(self) -> float:
        """Mean landmark visibility (1.0 when the engine reports none)."""
        if not self.landmarks:
            return 0.0
        values = [lm.visibility for lm in self.landmarks if lm.visibility is not None]
        if not values:
            return 1.0
        return sum(values) / len(values)

    def get_landmark(self, body_part: BodyPart) -> Optional[PoseLandmark]:
        """Get a specific landmark by body part."""
        index = body_part.value
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index]
        return None
