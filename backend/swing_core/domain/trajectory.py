"""
Trajectory Domain Models

Time-ordered paths of the tracked swing points across a recording.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class TrackedPoint(Enum):
    """Points whose paths are accumulated into a SwingTrajectory."""
    RIGHT_WRIST = "right_wrist"
    LEFT_WRIST = "left_wrist"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_HIP = "right_hip"
    LEFT_HIP = "left_hip"
    CLUB_HEAD = "club_head"


@dataclass(frozen=True)
class TrajectoryPoint:
    """
    Position of one tracked point at one frame.

    Attributes:
        x, y, z: Normalized image-space position
        timestamp: Video timestamp in milliseconds
        frame: Frame index in the recording
    """
    x: float
    y: float
    z: float
    timestamp: int
    frame: int


class SwingTrajectory:
    """
    Per-point ordered sequences of TrajectoryPoint.

    Within one point's sequence, `frame` is strictly increasing.
    Missed detections leave gaps - nothing is interpolated.

    Attributes:
        total_frames: Number of frames in the analyzed recording
    """

    def __init__(self, total_frames: int = 0):
        self.total_frames = total_frames
        self._paths: dict[TrackedPoint, list[TrajectoryPoint]] = {
            point: [] for point in TrackedPoint
        }

    def append(self, point: TrackedPoint, value: TrajectoryPoint) -> None:
        """
        Append a position to a point's path.

        Raises:
            ValueError: If the frame index does not increase
        """
        path = self._paths[point]
        if path and value.frame <= path[-1].frame:
            raise ValueError(
                f"{point.value}: frame {value.frame} does not follow frame {path[-1].frame}"
            )
        path.append(value)

    def path(self, point: TrackedPoint) -> list[TrajectoryPoint]:
        """Ordered positions for one tracked point (read-only by convention)."""
        return self._paths[point]

    def frames(self, point: TrackedPoint) -> list[int]:
        return [p.frame for p in self._paths[point]]

    def point_at(self, point: TrackedPoint, frame: int) -> Optional[TrajectoryPoint]:
        """Position of a point at an exact frame, or None for a gap."""
        for p in self._paths[point]:
            if p.frame == frame:
                return p
            if p.frame > frame:
                break
        return None

    def in_range(self, point: TrackedPoint, start: int, end: int) -> list[TrajectoryPoint]:
        """Positions with start <= frame < end."""
        return [p for p in self._paths[point] if start <= p.frame < end]

    def __iter__(self) -> Iterator[TrackedPoint]:
        return iter(self._paths)

    def __len__(self) -> int:
        """Number of frames that contributed at least one point."""
        frames = set()
        for path in self._paths.values():
            frames.update(p.frame for p in path)
        return len(frames)

    @property
    def club_head(self) -> list[TrajectoryPoint]:
        return self._paths[TrackedPoint.CLUB_HEAD]
