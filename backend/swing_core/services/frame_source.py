"""
Frame Sources

Where the frames of one recording come from: in-memory images (BGR
arrays or base64 strings from the frontend) or a video file on disk.
Frames are pulled lazily so long videos are never fully decoded into
memory.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Union

import cv2
import numpy as np

from ..domain.analysis import GolfClub
from ..errors import InsufficientDataError

logger = logging.getLogger(__name__)

DEFAULT_FPS = 30.0

FrameData = Union[np.ndarray, str]


@dataclass
class SourceFrame:
    """
    One frame pulled from a source.

    Attributes:
        index: Position in the analyzed sequence (after frame skipping)
        timestamp_ms: Video timestamp in milliseconds
        image: Decoded BGR image, None when the frame could not be decoded
    """
    index: int
    timestamp_ms: int
    image: Optional[np.ndarray]


@dataclass
class AnalysisInput:
    """
    Payload of an ANALYZE_SWING request.

    Exactly one of `frames` or `video_path` is set.

    Attributes:
        frames: In-memory frames (BGR arrays or base64 JPEG/PNG strings)
        video_path: Path to a video file
        fps: Frame rate of `frames` (video files report their own)
        club: Club used - selects the power benchmark
        frame_skip: Analyze every Nth video frame (1 = all)
        swing_id: Optional caller-side identifier echoed in results
    """
    frames: Optional[Sequence[FrameData]] = None
    video_path: Optional[str] = None
    fps: float = DEFAULT_FPS
    club: GolfClub = GolfClub.DRIVER
    frame_skip: int = 1
    swing_id: Optional[str] = None

    def __post_init__(self):
        if (self.frames is None) == (self.video_path is None):
            raise ValueError("Provide either frames or video_path")
        if self.frame_skip < 1:
            raise ValueError("frame_skip must be at least 1")
        if self.fps <= 0:
            raise ValueError("fps must be positive")

    def open(self) -> "FrameSource":
        """Create the frame source for this input."""
        if self.video_path is not None:
            return VideoFrameSource(self.video_path, frame_skip=self.frame_skip)
        return MemoryFrameSource(self.frames or [], fps=self.fps)


# =============================================================================
# Sources
# =============================================================================

class FrameSource:
    """
    Ordered, lazily-pulled frames of one recording.

    Usage:
        with analysis_input.open() as source:
            for frame in source:
                ...
    """

    fps: float = DEFAULT_FPS

    def __len__(self) -> int:
        raise NotImplementedError

    def __iter__(self) -> Iterator[SourceFrame]:
        raise NotImplementedError

    def __enter__(self) -> "FrameSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        pass


class MemoryFrameSource(FrameSource):
    """Frames already held in memory."""

    def __init__(self, frames: Sequence[FrameData], fps: float = DEFAULT_FPS):
        self._frames = frames
        self.fps = fps

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[SourceFrame]:
        for index, data in enumerate(self._frames):
            image = decode_base64_image(data) if isinstance(data, str) else data
            if image is None:
                logger.warning(f"Frame {index}: could not decode image")
            yield SourceFrame(
                index=index,
                timestamp_ms=int(index / self.fps * 1000),
                image=image,
            )


class VideoFrameSource(FrameSource):
    """
    Frames decoded from a video file with OpenCV.

    Raises:
        InsufficientDataError: If the video cannot be opened
    """

    def __init__(self, video_path: str, frame_skip: int = 1):
        self.video_path = video_path
        self.frame_skip = frame_skip
        self._cap = cv2.VideoCapture(video_path)

        if not self._cap.isOpened():
            raise InsufficientDataError(f"Could not open video: {video_path}")

        native_fps = self._cap.get(cv2.CAP_PROP_FPS)
        self.native_fps = native_fps if native_fps and native_fps > 0 else DEFAULT_FPS
        self.fps = self.native_fps / frame_skip
        self._frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))

    def __len__(self) -> int:
        """Estimated number of analyzed frames (container metadata)."""
        if self._frame_count <= 0:
            return 0
        return (self._frame_count + self.frame_skip - 1) // self.frame_skip

    def __iter__(self) -> Iterator[SourceFrame]:
        raw_index = 0
        index = 0
        while True:
            ret, frame = self._cap.read()
            if not ret:
                break

            # Skip frames if requested
            if raw_index % self.frame_skip == 0:
                yield SourceFrame(
                    index=index,
                    timestamp_ms=int(raw_index / self.native_fps * 1000),
                    image=frame,
                )
                index += 1
            raw_index += 1

    def close(self) -> None:
        self._cap.release()


# =============================================================================
# Image Decoding
# =============================================================================

def decode_base64_image(data: str) -> Optional[np.ndarray]:
    """
    Decode a base64 JPEG/PNG (optionally a data URL) to a BGR image.

    Returns:
        BGR image, or None if the data is not a decodable image
    """
    if "," in data and data.startswith("data:"):
        data = data.split(",", 1)[1]

    try:
        image_bytes = base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError):
        return None

    nparr = np.frombuffer(image_bytes, np.uint8)
    if nparr.size == 0:
        return None
    return cv2.imdecode(nparr, cv2.IMREAD_COLOR)
