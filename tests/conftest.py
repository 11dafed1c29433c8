"""
Shared test fixtures: a scripted pose engine and a synthetic golf swing.

The synthetic swing (100 frames by default) has the hands swinging on
an arc around the shoulder centre:

    frames  0-19   address (still)
    frames 20-59   backswing up to 150 degrees
    frame  60      top
    frames 60-75   downswing back to the bottom (impact at 75)
    frames 75-99   follow-through up the other side

Shoulders turn 90 degrees by the top, hips 45.
"""

import math
import queue
import threading
import time
from typing import Callable, Iterable, Optional

import numpy as np
import pytest

from swing_core.config import DetectorConfig, PipelineConfig
from swing_core.domain import BodyPart, PoseFrame, PoseLandmark
from swing_core.domain.pose import NUM_LANDMARKS
from swing_core.errors import SubmissionError
from swing_core.services import SwingAnalyzer
from swing_core.services.pose_detector import EngineResult, PoseDetector, PoseEngine
from swing_core.services.trajectory_builder import TrajectoryBuilder

TOTAL_FRAMES = 100
TAKEAWAY_FRAME = 20
TOP_FRAME = 60
IMPACT_FRAME = 75

PIVOT = (0.5, 0.35)
HAND_RADIUS = 0.25
ELBOW_RADIUS = 0.13
SHOULDER_HALF_WIDTH = 0.08
HIP_CENTER = (0.5, 0.6)
HIP_HALF_WIDTH = 0.06
TOP_ARM_ANGLE = 150.0
TOP_SHOULDER_TURN = 90.0


# =============================================================================
# Synthetic Swing
# =============================================================================

def arm_angle(frame: int, total: int = TOTAL_FRAMES) -> float:
    """Arm angle from straight down, in degrees."""
    if frame < TAKEAWAY_FRAME:
        return 0.0
    if frame <= TOP_FRAME:
        return TOP_ARM_ANGLE * (frame - TAKEAWAY_FRAME) / (TOP_FRAME - TAKEAWAY_FRAME)
    if frame <= IMPACT_FRAME:
        return TOP_ARM_ANGLE * (1 - (frame - TOP_FRAME) / (IMPACT_FRAME - TOP_FRAME))
    return -TOP_ARM_ANGLE * (frame - IMPACT_FRAME) / max(1, total - 1 - IMPACT_FRAME)


def shoulder_turn(frame: int) -> float:
    return TOP_SHOULDER_TURN * arm_angle(frame) / TOP_ARM_ANGLE


def swing_landmarks(frame: int, visibility: Optional[float] = 0.9) -> tuple[PoseLandmark, ...]:
    """33 landmarks of the synthetic golfer at one frame."""
    landmarks = [PoseLandmark(0.5, 0.5, 0.0, visibility) for _ in range(NUM_LANDMARKS)]

    def put(part: BodyPart, x: float, y: float, z: float = 0.0) -> None:
        landmarks[part.value] = PoseLandmark(x, y, z, visibility)

    theta = math.radians(arm_angle(frame))
    for radius, left, right in (
        (HAND_RADIUS, BodyPart.LEFT_WRIST, BodyPart.RIGHT_WRIST),
        (ELBOW_RADIUS, BodyPart.LEFT_ELBOW, BodyPart.RIGHT_ELBOW),
    ):
        x = PIVOT[0] + radius * math.sin(theta)
        y = PIVOT[1] + radius * math.cos(theta)
        put(left, x - 0.005, y)
        put(right, x + 0.005, y)

    phi = math.radians(shoulder_turn(frame))
    for (cx, cy), half, angle, left, right in (
        (PIVOT, SHOULDER_HALF_WIDTH, phi, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER),
        (HIP_CENTER, HIP_HALF_WIDTH, phi / 2, BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP),
    ):
        put(left, cx - half * math.cos(angle), cy, -half * math.sin(angle))
        put(right, cx + half * math.cos(angle), cy, half * math.sin(angle))

    return tuple(landmarks)


def swing_pose(frame: int, fps: float = 30.0, visibility: Optional[float] = 0.9) -> PoseFrame:
    return PoseFrame(
        landmarks=swing_landmarks(frame, visibility),
        timestamp_ms=int(frame / fps * 1000),
        frame_number=frame,
    )


def build_swing_trajectory(total: int = TOTAL_FRAMES, absent: Iterable[int] = ()):
    absent = set(absent)
    return TrajectoryBuilder.from_frames(
        ((i, None if i in absent else swing_pose(i)) for i in range(total)),
        total_frames=total,
    )


def frame_image(index: int) -> np.ndarray:
    """Tiny BGR image whose pixel value encodes the frame index."""
    return np.full((2, 2, 3), index % 256, dtype=np.uint8)


def frame_index(image: np.ndarray) -> int:
    return int(image[0, 0, 0])


# =============================================================================
# Scripted Pose Engine
# =============================================================================

class FakePoseEngine(PoseEngine):
    """
    Delivers scripted results on a worker thread, in submission order.

    Args:
        script: Maps a submitted image to its result (None = no person)
        fail_on: Frame indices whose submission raises synchronously
        delays: Seconds to wait before reporting a frame's result
    """

    def __init__(
        self,
        script: Callable[[np.ndarray], Optional[EngineResult]],
        fail_on: Iterable[int] = (),
        delays: Optional[dict] = None,
    ):
        self.script = script
        self.fail_on = set(fail_on)
        self.delays = delays or {}
        self.sent: list[int] = []
        self.closed = False
        self._callback = None
        self._queue: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._work, daemon=True)
        self._thread.start()

    def on_results(self, callback) -> None:
        self._callback = callback

    def send(self, image) -> None:
        index = frame_index(image)
        if index in self.fail_on:
            raise SubmissionError(f"Engine rejected frame {index}")
        self.sent.append(index)
        self._queue.put(image)

    def close(self) -> None:
        self.closed = True
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _work(self) -> None:
        while True:
            image = self._queue.get()
            if image is None:
                return
            delay = self.delays.get(frame_index(image))
            if delay:
                time.sleep(delay)
            if self._callback is not None:
                self._callback(self.script(image))


def swing_script(absent: Iterable[int] = (), visibility: Optional[float] = 0.9):
    absent = set(absent)

    def script(image: np.ndarray) -> Optional[EngineResult]:
        index = frame_index(image)
        if index in absent:
            return None
        return EngineResult(landmarks=swing_landmarks(index, visibility))

    return script


class EngineRecorder:
    """Detector factory that builds PoseDetectors over FakePoseEngines and keeps them."""

    def __init__(self, absent=(), fail_on=(), init_error: Optional[Exception] = None, **engine_kwargs):
        self.absent = absent
        self.fail_on = fail_on
        self.init_error = init_error
        self.engine_kwargs = engine_kwargs
        self.engines: list[FakePoseEngine] = []
        self.detectors: list[PoseDetector] = []

    def _engine(self, config: DetectorConfig) -> FakePoseEngine:
        if self.init_error is not None:
            raise self.init_error
        engine = FakePoseEngine(swing_script(self.absent), fail_on=self.fail_on, **self.engine_kwargs)
        self.engines.append(engine)
        return engine

    def __call__(self, config: DetectorConfig) -> PoseDetector:
        detector = PoseDetector(config, engine_factory=self._engine)
        self.detectors.append(detector)
        return detector


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def swing_frames():
    return [frame_image(i) for i in range(TOTAL_FRAMES)]


@pytest.fixture
def swing_trajectory():
    return build_swing_trajectory()


@pytest.fixture
def make_analyzer():
    """Build a SwingAnalyzer over a scripted engine; returns (analyzer, recorder)."""

    def make(**recorder_kwargs):
        recorder = EngineRecorder(**recorder_kwargs)
        config = PipelineConfig()
        config.detector.frame_timeout_s = 2.0
        return SwingAnalyzer(config, detector_factory=recorder), recorder

    return make
