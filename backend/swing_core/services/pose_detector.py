"""
Pose Detector Service

Landmark source for swing analysis. Wraps the MediaPipe Pose Landmarker
behind a single-callback engine and converts its results to our domain
models.

The engine processes one image at a time on its own worker thread and
reports every result through one callback, in submission order. The
PoseDetector pairs those results with the requests that caused them
through a FrameCorrelator.

Note: MediaPipe is imported lazily so the rest of the pipeline can be
used (and tested) without the model bundle installed.
"""

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import cv2
import numpy as np

from ..config import DetectorConfig
from ..domain.pose import PoseLandmark, PoseFrame
from ..errors import InitializationError, SubmissionError
from .frame_correlator import FrameCorrelator

logger = logging.getLogger(__name__)

MODEL_DOWNLOAD_URL = (
    "https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
    "pose_landmarker_full/float16/latest/pose_landmarker_full.task"
)


@dataclass(frozen=True)
class EngineResult:
    """Raw landmark set for one image, as reported by a pose engine."""
    landmarks: tuple[PoseLandmark, ...]
    world_landmarks: tuple[PoseLandmark, ...] = field(default_factory=tuple)


ResultCallback = Callable[[Optional[EngineResult]], None]


class PoseEngine:
    """
    Contract for a single-callback pose engine.

    - `on_results(callback)` registers the one result callback
    - `send(image)` submits one image; may raise synchronously
    - `close()` releases engine resources

    Results are reported in strict submission order. An image with no
    detected person is reported as None.
    """

    def on_results(self, callback: ResultCallback) -> None:
        raise NotImplementedError

    def send(self, image: Any) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class MediaPipePoseEngine(PoseEngine):
    """
    MediaPipe Tasks PoseLandmarker running in IMAGE mode on one worker thread.

    A single worker keeps detection serialized, so results come back
    through the callback in the order images were sent.
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()

        try:
            import mediapipe as mp
            from mediapipe.tasks import python as mp_python
            from mediapipe.tasks.python import vision
        except ImportError as e:
            raise InitializationError(f"MediaPipe is not available: {e}") from e

        model_path = self.config.model_asset_path
        if not os.path.exists(model_path):
            raise InitializationError(
                f"Pose model not found at {model_path}. "
                f"Download it from {MODEL_DOWNLOAD_URL}"
            )

        options = vision.PoseLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=self.config.min_detection_confidence,
            min_pose_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )
        try:
            self._landmarker = vision.PoseLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise InitializationError(f"Could not load pose model {model_path}: {e}") from e

        self._mp = mp
        self._callback: Optional[ResultCallback] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pose-engine")
        self._closed = False

    def on_results(self, callback: ResultCallback) -> None:
        self._callback = callback

    def send(self, image: np.ndarray) -> None:
        if self._closed:
            raise SubmissionError("Pose engine is closed")
        if not isinstance(image, np.ndarray) or image.ndim != 3 or image.shape[2] != 3:
            raise SubmissionError("Expected a BGR image with shape (height, width, 3)")
        self._executor.submit(self._process, image)

    def close(self) -> None:
        """Stop accepting images, finish the one in progress, release the model."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True, cancel_futures=True)
        self._landmarker.close()

    # -------------------------------------------------------------------------
    # Worker Thread
    # -------------------------------------------------------------------------

    def _process(self, image: np.ndarray) -> None:
        try:
            # MediaPipe expects RGB
            image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
            mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=image_rgb)
            result = self._convert(self._landmarker.detect(mp_image))
        except Exception as e:
            # Every image must produce exactly one callback or ordering breaks
            logger.error(f"Pose engine failed on image: {e}")
            result = None

        if self._callback is not None:
            self._callback(result)

    @staticmethod
    def _convert(mp_result: Any) -> Optional[EngineResult]:
        """Convert a PoseLandmarkerResult to an EngineResult (None = no person)."""
        if not mp_result.pose_landmarks:
            return None

        landmarks = tuple(
            PoseLandmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
            for lm in mp_result.pose_landmarks[0]
        )
        world = ()
        if mp_result.pose_world_landmarks:
            world = tuple(
                PoseLandmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
                for lm in mp_result.pose_world_landmarks[0]
            )
        return EngineResult(landmarks=landmarks, world_landmarks=world)


class PoseDetector:
    """
    Landmark source owned by exactly one analysis run.

    Usage:
        async with PoseDetector(config) as detector:
            frame = await detector.detect(image, frame_number=0, timestamp_ms=0)
            if frame is None:
                ...  # absence: no pose this frame

    The engine is constructed lazily by the first `initialize()` (or the
    first `detect()`), at most once per detector.
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        engine_factory: Callable[[DetectorConfig], PoseEngine] = MediaPipePoseEngine,
    ):
        """
        Args:
            config: Detector options
            engine_factory: Builds the pose engine from the config (replaced in tests)
        """
        self.config = config or DetectorConfig()
        self._engine_factory = engine_factory
        self._engine: Optional[PoseEngine] = None
        self._correlator: FrameCorrelator[EngineResult] = FrameCorrelator(
            max_pending=self.config.max_pending
        )
        self._init_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def __aenter__(self) -> "PoseDetector":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Construct the pose engine. Idempotent.

        Raises:
            InitializationError: If the engine cannot be constructed
        """
        if self._engine is not None:
            return

        async with self._init_lock:
            if self._engine is not None:
                return
            try:
                # Model loading is slow and blocking
                engine = await asyncio.to_thread(self._engine_factory, self.config)
            except InitializationError as e:
                logger.error(f"Pose engine initialization failed: {e.message}")
                raise
            except Exception as e:
                logger.error(f"Pose engine initialization failed: {e}")
                raise InitializationError(f"Failed to initialize pose engine: {e}") from e

            engine.on_results(self._correlator.resolve)
            self._engine = engine
            logger.info("Pose engine initialized")

    async def shutdown(self) -> None:
        """Release the engine and resolve any in-flight requests as absent."""
        engine, self._engine = self._engine, None
        try:
            if engine is not None:
                # Closing waits for the image in progress
                await asyncio.to_thread(engine.close)
                logger.info("Pose engine closed")
        finally:
            self._correlator.clear()

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    async def detect(
        self,
        image: np.ndarray,
        frame_number: int = 0,
        timestamp_ms: int = 0,
    ) -> Optional[PoseFrame]:
        """
        Detect the pose in one image.

        Args:
            image: BGR image (OpenCV format)
            frame_number: Index of the frame in the recording
            timestamp_ms: Video timestamp in milliseconds

        Returns:
            PoseFrame with landmarks, or None for absence (no person, low
            confidence, submission failure or timeout)

        Raises:
            InitializationError: If the lazy engine initialization fails or
                the detector was shut down
        """
        if self._engine is None:
            await self.initialize()
        engine = self._engine
        if engine is None:
            raise InitializationError("Pose engine was shut down")

        result = await self._correlator.submit(
            engine.send, image, timeout=self.config.frame_timeout_s
        )
        if result is None or not result.landmarks:
            return None

        frame = PoseFrame(
            landmarks=result.landmarks,
            world_landmarks=result.world_landmarks,
            timestamp_ms=timestamp_ms,
            frame_number=frame_number,
        )
        if frame.confidence < self.config.visibility_floor:
            logger.debug(
                f"Frame {frame_number}: confidence {frame.confidence:.2f} below floor, treating as absent"
            )
            return None
        return frame
