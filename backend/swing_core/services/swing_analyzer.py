"""
Swing Analyzer Service

High-level service that orchestrates the whole pipeline:

    frames -> poses -> trajectory -> phases -> metrics -> grade

This is the main entry point for analyzing golf swings.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Optional

from ..benchmarks import BenchmarkTable, load_benchmarks
from ..config import DetectorConfig, PipelineConfig
from ..domain.analysis import DetectionStats, GolfGrade, SwingAnalysisResult
from ..errors import InsufficientDataError, PipelineError, SwingAnalysisError
from .analysis_task import CancellationToken
from .frame_source import AnalysisInput, MemoryFrameSource
from .grading_engine import GradingEngine
from .metrics_engine import MetricsEngine
from .performance_monitor import PerformanceMonitor, PerformanceSample
from .phase_segmenter import PhaseSegmenter
from .pose_detector import PoseDetector
from .trajectory_builder import TrajectoryBuilder

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], Any]

# Progress fractions reported after each stage
DETECTION_START = 0.05
DETECTION_END = 0.60
STAGE_PROGRESS = {
    "trajectory": (0.70, "Trajectory built"),
    "phases": (0.80, "Swing phases detected"),
    "metrics": (0.90, "Swing metrics computed"),
    "grading": (1.00, "Analysis complete!"),
}

_END = object()


class SwingAnalyzer:
    """
    Analyzes golf swings from video files or frame sequences.

    This service:
    1. Detects poses frame by frame (one detector per analysis)
    2. Builds the joint and clubhead trajectories
    3. Splits the swing into phases
    4. Computes swing metrics
    5. Grades the swing against benchmarks

    Usage:
        analyzer = SwingAnalyzer()

        grade = await analyzer.analyze(
            AnalysisInput(video_path="swing.mp4", club=GolfClub.DRIVER),
            progress=lambda step, fraction: print(step, fraction),
        )
        print(f"Overall score: {grade.overall.score}")

        # Full result with metrics, phases and detection stats
        result = await analyzer.run(AnalysisInput(frames=frames, fps=60))

    Analyses may run concurrently: every run builds and owns its own
    PoseDetector and shuts it down when done.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        benchmarks: Optional[BenchmarkTable] = None,
        detector_factory: Callable[[DetectorConfig], PoseDetector] = PoseDetector,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ):
        """
        Args:
            config: Pipeline configuration
            benchmarks: Benchmark table (defaults to the process-wide table)
            detector_factory: Builds a fresh detector for each analysis
            performance_monitor: Receives one sample per completed analysis
        """
        self.config = config or PipelineConfig()
        self.detector_factory = detector_factory
        self.segmenter = PhaseSegmenter(self.config.segmenter)
        self.metrics_engine = MetricsEngine(self.config.metrics)
        self.grading_engine = GradingEngine(benchmarks or load_benchmarks())
        self.performance_monitor = performance_monitor or PerformanceMonitor(
            capacity=self.config.performance_capacity
        )

    # -------------------------------------------------------------------------
    # Main Analysis Methods
    # -------------------------------------------------------------------------

    async def analyze(
        self,
        analysis_input: AnalysisInput,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GolfGrade:
        """
        Analyze one swing and return its grade.

        Raises:
            SwingAnalysisError: Any fatal failure (no partial grade is returned)
        """
        result = await self.run(analysis_input, progress=progress, cancel_token=cancel_token)
        return result.grade

    async def run(
        self,
        analysis_input: AnalysisInput,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SwingAnalysisResult:
        """
        Analyze one swing and return the detailed result.

        Args:
            analysis_input: Frames or video to analyze
            progress: Called with (step, fraction) after each stage
            cancel_token: Checked between frames and between stages

        Raises:
            InitializationError: The pose engine could not be loaded
            InsufficientDataError: No frames, or no poses detected
            PipelineError: A stage failed unexpectedly
            AnalysisCancelledError: Cancelled through the token
        """
        token = cancel_token or CancellationToken()
        report = progress or (lambda step, fraction: None)
        started = time.perf_counter()

        builder, detection, fps = await self._detect_poses(analysis_input, report, token)

        trajectory = await self._stage("trajectory", report, token, builder.build)
        segmentation = await self._stage(
            "phases", report, token, self.segmenter.segment, trajectory, detection.total_frames
        )
        metrics = await self._stage(
            "metrics", report, token, self.metrics_engine.compute, trajectory, segmentation, fps
        )
        grade = await self._stage(
            "grading", report, token, self.grading_engine.grade, metrics, analysis_input.club
        )

        processing_time_ms = int((time.perf_counter() - started) * 1000)
        self.performance_monitor.track(PerformanceSample(
            processing_time_ms=processing_time_ms,
            video_duration_s=detection.total_frames / fps,
            frame_count=detection.total_frames,
            pose_count=detection.detected_frames,
            analysis_score=grade.overall.score,
        ))

        return SwingAnalysisResult(
            grade=grade,
            metrics=metrics,
            segmentation=segmentation,
            detection=detection,
            club=analysis_input.club,
            fps=fps,
            processing_time_ms=processing_time_ms,
            swing_id=analysis_input.swing_id or str(uuid.uuid4()),
            extras={"key_frames": {
                phase.value: frame for phase, frame in segmentation.key_frames.items()
            }},
        )

    # -------------------------------------------------------------------------
    # Pose Detection
    # -------------------------------------------------------------------------

    async def _detect_poses(
        self,
        analysis_input: AnalysisInput,
        report: ProgressCallback,
        token: CancellationToken,
    ) -> tuple[TrajectoryBuilder, DetectionStats, float]:
        """Run every frame through a detector owned by this analysis."""
        with analysis_input.open() as source:
            expected = len(source)
            if isinstance(source, MemoryFrameSource) and expected == 0:
                raise InsufficientDataError("No frames to analyze")

            report("Initializing pose detection...", 0.0)
            token.raise_if_cancelled()

            builder = TrajectoryBuilder()
            missing: list[int] = []
            total = 0

            detector = self.detector_factory(self.config.detector)
            try:
                await detector.initialize()
                logger.info(f"Detecting poses in {expected or 'unknown number of'} frames")

                frames = iter(source)
                every = max(1, self.config.progress_every_frames)
                while True:
                    token.raise_if_cancelled()
                    # Decoding is blocking
                    frame = await asyncio.to_thread(next, frames, _END)
                    if frame is _END:
                        break

                    pose = None
                    if frame.image is not None:
                        pose = await detector.detect(
                            frame.image,
                            frame_number=frame.index,
                            timestamp_ms=frame.timestamp_ms,
                        )
                    if pose is None:
                        missing.append(frame.index)
                    builder.add(frame.index, pose)
                    total += 1

                    if expected and total % every == 0:
                        fraction = DETECTION_START + (DETECTION_END - DETECTION_START) * min(1.0, total / expected)
                        report(f"Detecting poses ({total}/{expected})...", fraction)
            except SwingAnalysisError:
                raise
            except Exception as e:
                logger.error(f"Pose detection failed: {e}")
                raise PipelineError(f"Pose detection failed: {e}", stage="detection") from e
            finally:
                await detector.shutdown()

            fps = source.fps

        detected = total - len(missing)
        if total == 0:
            raise InsufficientDataError("No frames to analyze")
        if detected == 0:
            raise InsufficientDataError(f"No poses detected in {total} frames")

        logger.info(f"Detected poses in {detected}/{total} frames")
        report("Poses detected", DETECTION_END)
        return builder, DetectionStats(total, detected, tuple(missing)), fps

    # -------------------------------------------------------------------------
    # Pure Stages
    # -------------------------------------------------------------------------

    async def _stage(
        self,
        name: str,
        report: ProgressCallback,
        token: CancellationToken,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Run one CPU-bound stage off the event loop, then report progress."""
        token.raise_if_cancelled()
        logger.info(f"Stage '{name}' started")
        try:
            result = await asyncio.to_thread(func, *args)
        except SwingAnalysisError:
            raise
        except Exception as e:
            logger.error(f"Stage '{name}' failed: {e}")
            raise PipelineError(f"Swing analysis failed while computing {name}: {e}", stage=name) from e

        fraction, step = STAGE_PROGRESS[name]
        report(step, fraction)
        return result
