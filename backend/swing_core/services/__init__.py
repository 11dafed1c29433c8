"""
Services Layer

Pipeline stages for golf swing analysis.
These services orchestrate domain models and external dependencies.
"""

from .angle_calculator import AngleCalculator
from .frame_correlator import FrameCorrelator
from .pose_detector import PoseDetector, PoseEngine, MediaPipePoseEngine, EngineResult
from .frame_source import AnalysisInput, SourceFrame, decode_base64_image
from .trajectory_builder import TrajectoryBuilder
from .trajectory_analyzer import TrajectoryAnalyzer
from .phase_segmenter import PhaseSegmenter
from .metrics_engine import MetricsEngine
from .grading_engine import GradingEngine
from .performance_monitor import PerformanceMonitor, PerformanceSample
from .analysis_task import AnalysisTask, CancellationToken
from .swing_analyzer import SwingAnalyzer

__all__ = [
    "AngleCalculator",
    "FrameCorrelator",
    "PoseDetector",
    "PoseEngine",
    "MediaPipePoseEngine",
    "EngineResult",
    "AnalysisInput",
    "SourceFrame",
    "decode_base64_image",
    "TrajectoryBuilder",
    "TrajectoryAnalyzer",
    "PhaseSegmenter",
    "MetricsEngine",
    "GradingEngine",
    "PerformanceMonitor",
    "PerformanceSample",
    "AnalysisTask",
    "CancellationToken",
    "SwingAnalyzer",
]
