"""
Domain Models

Pure data structures representing golf swing analysis concepts.
No external dependencies - just Python dataclasses and enums.
"""

from .pose import PoseLandmark, PoseFrame, BodyPart
from .trajectory import TrackedPoint, TrajectoryPoint, SwingTrajectory
from .analysis import (
    SwingPhase,
    PHASE_ORDER,
    GolfClub,
    PhaseInterval,
    PhaseSegmentation,
    MetricValue,
    SwingMetrics,
    CategoryBenchmark,
    GradeCategory,
    OverallGrade,
    GradeComparison,
    Recommendations,
    GolfGrade,
    DetectionStats,
    SwingAnalysisResult,
)
from .messages import MessageType, AnalysisMessage

__all__ = [
    "PoseLandmark",
    "PoseFrame",
    "BodyPart",
    "TrackedPoint",
    "TrajectoryPoint",
    "SwingTrajectory",
    "SwingPhase",
    "PHASE_ORDER",
    "GolfClub",
    "PhaseInterval",
    "PhaseSegmentation",
    "MetricValue",
    "SwingMetrics",
    "CategoryBenchmark",
    "GradeCategory",
    "OverallGrade",
    "GradeComparison",
    "Recommendations",
    "GolfGrade",
    "DetectionStats",
    "SwingAnalysisResult",
    "MessageType",
    "AnalysisMessage",
]
