"""
API Schemas

Pydantic models for request/response validation.
"""

from .pose import (
    LandmarkSchema,
    PoseFrameSchema,
    PoseDetectionRequest,
    PoseDetectionResponse,
)

from .analysis import (
    GolfClubEnum,
    SwingPhaseEnum,
    BenchmarkSchema,
    GradeCategorySchema,
    OverallGradeSchema,
    ComparisonSchema,
    RecommendationsSchema,
    GolfGradeSchema,
    MetricSchema,
    PhaseIntervalSchema,
    SwingAnalysisResponse,
    AnalyzeFramesRequest,
    PerformanceResponse,
    HealthResponse,
)

__all__ = [
    # Pose schemas
    "LandmarkSchema",
    "PoseFrameSchema",
    "PoseDetectionRequest",
    "PoseDetectionResponse",
    # Analysis schemas
    "GolfClubEnum",
    "SwingPhaseEnum",
    "BenchmarkSchema",
    "GradeCategorySchema",
    "OverallGradeSchema",
    "ComparisonSchema",
    "RecommendationsSchema",
    "GolfGradeSchema",
    "MetricSchema",
    "PhaseIntervalSchema",
    "SwingAnalysisResponse",
    "AnalyzeFramesRequest",
    "PerformanceResponse",
    "HealthResponse",
]
