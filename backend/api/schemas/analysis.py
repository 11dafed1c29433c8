"""
Analysis API Schemas

Pydantic models for swing analysis API requests and responses.

The grade uses the camelCase keys of the SWING_ANALYZED message
(vsProfessional, shortTerm, ...); field names stay snake_case in Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum
from datetime import datetime


class GolfClubEnum(str, Enum):
    """Golf club types for API."""
    DRIVER = "driver"
    WOOD_3 = "wood_3"
    WOOD_5 = "wood_5"
    HYBRID = "hybrid"
    IRON_4 = "iron_4"
    IRON_5 = "iron_5"
    IRON_6 = "iron_6"
    IRON_7 = "iron_7"
    IRON_8 = "iron_8"
    IRON_9 = "iron_9"
    PITCHING_WEDGE = "pitching_wedge"
    SAND_WEDGE = "sand_wedge"
    LOB_WEDGE = "lob_wedge"
    PUTTER = "putter"


class SwingPhaseEnum(str, Enum):
    """Swing phases for API."""
    ADDRESS = "address"
    BACKSWING = "backswing"
    TOP = "top"
    DOWNSWING = "downswing"
    IMPACT = "impact"
    FOLLOW_THROUGH = "follow_through"


# =============================================================================
# Grade
# =============================================================================

class BenchmarkSchema(BaseModel):
    professional: float
    amateur: Optional[float] = None


class GradeCategorySchema(BaseModel):
    """
    Score for one swing category.
    """
    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(..., ge=0, le=100, description="Score out of 100")
    letter: str = Field(..., description="Letter grade (A-F)")
    description: str = Field(..., description="Human-readable feedback")
    current: float = Field(..., description="Measured value")
    benchmark: BenchmarkSchema = Field(..., description="Reference values")
    low_confidence: bool = Field(False, alias="lowConfidence", description="Rests on weak or missing data")


class OverallGradeSchema(BaseModel):
    score: int = Field(..., ge=0, le=100)
    letter: str
    description: str


class ComparisonSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vs_professional: int = Field(..., alias="vsProfessional", description="Percent of professional level")
    vs_amateur: int = Field(..., alias="vsAmateur", description="Percent relative to the amateur baseline")
    percentile: int = Field(..., ge=0, le=100)


class RecommendationsSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    immediate: List[str] = Field(default_factory=list)
    short_term: List[str] = Field(default_factory=list, alias="shortTerm")
    long_term: List[str] = Field(default_factory=list, alias="longTerm")


class GolfGradeSchema(BaseModel):
    """
    Graded swing assessment (payload of SWING_ANALYZED).
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "overall": {"score": 78, "letter": "C", "description": "Good swing! Focus on consistency and fundamentals."},
                "categories": {
                    "tempo": {
                        "score": 88, "letter": "B", "description": "Good tempo at 2.80:1 ratio.",
                        "current": 2.8, "benchmark": {"professional": 3.0, "amateur": 2.5},
                        "lowConfidence": False,
                    }
                },
                "comparison": {"vsProfessional": 78, "vsAmateur": 45, "percentile": 55},
                "recommendations": {"immediate": [], "shortTerm": [], "longTerm": []},
                "benchmarkVersion": "2024.1",
            }
        },
    )

    overall: OverallGradeSchema
    categories: dict[str, GradeCategorySchema]
    comparison: ComparisonSchema
    recommendations: RecommendationsSchema
    benchmark_version: str = Field("", alias="benchmarkVersion")


# =============================================================================
# Detailed Analysis
# =============================================================================

class MetricSchema(BaseModel):
    """
    One swing metric. `value` is null when there was not enough data.
    """
    value: Optional[float] = None
    unit: str = ""
    low_confidence: bool = False
    insufficient: bool = False
    reason: Optional[str] = None


class PhaseIntervalSchema(BaseModel):
    """Half-open frame interval [start_frame, end_frame) of one phase."""
    phase: SwingPhaseEnum
    start_frame: int = Field(..., ge=0)
    end_frame: int = Field(..., ge=0)


class SwingAnalysisResponse(BaseModel):
    """
    Complete swing analysis result.

    This is the main response from the analyze endpoints.
    """
    # Identification
    id: str = Field(..., description="Unique analysis ID")
    timestamp: datetime = Field(..., description="When analysis was performed")

    # Video info
    video_duration_ms: int = Field(..., description="Recording duration in milliseconds")
    total_frames: int = Field(..., description="Total frames analyzed")
    detected_frames: int = Field(..., description="Frames with a detected pose")
    missing_frames: List[int] = Field(default_factory=list, description="Frames without a pose")
    fps: float = Field(..., description="Frames per second of the analyzed sequence")
    processing_time_ms: int = Field(..., description="Analysis wall-clock time")

    # Club
    club: GolfClubEnum = Field(..., description="Golf club used")

    # Results
    grade: GolfGradeSchema = Field(..., description="Graded assessment")
    metrics: dict[str, MetricSchema] = Field(default_factory=dict, description="Swing metrics")
    phases: List[PhaseIntervalSchema] = Field(default_factory=list, description="Phase intervals")
    phase_method: str = Field(..., description="'events' or 'proportional' (fallback)")
    key_frames: dict[str, int] = Field(default_factory=dict, description="Phase -> first frame mapping")


class AnalyzeFramesRequest(BaseModel):
    """
    Frames to analyze (also the data of an ANALYZE_SWING message).
    """
    frames: List[str] = Field(..., description="Base64 encoded JPEG/PNG frames, in order")
    club: GolfClubEnum = Field(GolfClubEnum.DRIVER, description="Club being used")
    fps: float = Field(30.0, gt=0, description="Original video FPS")
    swing_id: Optional[str] = Field(None, description="Caller-side identifier")

    class Config:
        json_schema_extra = {
            "example": {
                "frames": ["/9j/4AAQSkZJRg...", "/9j/4AAQSkZJRg..."],
                "club": "driver",
                "fps": 60,
                "swing_id": "swing-001"
            }
        }


class PerformanceResponse(BaseModel):
    """
    Efficiency over the most recent analyses.
    """
    model_config = ConfigDict(populate_by_name=True)

    sample_size: int = Field(0, alias="sampleSize")
    avg_efficiency: Optional[float] = Field(None, alias="avgEfficiency", description="Video seconds per processing second")
    avg_processing_time_ms: Optional[float] = Field(None, alias="avgProcessingTimeMs")
    avg_detection_rate: Optional[float] = Field(None, alias="avgDetectionRate")


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
    pose_engine_available: bool = Field(..., description="Whether the pose model loads")
    benchmark_version: str = Field(..., description="Benchmark table version")
