"""
Swing Analysis Domain Models

Data structures for swing phases, metrics and the graded report.
Every structure here is produced by exactly one pipeline stage and
is not modified afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional


class SwingPhase(Enum):
    """
    The phases of a golf swing, in timeline order.

    - ADDRESS: Setup position before the takeaway
    - BACKSWING: Takeaway up to the top
    - TOP: Direction change at the top of the backswing
    - DOWNSWING: Acceleration from the top towards the ball
    - IMPACT: Club meets ball (lowest clubhead point)
    - FOLLOW_THROUGH: Everything after impact
    """
    ADDRESS = "address"
    BACKSWING = "backswing"
    TOP = "top"
    DOWNSWING = "downswing"
    IMPACT = "impact"
    FOLLOW_THROUGH = "follow_through"


PHASE_ORDER = tuple(SwingPhase)


class GolfClub(Enum):
    """Golf club types - affects the power benchmark."""
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

    @property
    def family(self) -> str:
        """Benchmark family: driver, wood, iron or wedge."""
        if self is GolfClub.DRIVER:
            return "driver"
        if self in (GolfClub.WOOD_3, GolfClub.WOOD_5, GolfClub.HYBRID):
            return "wood"
        if self.value.startswith("iron"):
            return "iron"
        return "wedge"


# =============================================================================
# Phase Segmentation
# =============================================================================

@dataclass(frozen=True)
class PhaseInterval:
    """
    Half-open frame interval [start_frame, end_frame) for one phase.
    """
    phase: SwingPhase
    start_frame: int
    end_frame: int

    @property
    def length(self) -> int:
        return self.end_frame - self.start_frame

    def contains(self, frame: int) -> bool:
        return self.start_frame <= frame < self.end_frame


@dataclass(frozen=True)
class PhaseSegmentation:
    """
    Partition of the full recording into swing phases.

    Intervals follow PHASE_ORDER, are contiguous, and together cover
    [0, total_frames) exactly.

    Attributes:
        intervals: One interval per phase, in order
        total_frames: Length of the analyzed frame range
        method: "events" (trajectory events) or "proportional" (fallback)
        low_confidence: True when the fallback split was used
    """
    intervals: tuple[PhaseInterval, ...]
    total_frames: int
    method: str = "events"
    low_confidence: bool = False

    def get(self, phase: SwingPhase) -> PhaseInterval:
        for interval in self.intervals:
            if interval.phase == phase:
                return interval
        raise KeyError(phase)

    def phase_at(self, frame: int) -> Optional[SwingPhase]:
        for interval in self.intervals:
            if interval.contains(frame):
                return interval.phase
        return None

    @property
    def key_frames(self) -> dict[SwingPhase, int]:
        """First frame of every non-empty phase."""
        return {
            interval.phase: interval.start_frame
            for interval in self.intervals
            if interval.length > 0
        }

    def __iter__(self) -> Iterator[PhaseInterval]:
        return iter(self.intervals)


# =============================================================================
# Metrics
# =============================================================================

@dataclass(frozen=True)
class MetricValue:
    """
    One computed swing metric.

    Attributes:
        value: The measurement, None when it could not be computed
        unit: Unit label ("ratio", "deg", "mph", ...)
        low_confidence: Measurement exists but rests on weak data
        insufficient: Not enough points to compute the metric
        reason: Why the metric is insufficient or low-confidence
    """
    value: Optional[float]
    unit: str = ""
    low_confidence: bool = False
    insufficient: bool = False
    reason: Optional[str] = None

    @classmethod
    def missing(cls, unit: str, reason: str) -> "MetricValue":
        """Insufficient-data marker."""
        return cls(value=None, unit=unit, low_confidence=True, insufficient=True, reason=reason)


@dataclass(frozen=True)
class SwingMetrics:
    """
    Biomechanical measures derived from the phase-segmented trajectory.

    Attributes:
        tempo_ratio: Backswing duration / downswing duration (reference 3:1)
        shoulder_turn: Shoulder-line rotation from address to top (0-180 deg)
        hip_turn: Hip-line rotation from address to top (0-180 deg)
        x_factor: Shoulder turn minus hip turn (deg)
        plane_consistency: 1 - normalized off-plane variance of the clubhead path [0, 1]
        clubhead_speed: Peak estimated clubhead speed in the downswing (mph)
        balance_stability: Hip-centre stability over the whole swing [0, 1]
        path_smoothness: Lead-hand path smoothness [0, 1]
    """
    tempo_ratio: MetricValue
    shoulder_turn: MetricValue
    hip_turn: MetricValue
    x_factor: MetricValue
    plane_consistency: MetricValue
    clubhead_speed: MetricValue
    balance_stability: MetricValue
    path_smoothness: MetricValue

    def get(self, name: str) -> MetricValue:
        return getattr(self, name)

    def items(self) -> list[tuple[str, MetricValue]]:
        return [(name, getattr(self, name)) for name in self.__dataclass_fields__]


# =============================================================================
# Grade
# =============================================================================

@dataclass(frozen=True)
class CategoryBenchmark:
    professional: float
    amateur: Optional[float] = None


@dataclass(frozen=True)
class GradeCategory:
    """
    Score for one swing category.

    Attributes:
        score: 0-100 rating
        letter: Letter band for the score
        description: Human-readable explanation
        current: The measured metric value (0 when unavailable)
        benchmark: Professional/amateur reference values
        low_confidence: The underlying metric rests on weak or missing data
    """
    score: int
    letter: str
    description: str
    current: float
    benchmark: CategoryBenchmark
    low_confidence: bool = False

    def to_dict(self) -> dict:
        benchmark = {"professional": self.benchmark.professional}
        if self.benchmark.amateur is not None:
            benchmark["amateur"] = self.benchmark.amateur
        return {
            "score": self.score,
            "letter": self.letter,
            "description": self.description,
            "current": self.current,
            "benchmark": benchmark,
            "lowConfidence": self.low_confidence,
        }


@dataclass(frozen=True)
class OverallGrade:
    score: int
    letter: str
    description: str


@dataclass(frozen=True)
class GradeComparison:
    vs_professional: int
    vs_amateur: int
    percentile: int


@dataclass(frozen=True)
class Recommendations:
    """Advice tiers, each an ordered tuple of strings."""
    immediate: tuple[str, ...] = ()
    short_term: tuple[str, ...] = ()
    long_term: tuple[str, ...] = ()


@dataclass(frozen=True)
class GolfGrade:
    """
    Graded, benchmark-compared swing assessment.

    Derived entirely from SwingMetrics and the benchmark table.
    """
    overall: OverallGrade
    categories: Mapping[str, GradeCategory]
    comparison: GradeComparison
    recommendations: Recommendations
    benchmark_version: str = ""

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))

    def to_dict(self) -> dict:
        """Wire format used in SWING_ANALYZED messages."""
        return {
            "overall": {
                "score": self.overall.score,
                "letter": self.overall.letter,
                "description": self.overall.description,
            },
            "categories": {
                name: category.to_dict() for name, category in self.categories.items()
            },
            "comparison": {
                "vsProfessional": self.comparison.vs_professional,
                "vsAmateur": self.comparison.vs_amateur,
                "percentile": self.comparison.percentile,
            },
            "recommendations": {
                "immediate": list(self.recommendations.immediate),
                "shortTerm": list(self.recommendations.short_term),
                "longTerm": list(self.recommendations.long_term),
            },
            "benchmarkVersion": self.benchmark_version,
        }


# =============================================================================
# Full Result
# =============================================================================

@dataclass(frozen=True)
class DetectionStats:
    """Frame-level detection outcome counts."""
    total_frames: int
    detected_frames: int
    missing_frames: tuple[int, ...] = ()

    @property
    def detection_rate(self) -> float:
        if self.total_frames == 0:
            return 0.0
        return self.detected_frames / self.total_frames


@dataclass(frozen=True)
class SwingAnalysisResult:
    """
    Everything the pipeline produced for one recording.

    The grade is the primary output; the rest supports display.
    """
    grade: GolfGrade
    metrics: SwingMetrics
    segmentation: PhaseSegmentation
    detection: DetectionStats
    club: GolfClub
    fps: float
    processing_time_ms: int
    swing_id: Optional[str] = None
    extras: dict = field(default_factory=dict)
