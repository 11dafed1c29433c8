"""
Grading Engine Service

Turns SwingMetrics into a GolfGrade using the benchmark table:

1. Each category scores its metric on the category's curve (0-100)
2. The overall score is the weighted mean of the category scores
3. Percentile and comparisons come from fixed lookup rules
4. Recommendations come from per-category score thresholds

Pure and deterministic: the same metrics always give the same grade.
"""

import logging
from typing import Mapping, Optional

from ..benchmarks import BenchmarkTable, CategorySpec, load_benchmarks
from ..domain.analysis import (
    CategoryBenchmark,
    GolfClub,
    GolfGrade,
    GradeCategory,
    GradeComparison,
    MetricValue,
    OverallGrade,
    Recommendations,
    SwingMetrics,
)

logger = logging.getLogger(__name__)

# Score at the amateur reference value on every curve
AMATEUR_SCORE = 70.0


class GradingEngine:
    """
    Grades swing metrics against professional and amateur benchmarks.

    Usage:
        engine = GradingEngine()
        grade = engine.grade(metrics, club=GolfClub.IRON_7)
        print(grade.overall.letter, grade.overall.score)
    """

    def __init__(self, benchmarks: Optional[BenchmarkTable] = None):
        self.benchmarks = benchmarks or load_benchmarks()

    def grade(self, metrics: SwingMetrics, club: GolfClub = GolfClub.DRIVER) -> GolfGrade:
        categories = {
            spec.name: self._grade_category(spec, metrics, club)
            for spec in self.benchmarks.categories
        }

        overall_score = self.overall_score(categories)
        overall = OverallGrade(
            score=overall_score,
            letter=self.benchmarks.letter_for(overall_score),
            description=_overall_description(overall_score),
        )

        return GolfGrade(
            overall=overall,
            categories=categories,
            comparison=self._compare(overall_score),
            recommendations=self._recommend(categories, overall_score),
            benchmark_version=self.benchmarks.version,
        )

    def overall_score(self, categories: Mapping[str, GradeCategory]) -> int:
        """Weighted mean of the category scores, rounded."""
        total = sum(
            categories[spec.name].score * spec.weight
            for spec in self.benchmarks.categories
        )
        return int(round(total))

    # -------------------------------------------------------------------------
    # Category Scoring
    # -------------------------------------------------------------------------

    def _grade_category(
        self,
        spec: CategorySpec,
        metrics: SwingMetrics,
        club: GolfClub,
    ) -> GradeCategory:
        professional, amateur = spec.reference_for(club.family)
        benchmark = CategoryBenchmark(professional=professional, amateur=amateur)
        metric = metrics.get(spec.metric)

        if metric.value is None:
            return GradeCategory(
                score=0,
                letter=self.benchmarks.letter_for(0),
                description=f"Not enough data to grade {spec.name}: {metric.reason or 'metric unavailable'}.",
                current=0.0,
                benchmark=benchmark,
                low_confidence=True,
            )

        score = int(round(score_on_curve(metric.value, spec.curve, professional, amateur)))
        description = _describe(spec.name, score, metric, metrics, club)
        if metric.low_confidence:
            description += " (low confidence)"

        return GradeCategory(
            score=score,
            letter=self.benchmarks.letter_for(score),
            description=description,
            current=round(metric.value, 2),
            benchmark=benchmark,
            low_confidence=metric.low_confidence,
        )

    # -------------------------------------------------------------------------
    # Comparison and Recommendations
    # -------------------------------------------------------------------------

    def _compare(self, overall_score: int) -> GradeComparison:
        baseline = self.benchmarks.amateur_baseline
        return GradeComparison(
            vs_professional=int(round(overall_score)),
            vs_amateur=int(round((overall_score - baseline) / (100 - baseline) * 100)),
            percentile=self.benchmarks.percentile_for(overall_score),
        )

    def _recommend(self, categories: dict[str, GradeCategory], overall_score: int) -> Recommendations:
        cutoffs = self.benchmarks.cutoffs
        immediate: list[str] = []
        short_term: list[str] = []
        long_term: list[str] = []

        for spec in self.benchmarks.categories:
            score = categories[spec.name].score
            if score < cutoffs["immediate"]:
                tier, advice = immediate, spec.advice.get("immediate")
            elif score < cutoffs["short_term"]:
                tier, advice = short_term, spec.advice.get("short_term")
            elif score < cutoffs["long_term"]:
                tier, advice = long_term, spec.advice.get("long_term")
            else:
                continue
            if advice:
                tier.append(advice)

        for threshold, advice in self.benchmarks.overall_long_term:
            if overall_score < threshold:
                long_term.append(advice)

        return Recommendations(
            immediate=tuple(immediate),
            short_term=tuple(short_term),
            long_term=tuple(long_term),
        )


# =============================================================================
# Scoring Curves
# =============================================================================

def score_on_curve(value: float, curve: str, professional: float, amateur: float) -> float:
    """
    Position of a metric value on a scoring curve, clamped to [0, 100].

    - "target": 100 at the professional value, 70 at the amateur value's
      distance from it, falling linearly on either side
    - "higher": 70 at the amateur value, 100 at the professional value,
      linear in between and beyond
    """
    if curve == "target":
        tolerance = abs(professional - amateur)
        if tolerance == 0:
            return 100.0 if value == professional else 0.0
        score = 100.0 - (100.0 - AMATEUR_SCORE) * abs(value - professional) / tolerance
    elif curve == "higher":
        span = professional - amateur
        if span == 0:
            return 100.0 if value >= professional else 0.0
        score = AMATEUR_SCORE + (100.0 - AMATEUR_SCORE) * (value - amateur) / span
    else:
        raise ValueError(f"Unknown scoring curve: {curve}")

    return max(0.0, min(100.0, score))


# =============================================================================
# Descriptions
# =============================================================================

def _overall_description(score: int) -> str:
    if score >= 90:
        return "Exceptional swing! You're performing at a professional level."
    if score >= 80:
        return "Great swing! You're above average with room for minor improvements."
    if score >= 70:
        return "Good swing! Focus on consistency and fundamentals."
    if score >= 60:
        return "Decent swing! Several areas need improvement."
    return "Needs significant work. Focus on fundamentals and consider lessons."


def _headline(score: int, subject: str) -> str:
    """'Excellent tempo' / 'Good tempo' / 'Tempo needs work'."""
    if score >= 90:
        return f"Excellent {subject}"
    if score >= 70:
        return f"Good {subject}"
    return f"{subject.capitalize()} needs work"


def _describe(
    category: str,
    score: int,
    metric: MetricValue,
    metrics: SwingMetrics,
    club: GolfClub,
) -> str:
    value = metric.value or 0.0

    if category == "tempo":
        text = f"{_headline(score, 'tempo')} at {value:.2f}:1 ratio."
        return text if score >= 70 else text + " Target 3:1."
    if category == "rotation":
        text = f"{_headline(score, 'rotation')}: {value:.0f}° shoulders"
        if metrics.hip_turn.value is not None:
            text += f", {metrics.hip_turn.value:.0f}° hips"
        if metrics.x_factor.value is not None:
            text += f", {metrics.x_factor.value:.0f}° separation"
        return text + "."
    if category == "power":
        return f"{_headline(score, 'power')}: {value:.0f} mph with {club.value.replace('_', ' ')}."
    if category == "balance":
        if score >= 90:
            return "Excellent balance throughout the swing."
        if score >= 70:
            return "Good balance with minor improvements needed."
        return "Balance needs work - focus on staying centered."
    if category == "plane":
        if score >= 90:
            return "Very consistent swing plane."
        if score >= 70:
            return "Good swing plane with room for improvement."
        return "Swing plane needs work - focus on consistency."
    if category == "consistency":
        if score >= 90:
            return "Very consistent swing motion."
        if score >= 70:
            return "Good consistency with room for improvement."
        return "Consistency needs work - practice the same motion."
    return f"{_headline(score, category)}: {value:.2f}."
