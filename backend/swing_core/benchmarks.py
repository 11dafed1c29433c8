"""
Golf Swing Benchmarks - professional and amateur reference values

Fixed, versioned table used by the grading engine. Every grading
category is driven by exactly one swing metric and a scoring curve:

- "target": the professional value is ideal; distance from it costs points
- "higher": larger is better, capped at the professional value

The table can be replaced by a JSON file of the same shape.
"""

import json
import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

BENCHMARK_VERSION = "2024.1"

# Default benchmark values (PGA Tour / club amateur averages)
DEFAULT_BENCHMARKS = {
    "version": BENCHMARK_VERSION,
    "letter_bands": [[90, "A"], [80, "B"], [70, "C"], [60, "D"]],
    "lowest_letter": "F",
    # [minimum overall score, percentile]
    "percentiles": [
        [95, 95], [90, 85], [85, 75], [80, 65], [75, 55],
        [70, 45], [65, 35], [60, 25], [55, 15],
    ],
    "lowest_percentile": 5,
    "amateur_baseline": 60,
    "recommendation_cutoffs": {"immediate": 60, "short_term": 80, "long_term": 90},
    "categories": {
        "tempo": {
            "metric": "tempo_ratio",
            "curve": "target",
            "professional": 3.0,
            "amateur": 2.5,
            "weight": 0.15,
            "advice": {
                "immediate": 'Focus on smoother tempo - count "1-2-3" for backswing, "1" for downswing',
                "short_term": "Practice with a metronome to groove a 3:1 backswing to downswing rhythm",
                "long_term": "Keep the same tempo under pressure - rehearse it in your pre-shot routine",
            },
        },
        "rotation": {
            "metric": "shoulder_turn",
            "curve": "target",
            "professional": 90.0,
            "amateur": 75.0,
            "weight": 0.20,
            "advice": {
                "immediate": "Turn your back to the target - let the lead shoulder reach the chin",
                "short_term": "Increase shoulder turn while keeping the hips quieter",
                "long_term": "Work on thoracic mobility to hold a full turn without swaying",
            },
        },
        "balance": {
            "metric": "balance_stability",
            "curve": "higher",
            "professional": 0.90,
            "amateur": 0.75,
            "weight": 0.15,
            "advice": {
                "immediate": "Work on staying balanced - practice with feet closer together",
                "short_term": "Hold your finish for three seconds after every practice swing",
                "long_term": "Add single-leg stability work to your training",
            },
        },
        "plane": {
            "metric": "plane_consistency",
            "curve": "higher",
            "professional": 0.85,
            "amateur": 0.70,
            "weight": 0.15,
            "advice": {
                "immediate": "Keep your swing on plane - imagine swinging inside a barrel",
                "short_term": "Use an alignment stick along the shaft line to check the takeaway",
                "long_term": "Film your swing down the line regularly to monitor the plane",
            },
        },
        "power": {
            "metric": "clubhead_speed",
            "curve": "higher",
            "professional": 110.0,
            "amateur": 95.0,
            "weight": 0.20,
            "by_club": {
                "driver": {"professional": 110.0, "amateur": 95.0},
                "wood": {"professional": 100.0, "amateur": 88.0},
                "iron": {"professional": 90.0, "amateur": 80.0},
                "wedge": {"professional": 70.0, "amateur": 60.0},
            },
            "advice": {
                "immediate": "Let the club release - stop steering the ball",
                "short_term": "Generate more clubhead speed - work on wrist hinge and release",
                "long_term": "Build rotational speed with overspeed training",
            },
        },
        "consistency": {
            "metric": "path_smoothness",
            "curve": "higher",
            "professional": 0.85,
            "amateur": 0.70,
            "weight": 0.15,
            "advice": {
                "immediate": "Slow down and make smooth, complete swings",
                "short_term": "Practice the same swing motion repeatedly",
                "long_term": "Track your swings over time to keep the motion repeatable",
            },
        },
    },
    # [overall score below, advice]
    "overall_long_term": [
        [90, "Consider professional lessons for personalized instruction"],
        [80, "Develop a consistent pre-shot routine"],
        [70, "Focus on fundamentals before advanced techniques"],
    ],
}


@dataclass(frozen=True)
class CategorySpec:
    """One grading category of the benchmark table."""
    name: str
    metric: str
    curve: str
    professional: float
    amateur: float
    weight: float
    advice: dict
    by_club: Optional[dict] = None

    def reference_for(self, club_family: Optional[str]) -> tuple[float, float]:
        """(professional, amateur) values, club-specific where the table has them."""
        if self.by_club and club_family in self.by_club:
            ref = self.by_club[club_family]
            return float(ref["professional"]), float(ref["amateur"])
        return self.professional, self.amateur


class BenchmarkTable:
    """
    Read-only view over a benchmark definition.

    Usage:
        table = load_benchmarks()
        table.letter_for(84)      # "B"
        table.percentile_for(84)  # 65
    """

    def __init__(self, data: dict):
        self.version: str = str(data.get("version", BENCHMARK_VERSION))
        self._letter_bands = [(float(t), str(l)) for t, l in data["letter_bands"]]
        self._lowest_letter = data.get("lowest_letter", "F")
        self._percentiles = [(float(t), int(p)) for t, p in data["percentiles"]]
        self._lowest_percentile = int(data.get("lowest_percentile", 5))
        self.amateur_baseline = float(data.get("amateur_baseline", 60))
        self.cutoffs = dict(data["recommendation_cutoffs"])
        self.overall_long_term = [(float(t), str(a)) for t, a in data.get("overall_long_term", [])]

        self.categories: list[CategorySpec] = []
        for name, spec in data["categories"].items():
            if spec["curve"] not in ("target", "higher"):
                raise ValueError(f"Unknown scoring curve for {name}: {spec['curve']}")
            self.categories.append(CategorySpec(
                name=name,
                metric=spec["metric"],
                curve=spec["curve"],
                professional=float(spec["professional"]),
                amateur=float(spec["amateur"]),
                weight=float(spec["weight"]),
                advice=dict(spec.get("advice", {})),
                by_club=spec.get("by_club"),
            ))

        total_weight = sum(c.weight for c in self.categories)
        if not math.isclose(total_weight, 1.0, abs_tol=1e-6):
            raise ValueError(f"Category weights must sum to 1, got {total_weight:.4f}")

    def category(self, name: str) -> CategorySpec:
        for spec in self.categories:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def letter_for(self, score: float) -> str:
        for threshold, letter in self._letter_bands:
            if score >= threshold:
                return letter
        return self._lowest_letter

    def percentile_for(self, score: float) -> int:
        for threshold, percentile in self._percentiles:
            if score >= threshold:
                return percentile
        return self._lowest_percentile


@lru_cache(maxsize=None)
def load_benchmarks(path: Optional[str] = None) -> BenchmarkTable:
    """
    Load the benchmark table once per process.

    Args:
        path: Path to a custom benchmarks JSON file, or None for defaults
    """
    if path and os.path.exists(path):
        with open(path, "r") as f:
            data = json.load(f)
        logger.info(f"Loaded benchmarks from {path}")
    else:
        if path:
            logger.warning(f"Benchmarks file not found: {path}, using defaults")
        data = DEFAULT_BENCHMARKS
    table = BenchmarkTable(data)
    logger.info(f"Benchmark table version {table.version} ({len(table.categories)} categories)")
    return table
