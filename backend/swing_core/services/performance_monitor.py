"""
Performance Monitor

Owned, fixed-capacity record of completed analyses. The oldest sample
is dropped once the buffer is full.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

REPORT_WINDOW = 10


@dataclass(frozen=True)
class PerformanceSample:
    """
    Attributes:
        processing_time_ms: Wall-clock time of the whole analysis
        video_duration_s: Length of the analyzed recording
        frame_count: Frames analyzed
        pose_count: Frames with a detected pose
        analysis_score: Overall grade score, if the analysis succeeded
        timestamp: Unix time (ms) when the sample was recorded
    """
    processing_time_ms: float
    video_duration_s: float
    frame_count: int
    pose_count: int
    analysis_score: Optional[int] = None
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def efficiency(self) -> float:
        """Seconds of video analyzed per second of processing."""
        if self.processing_time_ms <= 0:
            return 0.0
        return self.video_duration_s / (self.processing_time_ms / 1000)


class PerformanceMonitor:
    """
    Usage:
        monitor = PerformanceMonitor(capacity=100)
        monitor.track(PerformanceSample(...))
        report = monitor.efficiency_report()
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._samples: deque[PerformanceSample] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._samples)

    def track(self, sample: PerformanceSample) -> None:
        with self._lock:
            self._samples.append(sample)
        logger.info(
            f"Analysis completed: {sample.video_duration_s:.2f}s of video in "
            f"{sample.processing_time_ms:.0f}ms (efficiency {sample.efficiency:.2f}x)"
        )

    def samples(self) -> list[PerformanceSample]:
        with self._lock:
            return list(self._samples)

    def efficiency_report(self, window: int = REPORT_WINDOW) -> Optional[dict]:
        """
        Averages over the most recent samples.

        Returns:
            Report dict, or None if nothing has been tracked yet
        """
        recent = self.samples()[-window:]
        if not recent:
            return None

        count = len(recent)
        return {
            "avgEfficiency": round(sum(s.efficiency for s in recent) / count, 2),
            "avgProcessingTimeMs": round(sum(s.processing_time_ms for s in recent) / count, 1),
            "avgDetectionRate": round(
                sum(s.pose_count / s.frame_count for s in recent if s.frame_count) / count, 3
            ),
            "sampleSize": count,
        }

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()
