"""
Pipeline Configuration

Tunable parameters for every stage of the swing analysis pipeline.
Defaults are sensible for 30-60 fps phone recordings of a single golfer.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple

# MediaPipe Pose Landmarker model (download from
# https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_full/float16/latest/pose_landmarker_full.task)
DEFAULT_MODEL_PATH = os.environ.get(
    "SWING_POSE_MODEL_PATH", "models/pose_landmarker_full.task"
)


@dataclass
class DetectorConfig:
    """
    Pose detector options.

    Attributes:
        model_asset_path: Path to the .task model bundle
        min_detection_confidence: Minimum confidence for person detection
        min_presence_confidence: Minimum confidence that a pose is present
        min_tracking_confidence: Minimum confidence for landmark tracking
        visibility_floor: Mean landmark visibility below which a frame counts as absent
        frame_timeout_s: Upper bound for a single detection (None = unbounded)
        max_pending: Maximum number of in-flight detection requests
    """
    model_asset_path: str = DEFAULT_MODEL_PATH
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    visibility_floor: float = 0.5
    frame_timeout_s: float = 5.0
    max_pending: int = 32


@dataclass
class SegmenterConfig:
    """Thresholds for swing phase detection."""
    smoothing_window: int = 5
    velocity_threshold: float = 0.002       # normalized units per frame
    velocity_peak_fraction: float = 0.15    # of peak speed
    min_points: int = 8
    min_reversal_amplitude: float = 0.05    # normalized image height
    impact_window: int = 2                  # frames
    # address, backswing, top, downswing, impact, follow_through
    fallback_fractions: Tuple[float, ...] = (0.10, 0.35, 0.05, 0.15, 0.05, 0.30)


@dataclass
class MetricsConfig:
    """Metric computation parameters."""
    min_phase_points: int = 3
    unit_meters: float = 2.0          # real-world size of one normalized unit
    club_lever_ratio: float = 3.5     # clubhead speed / hand speed


@dataclass
class PipelineConfig:
    """Top-level configuration passed to the SwingAnalyzer."""
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    segmenter: SegmenterConfig = field(default_factory=SegmenterConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    performance_capacity: int = 100
    progress_every_frames: int = 5
