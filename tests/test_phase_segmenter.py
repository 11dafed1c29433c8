"""Tests for swing phase segmentation."""

import numpy as np
import pytest

from swing_core.config import SegmenterConfig
from swing_core.domain import PHASE_ORDER, SwingPhase
from swing_core.domain.trajectory import SwingTrajectory, TrackedPoint, TrajectoryPoint
from swing_core.services.phase_segmenter import PhaseSegmenter

from conftest import IMPACT_FRAME, TAKEAWAY_FRAME, TOP_FRAME, TOTAL_FRAMES, build_swing_trajectory


def assert_partition(segmentation, total):
    intervals = list(segmentation)
    assert [i.phase for i in intervals] == list(PHASE_ORDER)
    assert intervals[0].start_frame == 0
    assert intervals[-1].end_frame == total
    for before, after in zip(intervals, intervals[1:]):
        assert before.end_frame == after.start_frame
    assert all(i.length >= 0 for i in intervals)


def club_path(frames, ys, total):
    trajectory = SwingTrajectory(total_frames=total)
    for frame, y in zip(frames, ys):
        trajectory.append(
            TrackedPoint.CLUB_HEAD,
            TrajectoryPoint(x=0.5, y=float(y), z=0.0, timestamp=frame * 33, frame=frame),
        )
    return trajectory


def test_detects_top_and_impact_on_synthetic_swing(swing_trajectory):
    segmentation = PhaseSegmenter().segment(swing_trajectory)

    assert segmentation.method == "events"
    assert not segmentation.low_confidence
    assert_partition(segmentation, TOTAL_FRAMES)
    assert abs(segmentation.get(SwingPhase.TOP).start_frame - TOP_FRAME) <= 2
    assert abs(segmentation.get(SwingPhase.IMPACT).start_frame - IMPACT_FRAME) <= 3
    assert abs(segmentation.get(SwingPhase.BACKSWING).start_frame - TAKEAWAY_FRAME) <= 4


def test_every_phase_gets_a_frame(swing_trajectory):
    segmentation = PhaseSegmenter().segment(swing_trajectory)
    assert all(interval.length >= 1 for interval in segmentation)
    assert set(segmentation.key_frames) == set(PHASE_ORDER)


def test_gaps_do_not_break_detection():
    trajectory = build_swing_trajectory(absent={40, 41, 42, 66})
    segmentation = PhaseSegmenter().segment(trajectory)

    assert segmentation.method == "events"
    assert_partition(segmentation, TOTAL_FRAMES)
    assert abs(segmentation.get(SwingPhase.TOP).start_frame - TOP_FRAME) <= 2


def test_few_points_fall_back_to_proportional_split():
    trajectory = club_path(range(10, 15), [0.5, 0.4, 0.3, 0.4, 0.5], total=50)
    segmentation = PhaseSegmenter().segment(trajectory)

    assert segmentation.method == "proportional"
    assert segmentation.low_confidence
    assert_partition(segmentation, 50)
    # The split covers the frames that have detections
    assert segmentation.get(SwingPhase.BACKSWING).start_frame >= 10
    assert segmentation.get(SwingPhase.FOLLOW_THROUGH).start_frame <= 15


def test_flat_path_falls_back():
    trajectory = club_path(range(40), [0.6] * 40, total=40)
    segmentation = PhaseSegmenter().segment(trajectory)

    assert segmentation.method == "proportional"
    assert_partition(segmentation, 40)


def test_empty_trajectory_still_partitions():
    segmentation = PhaseSegmenter().segment(SwingTrajectory(total_frames=30))

    assert segmentation.low_confidence
    assert_partition(segmentation, 30)


@pytest.mark.parametrize("total", [0, 1, 3, 5])
def test_tiny_recordings_partition(total):
    trajectory = club_path(range(total), [0.5] * total, total=total)
    segmentation = PhaseSegmenter().segment(trajectory)

    assert_partition(segmentation, total)


@pytest.mark.parametrize("seed", range(8))
def test_random_paths_always_partition(seed):
    rng = np.random.default_rng(seed)
    total = int(rng.integers(6, 120))
    frames = sorted(int(f) for f in rng.choice(total, size=int(rng.integers(1, total + 1)), replace=False))
    ys = rng.uniform(0.0, 1.0, size=len(frames))
    trajectory = club_path(frames, ys, total)

    segmentation = PhaseSegmenter().segment(trajectory)

    assert_partition(segmentation, total)
    assert all(interval.length >= 1 for interval in segmentation)


def test_explicit_total_overrides_trajectory_total(swing_trajectory):
    segmentation = PhaseSegmenter().segment(swing_trajectory, total_frames=120)
    assert_partition(segmentation, 120)


def test_fallback_fractions_must_match_phases():
    with pytest.raises(ValueError):
        PhaseSegmenter(SegmenterConfig(fallback_fractions=(0.5, 0.5)))
