"""Tests for swing metric computation."""

import pytest

from swing_core.domain import PHASE_ORDER, PhaseInterval, PhaseSegmentation
from swing_core.domain.trajectory import SwingTrajectory, TrackedPoint, TrajectoryPoint
from swing_core.services.metrics_engine import MetricsEngine
from swing_core.services.phase_segmenter import PhaseSegmenter

from conftest import TOTAL_FRAMES, build_swing_trajectory


def segmentation_from(bounds, low_confidence=False):
    """Segmentation from the seven phase boundaries [0, ..., total]."""
    intervals = tuple(
        PhaseInterval(phase, bounds[i], bounds[i + 1]) for i, phase in enumerate(PHASE_ORDER)
    )
    return PhaseSegmentation(
        intervals=intervals,
        total_frames=bounds[-1],
        method="proportional" if low_confidence else "events",
        low_confidence=low_confidence,
    )


# Boundaries of the synthetic swing in conftest
SWING_BOUNDS = [0, 20, 60, 61, 75, 77, TOTAL_FRAMES]


@pytest.fixture
def swing_metrics(swing_trajectory):
    return MetricsEngine().compute(swing_trajectory, segmentation_from(SWING_BOUNDS), fps=30)


def test_tempo_ratio_from_phase_lengths(swing_metrics):
    # backswing 40 frames, top + downswing 15 frames
    assert swing_metrics.tempo_ratio.value == pytest.approx(40 / 15)
    assert swing_metrics.tempo_ratio.unit == "ratio"
    assert not swing_metrics.tempo_ratio.low_confidence


def test_shoulder_and_hip_turn(swing_metrics):
    assert swing_metrics.shoulder_turn.value == pytest.approx(90.0, abs=1.0)
    assert swing_metrics.hip_turn.value == pytest.approx(45.0, abs=1.0)
    assert swing_metrics.x_factor.value == pytest.approx(45.0, abs=2.0)


def test_still_hips_give_full_balance(swing_metrics):
    assert swing_metrics.balance_stability.value == pytest.approx(1.0)


def test_ratios_stay_in_unit_range(swing_metrics):
    for name in ("plane_consistency", "balance_stability", "path_smoothness"):
        value = swing_metrics.get(name).value
        assert value is not None
        assert 0.0 <= value <= 1.0, name


def test_arc_swing_is_on_plane(swing_metrics):
    # The synthetic clubhead stays in the z = 0 plane
    assert swing_metrics.plane_consistency.value == pytest.approx(1.0, abs=1e-6)


def test_clubhead_speed_scales_with_fps(swing_trajectory):
    segmentation = segmentation_from(SWING_BOUNDS)
    slow = MetricsEngine().compute(swing_trajectory, segmentation, fps=30)
    fast = MetricsEngine().compute(swing_trajectory, segmentation, fps=60)

    assert slow.clubhead_speed.value > 0
    assert fast.clubhead_speed.value == pytest.approx(2 * slow.clubhead_speed.value)


def hands_at_constant_speed(total=30, step=0.01, absent=()):
    """Both wrists sliding right at a constant speed, 0.01 apart."""
    trajectory = SwingTrajectory(total_frames=total)
    for frame in range(total):
        if frame in absent:
            continue
        for tracked, offset in ((TrackedPoint.LEFT_WRIST, -0.005), (TrackedPoint.RIGHT_WRIST, 0.005)):
            trajectory.append(tracked, TrajectoryPoint(
                x=0.2 + offset + step * frame, y=0.5, z=0.0, timestamp=frame * 33, frame=frame,
            ))
    return trajectory


def test_clubhead_speed_from_hand_speed_across_gap():
    trajectory = hands_at_constant_speed(absent={15, 16})
    metrics = MetricsEngine().compute(trajectory, segmentation_from([0, 5, 12, 13, 22, 24, 30]), fps=30)

    # 0.3 units/s of hand travel, 2 m per unit, lever ratio 3.5
    assert metrics.clubhead_speed.value == pytest.approx(0.3 * 2.0 * 3.5 * 2.23694)


def test_constant_speed_hands_are_perfectly_smooth():
    trajectory = hands_at_constant_speed(absent={15, 16})
    metrics = MetricsEngine().compute(trajectory, segmentation_from([0, 5, 12, 13, 22, 24, 30]), fps=30)

    assert metrics.path_smoothness.value == 1.0


def test_detected_phases_feed_metrics(swing_trajectory):
    segmentation = PhaseSegmenter().segment(swing_trajectory)
    metrics = MetricsEngine().compute(swing_trajectory, segmentation, fps=30)

    assert 2.0 < metrics.tempo_ratio.value < 3.5
    assert 70.0 < metrics.shoulder_turn.value <= 90.5
    assert all(not value.insufficient for _, value in metrics.items())


def test_fallback_segmentation_marks_metrics_low_confidence(swing_trajectory):
    segmentation = segmentation_from(SWING_BOUNDS, low_confidence=True)
    metrics = MetricsEngine().compute(swing_trajectory, segmentation, fps=30)

    assert metrics.tempo_ratio.low_confidence
    assert metrics.tempo_ratio.reason
    assert metrics.tempo_ratio.value == pytest.approx(40 / 15)


def test_empty_trajectory_is_insufficient_not_an_error():
    trajectory = SwingTrajectory(total_frames=30)
    segmentation = PhaseSegmenter().segment(trajectory)

    metrics = MetricsEngine().compute(trajectory, segmentation, fps=30)

    for name in ("shoulder_turn", "hip_turn", "x_factor", "plane_consistency",
                 "clubhead_speed", "balance_stability", "path_smoothness"):
        value = metrics.get(name)
        assert value.insufficient, name
        assert value.value is None
        assert value.reason


def test_empty_phase_makes_tempo_insufficient(swing_trajectory):
    segmentation = segmentation_from([0, 20, 20, 61, 75, 77, TOTAL_FRAMES])
    metrics = MetricsEngine().compute(swing_trajectory, segmentation, fps=30)

    assert metrics.tempo_ratio.insufficient


def test_gap_at_the_top_uses_nearby_frame():
    trajectory = build_swing_trajectory(absent={60})
    metrics = MetricsEngine().compute(trajectory, segmentation_from(SWING_BOUNDS), fps=30)

    assert metrics.shoulder_turn.value == pytest.approx(90.0, abs=6.0)


def test_compute_is_pure(swing_trajectory):
    segmentation = segmentation_from(SWING_BOUNDS)
    engine = MetricsEngine()
    assert engine.compute(swing_trajectory, segmentation) == engine.compute(swing_trajectory, segmentation)


def test_fps_must_be_positive(swing_trajectory):
    with pytest.raises(ValueError):
        MetricsEngine().compute(swing_trajectory, segmentation_from(SWING_BOUNDS), fps=0)
