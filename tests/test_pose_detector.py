"""Tests for the PoseDetector landmark source over a scripted engine."""

import asyncio
import time

import pytest

from swing_core.config import DetectorConfig
from swing_core.errors import InitializationError
from swing_core.services.pose_detector import MediaPipePoseEngine, PoseDetector

from conftest import FakePoseEngine, frame_image, swing_script


async def longest_stall_during(coro, tick=0.01):
    """Run a coroutine next to a ticker and return the longest gap between ticks."""
    ticks = []

    async def ticker():
        while True:
            ticks.append(time.monotonic())
            await asyncio.sleep(tick)

    ticking = asyncio.create_task(ticker())
    await asyncio.sleep(tick * 2)
    try:
        result = await coro
    finally:
        ticks.append(time.monotonic())
        ticking.cancel()
    return result, max(b - a for a, b in zip(ticks, ticks[1:]))


def make_detector(absent=(), fail_on=(), visibility=0.9, **config_kwargs):
    engines = []

    def factory(config):
        engine = FakePoseEngine(swing_script(absent, visibility), fail_on=fail_on)
        engines.append(engine)
        return engine

    return PoseDetector(DetectorConfig(**config_kwargs), engine_factory=factory), engines


def test_detect_initializes_lazily_once():
    detector, engines = make_detector()

    async def run():
        async with detector:
            first = await detector.detect(frame_image(3), frame_number=3, timestamp_ms=100)
            await detector.initialize()
            second = await detector.detect(frame_image(4), frame_number=4)
        return first, second

    first, second = asyncio.run(run())
    assert len(engines) == 1
    assert first.frame_number == 3
    assert first.timestamp_ms == 100
    assert len(first.landmarks) == 33
    assert second.frame_number == 4
    assert engines[0].closed


def test_no_person_is_absence():
    detector, _ = make_detector(absent={5})

    async def run():
        async with detector:
            return await detector.detect(frame_image(5), frame_number=5)

    assert asyncio.run(run()) is None


def test_low_visibility_is_absence():
    detector, _ = make_detector(visibility=0.2, visibility_floor=0.5)

    async def run():
        async with detector:
            return await detector.detect(frame_image(1))

    assert asyncio.run(run()) is None


def test_missing_visibility_counts_as_visible():
    detector, _ = make_detector(visibility=None)

    async def run():
        async with detector:
            return await detector.detect(frame_image(1))

    frame = asyncio.run(run())
    assert frame is not None
    assert frame.confidence == 1.0


def test_submission_failure_is_absence():
    detector, engines = make_detector(fail_on={7})

    async def run():
        async with detector:
            rejected = await detector.detect(frame_image(7), frame_number=7)
            accepted = await detector.detect(frame_image(8), frame_number=8)
        return rejected, accepted

    rejected, accepted = asyncio.run(run())
    assert rejected is None
    assert accepted.frame_number == 8
    assert engines[0].sent == [8]


def test_initialization_error_propagates():
    def factory(config):
        raise InitializationError("model missing")

    detector = PoseDetector(DetectorConfig(), engine_factory=factory)
    with pytest.raises(InitializationError, match="model missing"):
        asyncio.run(detector.detect(frame_image(0)))
    assert not detector.is_initialized


def test_unexpected_engine_failure_becomes_initialization_error():
    def factory(config):
        raise OSError("disk on fire")

    detector = PoseDetector(DetectorConfig(), engine_factory=factory)
    with pytest.raises(InitializationError, match="disk on fire"):
        asyncio.run(detector.initialize())


def test_mediapipe_engine_reports_missing_model(tmp_path):
    pytest.importorskip("mediapipe")
    config = DetectorConfig(model_asset_path=str(tmp_path / "missing.task"))
    with pytest.raises(InitializationError, match="not found"):
        MediaPipePoseEngine(config)


def test_shutdown_does_not_block_event_loop():
    engines = []

    def factory(config):
        # Frame 9 hangs well past the timeout; closing waits for it
        engine = FakePoseEngine(swing_script(), delays={9: 0.6})
        engines.append(engine)
        return engine

    detector = PoseDetector(DetectorConfig(frame_timeout_s=0.1), engine_factory=factory)

    async def run():
        assert await detector.detect(frame_image(9), frame_number=9) is None
        _, stall = await longest_stall_during(detector.shutdown())
        return stall

    stall = asyncio.run(run())
    assert engines[0].closed
    assert not detector.is_initialized
    assert stall < 0.25


def test_detect_without_engine_raises_initialization_error():
    detector, engines = make_detector()

    async def skip_initialize():
        return None

    detector.initialize = skip_initialize
    with pytest.raises(InitializationError, match="shut down"):
        asyncio.run(detector.detect(frame_image(0)))
    assert engines == []
