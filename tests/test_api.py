"""Tests for the REST routes and the analysis WebSocket."""

import base64

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_swing_analyzer
from main import app
from swing_core.errors import InitializationError

from conftest import TOTAL_FRAMES, frame_image


def encode(image):
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return base64.b64encode(buffer.tobytes()).decode("ascii")


@pytest.fixture(scope="module")
def encoded_frames():
    return [encode(frame_image(i)) for i in range(TOTAL_FRAMES)]


@pytest.fixture
def api(make_analyzer):
    """Build a TestClient whose analyzer runs over a scripted engine."""

    def build(**recorder_kwargs):
        analyzer, recorder = make_analyzer(**recorder_kwargs)
        app.dependency_overrides[get_swing_analyzer] = lambda: analyzer
        return TestClient(app), analyzer, recorder

    yield build
    app.dependency_overrides.clear()


def receive_until_terminal(websocket):
    messages = []
    while True:
        message = websocket.receive_json()
        messages.append(message)
        if message["type"] in ("SWING_ANALYZED", "ERROR"):
            return messages


# =============================================================================
# REST
# =============================================================================

def test_root(api):
    client, _, _ = api()
    data = client.get("/").json()
    assert data["name"] == "SwingGrade API"
    assert data["health"] == "/api/health"


def test_health(api):
    client, _, recorder = api()

    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["pose_engine_available"] is True
    assert data["benchmark_version"]
    assert recorder.engines[0].closed


def test_health_without_pose_model(api):
    client, _, _ = api(init_error=InitializationError("model missing"))

    data = client.get("/api/health").json()

    assert data["status"] == "healthy"
    assert data["pose_engine_available"] is False


def test_lifespan_probes_the_engine(api):
    _, _, recorder = api()
    with TestClient(app) as client:
        assert client.get("/").status_code == 200
    assert len(recorder.engines) == 1
    assert recorder.engines[0].closed


def test_detect_pose(api):
    client, _, _ = api()

    response = client.post("/api/pose/detect", json={
        "image_base64": encode(frame_image(12)),
        "frame_number": 12,
        "timestamp_ms": 400,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    pose = data["pose"]
    assert len(pose["landmarks"]) == 33
    assert pose["landmarks"][11]["body_part"] == "LEFT_SHOULDER"
    assert pose["landmarks"][1]["body_part"] is None
    assert pose["frame_number"] == 12
    assert pose["timestamp_ms"] == 400
    assert pose["confidence"] == pytest.approx(0.9)


def test_detect_pose_accepts_data_url(api):
    client, _, _ = api()

    response = client.post("/api/pose/detect", json={
        "image_base64": "data:image/png;base64," + encode(frame_image(3)),
    })

    assert response.json()["success"] is True


def test_detect_pose_nobody_in_frame(api):
    client, _, _ = api(absent={7})

    data = client.post("/api/pose/detect", json={"image_base64": encode(frame_image(7))}).json()

    assert data["success"] is True
    assert data["pose"] is None


def test_detect_pose_bad_image(api):
    client, _, recorder = api()

    data = client.post("/api/pose/detect", json={"image_base64": "bm90IGFuIGltYWdl"}).json()

    assert data["success"] is False
    assert data["error"] == "Could not decode image"
    assert recorder.engines == []


def test_detect_pose_without_model(api):
    client, _, _ = api(init_error=InitializationError("model missing"))

    response = client.post("/api/pose/detect", json={"image_base64": encode(frame_image(1))})

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "initialization_failed"


def test_analyze_frames(api, encoded_frames):
    client, _, _ = api(absent={40, 41, 42})

    response = client.post("/api/analysis/frames", json={
        "frames": encoded_frames,
        "fps": 30,
        "club": "iron_7",
        "swing_id": "swing-001",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "swing-001"
    assert data["club"] == "iron_7"
    assert data["total_frames"] == TOTAL_FRAMES
    assert data["detected_frames"] == TOTAL_FRAMES - 3
    assert data["missing_frames"] == [40, 41, 42]
    assert data["video_duration_ms"] == 3333
    assert data["phase_method"] == "events"

    phases = data["phases"]
    assert [p["phase"] for p in phases] == [
        "address", "backswing", "top", "downswing", "impact", "follow_through",
    ]
    assert phases[0]["start_frame"] == 0
    assert phases[-1]["end_frame"] == TOTAL_FRAMES

    grade = data["grade"]
    assert set(grade["comparison"]) == {"vsProfessional", "vsAmateur", "percentile"}
    assert set(grade["recommendations"]) == {"immediate", "shortTerm", "longTerm"}
    assert grade["benchmarkVersion"]
    assert grade["categories"]["power"]["benchmark"]["professional"] == 90.0
    assert "lowConfidence" in grade["categories"]["tempo"]

    assert set(data["metrics"]) >= {"tempo_ratio", "shoulder_turn", "clubhead_speed"}


def test_analyze_no_frames(api):
    client, _, _ = api()

    response = client.post("/api/analysis/frames", json={"frames": []})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "insufficient_data"


def test_analyze_rejects_bad_fps(api, encoded_frames):
    client, _, _ = api()

    response = client.post("/api/analysis/frames", json={"frames": encoded_frames[:3], "fps": 0})

    assert response.status_code == 422


def test_analyze_video(api, tmp_path):
    path = tmp_path / "swing.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 30.0, (64, 64))
    if not writer.isOpened():
        pytest.skip("No MJPG video writer available")
    for i in range(20):
        writer.write(np.full((64, 64, 3), i, dtype=np.uint8))
    writer.release()
    client, _, _ = api()

    with open(path, "rb") as f:
        response = client.post(
            "/api/analysis/video",
            files={"video": ("swing.avi", f, "video/x-msvideo")},
            data={"club": "driver", "frame_skip": "2"},
        )

    assert response.status_code == 200
    assert response.json()["total_frames"] == 10


def test_performance_report(api, encoded_frames):
    client, _, _ = api()

    assert client.get("/api/analysis/performance").json()["sampleSize"] == 0

    client.post("/api/analysis/frames", json={"frames": encoded_frames})
    data = client.get("/api/analysis/performance").json()

    assert data["sampleSize"] == 1
    assert data["avgDetectionRate"] == 1.0
    assert data["avgProcessingTimeMs"] >= 0


# =============================================================================
# WebSocket
# =============================================================================

def test_websocket_analysis(api, encoded_frames):
    client, _, recorder = api()

    with client.websocket_connect("/ws/analysis") as websocket:
        websocket.send_json({
            "type": "ANALYZE_SWING",
            "data": {"frames": encoded_frames, "fps": 60, "club": "driver"},
        })
        messages = receive_until_terminal(websocket)

    assert messages[0]["type"] == "PROGRESS"
    assert messages[0]["data"]["progress"] == 0.0
    assert all(m["type"] == "PROGRESS" for m in messages[:-1])
    assert all("timestamp" in m for m in messages)

    final = messages[-1]
    assert final["type"] == "SWING_ANALYZED"
    assert {"overall", "categories", "comparison", "recommendations"} <= set(final["data"])

    fractions = [m["data"]["progress"] for m in messages[:-1]]
    assert fractions == sorted(fractions)
    assert fractions[-1] == 1.0
    assert recorder.engines[0].closed


def test_websocket_initialization_failure(api, encoded_frames):
    client, _, _ = api(init_error=InitializationError("model missing"))

    with client.websocket_connect("/ws/analysis") as websocket:
        websocket.send_json({"type": "ANALYZE_SWING", "data": {"frames": encoded_frames[:5]}})
        messages = receive_until_terminal(websocket)

    assert [m["type"] for m in messages] == ["PROGRESS", "ERROR"]
    assert messages[1]["data"]["code"] == "initialization_failed"


def test_websocket_no_frames(api):
    client, _, _ = api()

    with client.websocket_connect("/ws/analysis") as websocket:
        websocket.send_json({"type": "ANALYZE_SWING", "data": {"frames": []}})
        messages = receive_until_terminal(websocket)

    assert len(messages) == 1
    assert messages[-1]["data"]["code"] == "insufficient_data"


def test_websocket_rejects_invalid_messages(api):
    client, _, _ = api()

    with client.websocket_connect("/ws/analysis") as websocket:
        websocket.send_json({"type": "PING"})
        unknown = websocket.receive_json()

        websocket.send_json({"type": "ANALYZE_SWING", "data": {"fps": 30}})
        invalid = websocket.receive_json()

        websocket.send_text("{not json")
        garbled = websocket.receive_json()

        websocket.send_json({"type": "CANCEL"})
        idle_cancel = websocket.receive_json()

    for message in (unknown, invalid, garbled, idle_cancel):
        assert message["type"] == "ERROR"
        assert message["data"]["code"] == "invalid_message"
    assert "PING" in unknown["data"]["error"]
    assert idle_cancel["data"]["error"] == "No analysis in progress"
