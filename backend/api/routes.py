"""
REST API Routes

FastAPI routes for golf swing analysis.
Handles HTTP requests for pose detection and swing analysis.
"""

import os
import time
import logging
import tempfile
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form

from .dependencies import get_swing_analyzer
from .schemas import (
    PoseDetectionRequest,
    PoseDetectionResponse,
    PoseFrameSchema,
    LandmarkSchema,
    AnalyzeFramesRequest,
    SwingAnalysisResponse,
    GolfGradeSchema,
    MetricSchema,
    PhaseIntervalSchema,
    GolfClubEnum,
    SwingPhaseEnum,
    PerformanceResponse,
    HealthResponse,
)
from swing_core import __version__
from swing_core.domain import BodyPart, GolfClub, PoseFrame, PoseLandmark, SwingAnalysisResult
from swing_core.errors import InitializationError, InsufficientDataError, SwingAnalysisError
from swing_core.services import AnalysisInput, SwingAnalyzer, decode_base64_image

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint"
)
async def health_check(
    analyzer: SwingAnalyzer = Depends(get_swing_analyzer),
) -> HealthResponse:
    """
    Check if the API is running and the pose model loads.

    Returns:
        Health status and version information
    """
    engine_ok = False
    detector = analyzer.detector_factory(analyzer.config.detector)
    try:
        await detector.initialize()
        engine_ok = True
    except SwingAnalysisError as e:
        logger.warning(f"Pose engine not available: {e.message}")
    finally:
        await detector.shutdown()

    return HealthResponse(
        status="healthy",
        version=__version__,
        pose_engine_available=engine_ok,
        benchmark_version=analyzer.grading_engine.benchmarks.version,
    )


# =============================================================================
# Pose Detection
# =============================================================================

@router.post(
    "/pose/detect",
    response_model=PoseDetectionResponse,
    tags=["Pose Detection"],
    summary="Detect pose in a single image"
)
async def detect_pose(
    request: PoseDetectionRequest,
    analyzer: SwingAnalyzer = Depends(get_swing_analyzer),
) -> PoseDetectionResponse:
    """
    Detect human pose in a base64-encoded image.

    This endpoint is useful for:
    - Testing pose detection on single images
    - Checking camera framing before recording a swing

    For full swing analysis, use the analysis endpoints or the WebSocket.

    Args:
        request: Image data and optional metadata

    Returns:
        Detected pose with 33 landmarks, or null pose if nobody was found
    """
    start_time = time.time()

    image = decode_base64_image(request.image_base64)
    if image is None:
        return PoseDetectionResponse(
            success=False,
            pose=None,
            error="Could not decode image",
            processing_time_ms=(time.time() - start_time) * 1000
        )

    try:
        async with analyzer.detector_factory(analyzer.config.detector) as detector:
            pose_frame = await detector.detect(
                image,
                frame_number=request.frame_number,
                timestamp_ms=request.timestamp_ms,
            )
    except SwingAnalysisError as e:
        logger.error(f"Pose detection failed: {e.message}")
        raise _http_error(e)

    processing_time = (time.time() - start_time) * 1000

    return PoseDetectionResponse(
        success=True,
        pose=_convert_pose_frame(pose_frame) if pose_frame else None,
        error=None,
        processing_time_ms=processing_time
    )


# =============================================================================
# Swing Analysis
# =============================================================================

@router.post(
    "/analysis/frames",
    response_model=SwingAnalysisResponse,
    tags=["Swing Analysis"],
    summary="Analyze a golf swing from a sequence of frames"
)
async def analyze_frames(
    request: AnalyzeFramesRequest,
    analyzer: SwingAnalyzer = Depends(get_swing_analyzer),
) -> SwingAnalysisResponse:
    """
    Analyze a golf swing from base64-encoded frames.

    Frames must be in recording order; `fps` is the rate they were
    captured at.
    """
    analysis_input = AnalysisInput(
        frames=request.frames,
        fps=request.fps,
        club=GolfClub(request.club.value),
        swing_id=request.swing_id,
    )
    try:
        result = await analyzer.run(analysis_input)
    except SwingAnalysisError as e:
        logger.error(f"Frame analysis failed: {e.message}")
        raise _http_error(e)

    return _convert_result_to_response(result)


@router.post(
    "/analysis/video",
    response_model=SwingAnalysisResponse,
    tags=["Swing Analysis"],
    summary="Analyze a golf swing video"
)
async def analyze_video(
    video: UploadFile = File(..., description="Video file (MP4, MOV)"),
    club: GolfClubEnum = Form(GolfClubEnum.DRIVER, description="Golf club used"),
    frame_skip: int = Form(1, ge=1, le=10, description="Process every Nth frame"),
    analyzer: SwingAnalyzer = Depends(get_swing_analyzer),
) -> SwingAnalysisResponse:
    """
    Analyze a golf swing from an uploaded video file.

    The video will be:
    1. Saved temporarily
    2. Processed frame-by-frame with MediaPipe
    3. Split into swing phases and measured
    4. Graded against benchmarks

    Args:
        video: Video file upload
        club: Type of golf club being used
        frame_skip: Skip frames for faster processing (1 = all frames)

    Returns:
        Complete swing analysis with grade, metrics and phases
    """
    # Save uploaded file temporarily
    temp_path = None
    try:
        # Create temp file with correct extension
        suffix = os.path.splitext(video.filename or ".mp4")[1]
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as temp_file:
            temp_path = temp_file.name
            content = await video.read()
            temp_file.write(content)

        analysis_input = AnalysisInput(
            video_path=temp_path,
            club=GolfClub(club.value),
            frame_skip=frame_skip,
        )
        result = await analyzer.run(analysis_input)
        return _convert_result_to_response(result)

    except SwingAnalysisError as e:
        logger.error(f"Video analysis failed: {e.message}")
        raise _http_error(e)

    finally:
        # Clean up temp file
        if temp_path and os.path.exists(temp_path):
            os.unlink(temp_path)


@router.get(
    "/analysis/performance",
    response_model=PerformanceResponse,
    tags=["Swing Analysis"],
    summary="Efficiency of recent analyses"
)
async def performance_report(
    analyzer: SwingAnalyzer = Depends(get_swing_analyzer),
) -> PerformanceResponse:
    """Averages over the last 10 completed analyses."""
    report = analyzer.performance_monitor.efficiency_report()
    if report is None:
        return PerformanceResponse(sample_size=0)
    return PerformanceResponse.model_validate(report)


# =============================================================================
# Helper Functions
# =============================================================================

def _http_error(error: SwingAnalysisError) -> HTTPException:
    """Map a pipeline error to an HTTP status."""
    if isinstance(error, InsufficientDataError):
        status_code = 422
    elif isinstance(error, InitializationError):
        status_code = 503
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=error.to_dict())


def _convert_landmark(lm: PoseLandmark, index: int) -> LandmarkSchema:
    try:
        body_part = BodyPart(index).name
    except ValueError:
        body_part = None
    return LandmarkSchema(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility, body_part=body_part)


def _convert_pose_frame(pose_frame: PoseFrame) -> PoseFrameSchema:
    """Convert a domain PoseFrame to the API schema."""
    return PoseFrameSchema(
        landmarks=[_convert_landmark(lm, i) for i, lm in enumerate(pose_frame.landmarks)],
        world_landmarks=[_convert_landmark(lm, i) for i, lm in enumerate(pose_frame.world_landmarks)],
        timestamp_ms=pose_frame.timestamp_ms,
        frame_number=pose_frame.frame_number,
        confidence=min(1.0, max(0.0, pose_frame.confidence)),
    )


def _convert_result_to_response(result: SwingAnalysisResult) -> SwingAnalysisResponse:
    """Convert domain SwingAnalysisResult to API response schema."""
    metrics = {
        name: MetricSchema(
            value=metric.value,
            unit=metric.unit,
            low_confidence=metric.low_confidence,
            insufficient=metric.insufficient,
            reason=metric.reason,
        )
        for name, metric in result.metrics.items()
    }

    phases = [
        PhaseIntervalSchema(
            phase=SwingPhaseEnum(interval.phase.value),
            start_frame=interval.start_frame,
            end_frame=interval.end_frame,
        )
        for interval in result.segmentation
    ]

    return SwingAnalysisResponse(
        id=result.swing_id or "",
        timestamp=datetime.now(),
        video_duration_ms=int(result.detection.total_frames / result.fps * 1000),
        total_frames=result.detection.total_frames,
        detected_frames=result.detection.detected_frames,
        missing_frames=list(result.detection.missing_frames),
        fps=result.fps,
        processing_time_ms=result.processing_time_ms,
        club=GolfClubEnum(result.club.value),
        grade=GolfGradeSchema.model_validate(result.grade.to_dict()),
        metrics=metrics,
        phases=phases,
        phase_method=result.segmentation.method,
        key_frames={k.value: v for k, v in result.segmentation.key_frames.items()},
    )
