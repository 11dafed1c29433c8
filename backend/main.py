"""
SwingGrade Backend API

FastAPI application for golf swing analysis and grading.

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

API docs available at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_swing_analyzer
from api.routes import router as api_router
from api.websocket import websocket_endpoint
from swing_core import __version__
from swing_core.errors import SwingAnalysisError

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan (startup/shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup code before app starts accepting requests,
    and cleanup code when app shuts down.
    """
    # Startup
    logger.info("SwingGrade API starting up...")
    logger.info("API docs: http://localhost:8000/docs")
    logger.info("WebSocket: ws://localhost:8000/ws/analysis")

    # Test pose model availability
    analyzer = app.dependency_overrides.get(get_swing_analyzer, get_swing_analyzer)()
    detector = analyzer.detector_factory(analyzer.config.detector)
    try:
        await detector.initialize()
        logger.info("Pose engine initialized successfully")
    except SwingAnalysisError as e:
        logger.warning(f"Pose engine initialization warning: {e.message}")
    finally:
        await detector.shutdown()

    yield  # App runs here

    # Shutdown
    logger.info("SwingGrade API shutting down...")


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="SwingGrade API",
    description="""
    **Golf Swing Analysis and Grading**

    Pose-based biomechanics analysis for golf swings, graded against
    professional and amateur benchmarks.

    ## Features

    - **Pose Detection** with MediaPipe Pose Landmarker
    - **Swing Phases** (address, backswing, top, downswing, impact, follow-through)
    - **Swing Metrics** (tempo, rotation, plane, clubhead speed, balance, smoothness)
    - **Grading** with letter grades, percentile and recommendations

    ## Endpoints

    - `GET /api/health` - Health check
    - `POST /api/pose/detect` - Single image pose detection
    - `POST /api/analysis/frames` - Analysis of base64 frames
    - `POST /api/analysis/video` - Full video analysis
    - `GET /api/analysis/performance` - Recent analysis efficiency
    - `WS /ws/analysis` - Analysis with progress messages

    ## WebSocket Protocol

    Connect to `/ws/analysis` and send:
```json
    {
        "type": "ANALYZE_SWING",
        "data": {"frames": ["..."], "fps": 60, "club": "driver"}
    }
```
    Responses: `PROGRESS` (repeated), then `SWING_ANALYZED` or `ERROR`.
    Send `{"type": "CANCEL"}` to abandon a running analysis.
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# CORS Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # React dev server
        "http://localhost:5173",      # Vite dev server
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Routes
# =============================================================================

# Include REST API routes
app.include_router(api_router, prefix="/api")

# WebSocket endpoint
app.websocket("/ws/analysis")(websocket_endpoint)


# =============================================================================
# Root endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "name": "SwingGrade API",
        "version": __version__,
        "description": "Golf Swing Analysis and Grading",
        "docs": "/docs",
        "health": "/api/health",
        "websocket": "ws://localhost:8000/ws/analysis"
    }


# =============================================================================
# Run directly (for development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
