"""
WebSocket Handler

Swing analysis via WebSocket connection.
The frontend sends one ANALYZE_SWING message per swing and receives
PROGRESS updates followed by exactly one SWING_ANALYZED or ERROR.
"""

import json
import time
import logging
import asyncio
from typing import Optional
from fastapi import Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .dependencies import get_swing_analyzer
from .schemas import AnalyzeFramesRequest
from swing_core.domain import AnalysisMessage, GolfClub, MessageType
from swing_core.services import AnalysisInput, AnalysisTask, SwingAnalyzer

# Configure logging
logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections.

    Each connection runs at most one analysis at a time; the analysis
    owns its own pose detector.
    """

    def __init__(self):
        self.active_connections: list[WebSocket] = []
        self.analysis_tasks: dict[WebSocket, AnalysisTask] = {}

    async def connect(self, websocket: WebSocket) -> None:
        """Accept new WebSocket connection."""
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"New WebSocket connection. Total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket) -> None:
        """Handle WebSocket disconnection."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

        # Abandon any running analysis
        task = self.analysis_tasks.pop(websocket, None)
        if task is not None:
            task.cancel()

        logger.info(f"WebSocket disconnected. Remaining: {len(self.active_connections)}")

    def get_task(self, websocket: WebSocket) -> Optional[AnalysisTask]:
        """Get the running analysis for a connection."""
        task = self.analysis_tasks.get(websocket)
        if task is not None and task.done:
            return None
        return task

    async def send_json(self, websocket: WebSocket, data: dict) -> None:
        """Send JSON data to a specific connection."""
        try:
            await websocket.send_json(data)
        except Exception as e:
            logger.error(f"Failed to send WebSocket message: {e}")

    async def send_message(self, websocket: WebSocket, message: AnalysisMessage) -> None:
        await self.send_json(websocket, {
            **message.to_dict(),
            "timestamp": int(time.time() * 1000)
        })


# Global connection manager
manager = ConnectionManager()


async def websocket_endpoint(
    websocket: WebSocket,
    analyzer: SwingAnalyzer = Depends(get_swing_analyzer),
) -> None:
    """
    WebSocket endpoint for swing analysis.

    Protocol:
    1. Client connects
    2. Client sends ANALYZE_SWING with base64 frames
    3. Server streams PROGRESS, then SWING_ANALYZED or ERROR
    4. Client may send CANCEL while an analysis runs

    Message format (client -> server):
    {
        "type": "ANALYZE_SWING",
        "data": {
            "frames": ["...", "..."],
            "fps": 60,
            "club": "driver"
        },
        "timestamp": 1704067200000
    }

    Message format (server -> client):
    {
        "type": "PROGRESS",
        "data": {"step": "Detecting poses (10/120)...", "progress": 0.1},
        "timestamp": 1704067200025
    }
    """
    await manager.connect(websocket)
    forwarders: set[asyncio.Task] = set()

    try:
        # Main message loop
        while True:
            try:
                # Receive message from client
                data = await websocket.receive_json()
            except json.JSONDecodeError:
                await manager.send_message(websocket, AnalysisMessage.error("Invalid JSON", code="invalid_message"))
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == MessageType.ANALYZE_SWING.value:
                task = await handle_analyze(websocket, data, analyzer)
                if task is not None:
                    forwarder = asyncio.create_task(forward_messages(websocket, task))
                    forwarders.add(forwarder)
                    forwarder.add_done_callback(forwarders.discard)

            elif msg_type == MessageType.CANCEL.value:
                task = manager.get_task(websocket)
                if task is not None:
                    task.cancel()
                else:
                    await manager.send_message(
                        websocket,
                        AnalysisMessage.error("No analysis in progress", code="invalid_message"),
                    )

            else:
                await manager.send_message(
                    websocket,
                    AnalysisMessage.error(f"Unknown message type: {msg_type}", code="invalid_message"),
                )

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        manager.disconnect(websocket)
        for forwarder in list(forwarders):
            forwarder.cancel()


async def handle_analyze(
    websocket: WebSocket,
    message: dict,
    analyzer: SwingAnalyzer,
) -> Optional[AnalysisTask]:
    """
    Validate an ANALYZE_SWING message and start the analysis.

    Returns:
        The started task, or None if the request was rejected
    """
    if manager.get_task(websocket) is not None:
        await manager.send_message(
            websocket,
            AnalysisMessage.error("An analysis is already running", code="busy"),
        )
        return None

    try:
        request = AnalyzeFramesRequest.model_validate(message.get("data") or {})
    except ValidationError as e:
        await manager.send_message(
            websocket,
            AnalysisMessage.error(f"Invalid ANALYZE_SWING data: {e.errors()[0]['msg']}", code="invalid_message"),
        )
        return None

    analysis_input = AnalysisInput(
        frames=request.frames,
        fps=request.fps,
        club=GolfClub(request.club.value),
        swing_id=request.swing_id,
    )
    task = AnalysisTask(analyzer, analysis_input).start()
    manager.analysis_tasks[websocket] = task
    logger.info(f"Started analysis of {len(request.frames)} frames")
    return task


async def forward_messages(websocket: WebSocket, task: AnalysisTask) -> None:
    """Relay every message of one analysis to the client."""
    async for message in task.messages():
        await manager.send_message(websocket, message)
    if manager.analysis_tasks.get(websocket) is task:
        del manager.analysis_tasks[websocket]
