"""
SwingGrade API Module

FastAPI routes and WebSocket handlers for golf swing analysis.
"""

from .routes import router
from .websocket import websocket_endpoint, manager
from .dependencies import get_swing_analyzer

__all__ = [
    "router",
    "websocket_endpoint",
    "manager",
    "get_swing_analyzer",
]
