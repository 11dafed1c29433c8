"""
API Dependencies

Application-owned services shared by the REST routes and the WebSocket
endpoint. Override `get_swing_analyzer` in tests with
`app.dependency_overrides`.
"""

import logging
from functools import lru_cache

from swing_core.config import PipelineConfig
from swing_core.services import SwingAnalyzer

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def get_swing_analyzer() -> SwingAnalyzer:
    """
    The process-wide analyzer.

    It only holds stateless stages and the performance monitor; every
    analysis still creates its own pose detector.
    """
    logger.info("Creating swing analyzer")
    return SwingAnalyzer(PipelineConfig())
