"""
Analysis Task

Runs one swing analysis in the background and reports back only through
messages on a channel:

    PROGRESS (zero or more, non-decreasing), then exactly one of
    SWING_ANALYZED or ERROR

Errors never escape the task; they become the ERROR message.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, AsyncIterator, Optional

from ..domain.messages import AnalysisMessage
from ..errors import AnalysisCancelledError, SwingAnalysisError

if TYPE_CHECKING:
    from .frame_source import AnalysisInput
    from .swing_analyzer import SwingAnalyzer

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Cooperative cancellation flag, checked between frames and between stages.
    """

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise AnalysisCancelledError()


class AnalysisTask:
    """
    A cancellable analysis that resolves exactly once.

    Usage:
        task = AnalysisTask(analyzer, analysis_input).start()
        async for message in task.messages():
            await websocket.send_json(message.to_dict())

        # From elsewhere:
        task.cancel()

    Attributes:
        channel: Queue receiving every message the task emits
    """

    def __init__(
        self,
        analyzer: "SwingAnalyzer",
        analysis_input: "AnalysisInput",
        channel: Optional[asyncio.Queue] = None,
    ):
        self.analyzer = analyzer
        self.analysis_input = analysis_input
        self.channel: asyncio.Queue = channel if channel is not None else asyncio.Queue()
        self.token = CancellationToken()
        self._task: Optional[asyncio.Task] = None
        self._last_progress = 0.0
        self._result: Optional[AnalysisMessage] = None

    @property
    def done(self) -> bool:
        return self._result is not None

    def start(self) -> "AnalysisTask":
        if self._task is not None:
            raise RuntimeError("Analysis task already started")
        self._task = asyncio.create_task(self._run())
        return self

    def cancel(self) -> None:
        """Request cancellation. The task ends with an ERROR (code "cancelled")."""
        if not self.done:
            logger.info("Analysis cancellation requested")
        self.token.cancel()

    async def wait(self) -> AnalysisMessage:
        """Wait for the terminal message."""
        if self._task is None:
            raise RuntimeError("Analysis task not started")
        return await self._task

    async def messages(self) -> AsyncIterator[AnalysisMessage]:
        """Yield every message up to and including the terminal one."""
        while True:
            message = await self.channel.get()
            yield message
            if message.is_terminal:
                return

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    async def _run(self) -> AnalysisMessage:
        try:
            grade = await self.analyzer.analyze(
                self.analysis_input,
                progress=self._on_progress,
                cancel_token=self.token,
            )
            message = AnalysisMessage.analyzed(grade.to_dict())
        except AnalysisCancelledError as e:
            logger.info("Analysis cancelled")
            message = AnalysisMessage.error(**e.to_dict())
        except SwingAnalysisError as e:
            logger.error(f"Analysis failed ({e.code}): {e.message}")
            message = AnalysisMessage.error(**e.to_dict())
        except Exception as e:
            logger.exception("Unexpected analysis failure")
            message = AnalysisMessage.error(f"Analysis failed: {e}")

        self._result = message
        self.channel.put_nowait(message)
        return message

    def _on_progress(self, step: str, fraction: float) -> None:
        if self.done:
            return
        # Never report progress going backwards
        fraction = max(self._last_progress, min(1.0, max(0.0, fraction)))
        self._last_progress = fraction
        self.channel.put_nowait(AnalysisMessage.progress(step, fraction))
