"""
Frame Correlator

Matches pose engine results to the detection requests that caused them.

The pose engine processes one image at a time and reports every result
through a single callback, in submission order, without telling us which
request the result belongs to. Ordering is therefore the only correlation
mechanism: every request enqueues a completion handler before submitting
its image, and each engine result resolves the oldest pending handler.
"""

import asyncio
import logging
import threading
from collections import deque
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _PendingResult(Generic[T]):
    """Completion handler for one submitted frame, bound to its event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self.future: asyncio.Future = loop.create_future()

    def complete(self, result: Optional[T]) -> None:
        """Resolve the handler. Safe to call from any thread."""
        try:
            self.loop.call_soon_threadsafe(self._set, result)
        except RuntimeError:
            # Event loop already closed - nobody is waiting any more
            logger.debug("Dropping pose result for a closed event loop")

    def _set(self, result: Optional[T]) -> None:
        if not self.future.done():
            self.future.set_result(result)


class FrameCorrelator(Generic[T]):
    """
    Bounded FIFO of completion handlers shared between submitters and
    the engine callback.

    Enqueue (on submit) and dequeue (on result) are guarded by one lock,
    because the engine reports results from its own thread while the next
    frame may already be submitted.

    Usage:
        correlator = FrameCorrelator(max_pending=32)
        engine.on_results(correlator.resolve)
        result = await correlator.submit(engine.send, image, timeout=5.0)
    """

    def __init__(self, max_pending: int = 32):
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self.max_pending = max_pending
        self._pending: deque[_PendingResult[T]] = deque()
        self._lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    async def submit(
        self,
        send: Callable[[Any], None],
        image: Any,
        timeout: Optional[float] = None,
    ) -> Optional[T]:
        """
        Submit one image and wait for its result.

        Args:
            send: Engine submission function (may raise synchronously)
            image: Image passed to `send`
            timeout: Seconds to wait for the result (None = no limit)

        Returns:
            The engine result, or None when the frame was rejected,
            failed to submit, or timed out
        """
        handler: _PendingResult[T] = _PendingResult(asyncio.get_running_loop())

        with self._lock:
            if len(self._pending) >= self.max_pending:
                logger.warning(
                    f"Detection queue full ({self.max_pending} pending), skipping frame"
                )
                return None
            self._pending.append(handler)

        try:
            send(image)
        except Exception as e:
            # The engine never accepted the image: withdraw our own handler
            logger.warning(f"Error sending frame to pose engine: {e}")
            with self._lock:
                try:
                    self._pending.remove(handler)
                except ValueError:
                    pass
            return None

        try:
            # Shielded: on timeout the handler stays queued so the late
            # result still consumes it and later frames stay aligned
            return await asyncio.wait_for(asyncio.shield(handler.future), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Pose detection timed out after {timeout}s, treating frame as absent")
            return None

    def resolve(self, result: Optional[T]) -> None:
        """
        Engine callback: resolve the oldest pending handler.

        Called from the engine's thread.
        """
        with self._lock:
            handler = self._pending.popleft() if self._pending else None

        if handler is None:
            logger.warning("Pose engine produced a result with no pending request")
            return
        handler.complete(result)

    def clear(self) -> None:
        """Resolve every outstanding handler as absent and empty the queue."""
        with self._lock:
            drained = list(self._pending)
            self._pending.clear()

        for handler in drained:
            handler.complete(None)
        if drained:
            logger.info(f"Cleared {len(drained)} pending detection requests")
