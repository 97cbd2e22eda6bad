"""
Single-consumer event process.

Webhooks only enqueue events; one task takes them off the queue and hands them
to the dispatcher one at a time.
"""

import asyncio

from borsbot.core.logging import get_logger
from borsbot.handlers.dispatcher import handle_bors_event
from borsbot.models.events import BorsEvent
from borsbot.state.registry import BorsState

logger = get_logger(__name__)


class BorsProcess:
    """Serializes event handling over a shared state."""

    def __init__(self, state: BorsState, max_queue_size: int = 0):
        self._state = state
        self._queue: asyncio.Queue[BorsEvent] = asyncio.Queue(max_queue_size)
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> int:
        """Number of events waiting to be handled."""
        return self._queue.qsize()

    def submit(self, event: BorsEvent) -> None:
        """
        Enqueue an event for handling.

        Raises:
            asyncio.QueueFull: If the queue is bounded and full
        """
        self._queue.put_nowait(event)

    async def run(self) -> None:
        """Handle events forever."""
        logger.info("Bors process started")
        while True:
            event = await self._queue.get()
            try:
                await handle_bors_event(event, self._state)
            except Exception:
                logger.exception(f"Unexpected error while handling {type(event).__name__}")
            finally:
                self._queue.task_done()

    def start(self) -> asyncio.Task:
        """Run the process in a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="bors-process")
        return self._task

    async def join(self) -> None:
        """Wait until every submitted event has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the background task."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Bors process stopped")
