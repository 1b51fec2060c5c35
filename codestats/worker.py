"""Single-consumer event loop driving the debounce scheduler."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Union

from codestats.models import PulseEvent
from codestats.scheduler import DebounceScheduler, FlushOutcome

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1024


class _Stop:
    def __repr__(self) -> str:
        return "STOP"


STOP = _Stop()

QueueItem = Union[PulseEvent, _Stop]


class PulseWorker:
    """Processes pulse events strictly in order, one at a time.

    Flushes that may hit the network run in a worker thread and are awaited,
    so no further event is handled until they finish.
    """

    def __init__(self, scheduler: DebounceScheduler, max_queue_size: int = DEFAULT_QUEUE_SIZE):
        self.scheduler = scheduler
        self._queue: asyncio.Queue[QueueItem] = asyncio.Queue(maxsize=max_queue_size)

    def offer(self, item: QueueItem) -> bool:
        """Enqueue without waiting. Drops the event if the queue is full."""
        try:
            self._queue.put_nowait(item)
            return True
        except asyncio.QueueFull:
            logger.debug(f"Pulse queue full, dropping {item!r}")
            return False

    async def put(self, item: QueueItem) -> None:
        """Enqueue, waiting for space if needed."""
        await self._queue.put(item)

    async def run(self) -> None:
        logger.debug("Pulse worker started")
        while True:
            timeout = self.scheduler.time_until_deadline()
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout)
            except asyncio.TimeoutError:
                await self._flush_safely(self.scheduler.on_deadline)
                continue

            if item is STOP:
                break

            if item is PulseEvent.FORCE_SEND:
                await self._flush_safely(self.scheduler.handle_event, item)
            else:
                self.scheduler.handle_event(item)

        logger.debug("Pulse worker stopped")

    async def _flush_safely(
        self, func: Callable[..., Optional[FlushOutcome]], *args: Any
    ) -> Optional[FlushOutcome]:
        try:
            outcome = await asyncio.to_thread(func, *args)
        except Exception as e:
            logger.error(f"Pulse flush failed: {e}", exc_info=True)
            return None
        if outcome is not None:
            logger.debug(f"Flush finished: {outcome.value}")
        return outcome
