"""Composition root wiring counters, scheduler, sender and worker thread."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from codestats.accumulator import XpAccumulator
from codestats.config import CodeStatsConfig, ConfigProvider, ConfigStore
from codestats.language import resolve_language
from codestats.models import PulseEvent
from codestats.scheduler import MIN_SEND_INTERVAL, QUIET_WINDOW, DebounceScheduler, local_now
from codestats.sender import PulseSender
from codestats.worker import DEFAULT_QUEUE_SIZE, STOP, PulseWorker

logger = logging.getLogger(__name__)

# Upper bound for close(); covers one in-flight pulse at the sender timeouts
DEFAULT_CLOSE_TIMEOUT = 45.0


class Reporter:
    """Collects XP from the host and reports it to Code::Stats in the background.

    Producer methods can be called from any thread and never wait on the
    network. Events are handled by a PulseWorker running on a dedicated
    thread with its own event loop.

    Example:
        reporter = Reporter(CodeStatsConfig(key="..."))
        reporter.start()
        reporter.record_edit(document)
        ...
        reporter.close()  # sends whatever is left
    """

    def __init__(
        self,
        config: Union[CodeStatsConfig, ConfigProvider, None] = None,
        *,
        sender: Optional[PulseSender] = None,
        quiet_window: float = QUIET_WINDOW,
        min_send_interval: float = MIN_SEND_INTERVAL,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = local_now,
    ):
        """Initialize the reporter.

        Args:
            config: Config object, a callable returning the current config, or
                None to load it from the environment
            sender: Pulse sender to use; one is created and owned if omitted
            quiet_window: Seconds without edits before a pulse is scheduled
            min_send_interval: Minimum seconds between two non-forced pulses
            max_queue_size: Capacity of the event queue
            clock: Monotonic clock for deadlines
            now: Wall clock for pulse timestamps
        """
        self._config_store: Optional[ConfigStore] = None
        if callable(config) and not isinstance(config, CodeStatsConfig):
            config_provider = config
        else:
            if config is None:
                config = CodeStatsConfig.from_env()
            self._config_store = ConfigStore(config)
            config_provider = self._config_store.load

        self._owns_sender = sender is None
        self._sender = sender or PulseSender()
        self._accumulator = XpAccumulator()
        self._scheduler = DebounceScheduler(
            self._accumulator,
            self._sender,
            config_provider,
            quiet_window=quiet_window,
            min_send_interval=min_send_interval,
            clock=clock,
            now=now,
        )
        self._max_queue_size = max_queue_size

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._worker: Optional[PulseWorker] = None
        self._closed = False

    @property
    def accumulator(self) -> XpAccumulator:
        return self._accumulator

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._closed

    def start(self) -> None:
        """Start the worker thread. Calling it again is a no-op."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Reporter is closed")
            if self._thread is not None:
                return

            ready = threading.Event()

            def run_worker_thread():
                """Run the pulse worker on its own event loop."""
                loop = asyncio.new_event_loop()
                asyncio.set_event_loop(loop)
                self._loop = loop
                self._worker = PulseWorker(self._scheduler, self._max_queue_size)
                ready.set()
                try:
                    loop.run_until_complete(self._worker.run())
                except Exception as e:
                    logger.error(f"Pulse worker crashed: {e}", exc_info=True)
                finally:
                    loop.close()

            self._thread = threading.Thread(
                target=run_worker_thread, daemon=True, name="codestats-pulse"
            )
            self._thread.start()
            ready.wait()

        logger.info("Code::Stats reporter started")

    def record_edit(self, document: Any) -> Optional[str]:
        """Count one edit in ``document`` and schedule a pulse.

        Returns:
            The language the edit was counted for, or None if it was skipped
        """
        language = resolve_language(document)
        if language is None:
            return None
        self.record_xp(language)
        return language

    def record_xp(self, language: str, amount: int = 1) -> None:
        self._accumulator.increment(language, amount)
        self.submit(PulseEvent.UPDATE)

    def cancel(self) -> bool:
        """Abandon the pending pulse. Counters are kept for the next one."""
        return self.submit(PulseEvent.CANCEL)

    def submit(self, event: PulseEvent) -> bool:
        """Hand an event to the worker.

        UPDATE and CANCEL never block and may be dropped when the queue is
        full. FORCE_SEND goes through force_send().

        Returns:
            True if the event was passed to the worker loop. The worker may
            still drop it if its queue is full at that point.
        """
        event = PulseEvent(event)
        if event is PulseEvent.FORCE_SEND:
            return self.force_send()

        loop, worker = self._loop, self._worker
        if loop is None or worker is None or self._closed:
            logger.debug(f"Reporter not running, not scheduling {event.value}")
            return False
        try:
            loop.call_soon_threadsafe(worker.offer, event)
        except RuntimeError:
            # loop already closed
            return False
        return True

    def force_send(self, timeout: Optional[float] = None) -> bool:
        """Request an immediate pulse, waiting until the worker accepts it.

        Args:
            timeout: Maximum seconds to wait for queue space, None to wait forever

        Returns:
            True if the request was queued
        """
        return self._put_blocking(PulseEvent.FORCE_SEND, timeout)

    def _put_blocking(self, item, timeout: Optional[float]) -> bool:
        loop, worker = self._loop, self._worker
        if loop is None or worker is None or self._closed:
            logger.debug(f"Reporter not running, not queueing {item!r}")
            return False

        try:
            future = asyncio.run_coroutine_threadsafe(worker.put(item), loop)
        except RuntimeError:
            return False
        try:
            future.result(timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning(f"Timed out queueing {item!r}")
            return False
        return True

    def update_config(self, config: CodeStatsConfig) -> None:
        """Replace the config used by subsequent flushes."""
        if self._config_store is None:
            raise RuntimeError("Reporter was created with a config provider")
        self._config_store.store(config)

    def stats(self) -> Dict[str, int]:
        """Current counters, without clearing them."""
        return self._accumulator.snapshot()

    def total_xp(self) -> int:
        return self._accumulator.total()

    def close(self, timeout: float = DEFAULT_CLOSE_TIMEOUT) -> None:
        """Send remaining XP and stop the worker thread.

        Args:
            timeout: Seconds to wait for the final pulse and thread shutdown
        """
        with self._lock:
            if self._closed:
                return
            thread = self._thread
            if thread is not None:
                self.force_send(timeout)
                self._put_blocking(STOP, timeout)
            self._closed = True

        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Code::Stats worker did not stop in time")

        if self._owns_sender:
            self._sender.close()
        logger.info("Code::Stats reporter closed")

    def __enter__(self) -> Reporter:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
