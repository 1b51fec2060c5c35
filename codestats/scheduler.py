"""Debounce state machine deciding when accumulated XP is flushed.

An UPDATE (re)arms a deadline ``quiet_window`` seconds ahead, so a burst of
edits produces a single flush once typing pauses. FORCE_SEND flushes right
away and CANCEL disarms the deadline without touching the counters.

A flush that reaches the network step also respects a minimum interval
between sends. A non-forced flush inside that interval drops the snapshot it
already took; the counters are not restored.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from codestats.accumulator import XpAccumulator
from codestats.config import CodeStatsConfig
from codestats.errors import NoTriggerSetError
from codestats.models import PulseEvent, PulsePayload
from codestats.sender import PulseSender

logger = logging.getLogger(__name__)

QUIET_WINDOW = 10.0
MIN_SEND_INTERVAL = 10.0


def local_now() -> datetime:
    """Current local time as an aware datetime."""
    return datetime.now().astimezone()


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


class FlushOutcome(str, Enum):
    """What a flush attempt ended up doing."""

    DISABLED = "disabled"  # no API key configured
    EMPTY = "empty"  # nothing accumulated
    RATE_LIMITED = "rate_limited"  # snapshot discarded
    SENT = "sent"
    FAILED = "failed"


class DebounceScheduler:
    """Single-consumer trigger state machine. Not thread-safe by itself;
    PulseWorker feeds it one event at a time."""

    def __init__(
        self,
        accumulator: XpAccumulator,
        sender: PulseSender,
        config_provider: Callable[[], CodeStatsConfig],
        quiet_window: float = QUIET_WINDOW,
        min_send_interval: float = MIN_SEND_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = local_now,
    ):
        """Initialize the scheduler.

        Args:
            accumulator: Counters to flush
            sender: Delivers built pulses
            config_provider: Returns the config to use for each flush
            quiet_window: Seconds without updates before a scheduled flush fires
            min_send_interval: Minimum seconds between two non-forced sends
            clock: Monotonic clock used for deadlines
            now: Wall clock used for send timestamps and ``coded_at``
        """
        self._accumulator = accumulator
        self._sender = sender
        self._config_provider = config_provider
        self.quiet_window = quiet_window
        self.min_send_interval = min_send_interval
        self.clock = clock
        self._now = now

        self.trigger: Optional[PulseEvent] = None
        self.deadline: Optional[float] = None
        self.last_send: datetime = now()

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.IDLE if self.deadline is None else SchedulerState.ARMED

    def time_until_deadline(self) -> Optional[float]:
        """Seconds until the pending flush, or None when nothing is scheduled."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self.clock())

    def handle_event(self, event: PulseEvent) -> Optional[FlushOutcome]:
        """Apply one event.

        Returns:
            The flush outcome for FORCE_SEND, None for other events
        """
        event = PulseEvent(event)

        if event is PulseEvent.UPDATE:
            self.trigger = event
            self.deadline = self.clock() + self.quiet_window
            return None

        if event is PulseEvent.FORCE_SEND:
            self.trigger = event
            self.deadline = None
            return self.flush()

        self.trigger = None
        self.deadline = None
        return None

    def on_deadline(self) -> Optional[FlushOutcome]:
        """Flush if the scheduled deadline has been reached."""
        if self.deadline is None or self.clock() < self.deadline:
            return None

        self.deadline = None
        if self.trigger is None:
            return None
        return self.flush()

    def flush(self) -> FlushOutcome:
        """Consume the trigger and try to send the accumulated XP.

        Raises:
            NoTriggerSetError: If called without a pending trigger
        """
        trigger = self.trigger
        if trigger is None:
            raise NoTriggerSetError("flush() called without a pending trigger")
        self.trigger = None

        config = self._config_provider()
        if not config.enabled:
            logger.debug("No Code::Stats API key configured, keeping XP")
            return FlushOutcome.DISABLED

        snapshot = self._accumulator.snapshot_and_clear()
        if not any(snapshot.values()):
            logger.debug("Nothing to send")
            return FlushOutcome.EMPTY

        now = self._now()
        elapsed = (now - self.last_send).total_seconds()
        if elapsed < self.min_send_interval and trigger is not PulseEvent.FORCE_SEND:
            logger.info(
                f"Last pulse was {elapsed:.1f}s ago, dropping {sum(snapshot.values())} XP "
                f"for {len(snapshot)} language(s)"
            )
            return FlushOutcome.RATE_LIMITED

        payload = PulsePayload.from_snapshot(snapshot, coded_at=now)
        try:
            result = self._sender.send(payload, config)
        finally:
            self.last_send = now

        return FlushOutcome.SENT if result.success else FlushOutcome.FAILED
