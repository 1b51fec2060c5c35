"""Tests for the debounce scheduler and its flush procedure."""

from datetime import timedelta

import pytest

from codestats.config import CodeStatsConfig
from codestats.errors import NoTriggerSetError
from codestats.models import PulseEvent, PulseXP
from codestats.scheduler import DebounceScheduler, FlushOutcome, SchedulerState
from codestats.sender import SendResult
from conftest import T0


def sent_payload(mock_sender):
    args, kwargs = mock_sender.send.call_args
    return args[0]


class TestDebounce:
    def test_update_arms_deadline(self, scheduler, clock):
        clock.set(3.0)
        assert scheduler.handle_event(PulseEvent.UPDATE) is None

        assert scheduler.state is SchedulerState.ARMED
        assert scheduler.trigger is PulseEvent.UPDATE
        assert scheduler.deadline == 13.0
        assert scheduler.time_until_deadline() == 10.0

    def test_idle_without_events(self, scheduler):
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.time_until_deadline() is None
        assert scheduler.on_deadline() is None

    def test_burst_of_updates_flushes_once_after_last(
        self, scheduler, accumulator, mock_sender, clock
    ):
        for i in range(10):
            clock.set(i * 0.9)
            accumulator.increment("Rust")
            scheduler.handle_event(PulseEvent.UPDATE)

        assert scheduler.deadline == pytest.approx(8.1 + 10.0)

        clock.set(17.0)
        assert scheduler.on_deadline() is None
        mock_sender.send.assert_not_called()

        clock.set(18.2)
        assert scheduler.on_deadline() is FlushOutcome.SENT
        assert scheduler.state is SchedulerState.IDLE
        mock_sender.send.assert_called_once()
        assert sent_payload(mock_sender).xps == (PulseXP(language="Rust", xp=10),)

        clock.set(40.0)
        assert scheduler.on_deadline() is None
        assert mock_sender.send.call_count == 1

    def test_force_send_flushes_immediately(self, scheduler, accumulator, mock_sender, clock):
        clock.set(1.0)
        accumulator.increment("Go")

        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.SENT

        mock_sender.send.assert_called_once()
        assert scheduler.last_send == T0 + timedelta(seconds=1)
        assert scheduler.trigger is None

    def test_force_send_cancels_pending_deadline(self, scheduler, accumulator, mock_sender, clock):
        accumulator.increment("Go")
        scheduler.handle_event(PulseEvent.UPDATE)
        clock.set(2.0)

        scheduler.handle_event(PulseEvent.FORCE_SEND)

        assert scheduler.state is SchedulerState.IDLE
        clock.set(30.0)
        assert scheduler.on_deadline() is None
        assert mock_sender.send.call_count == 1

    def test_cancel_keeps_counters_and_never_sends(
        self, scheduler, accumulator, mock_sender, clock
    ):
        accumulator.increment("Rust", 2)
        scheduler.handle_event(PulseEvent.UPDATE)
        scheduler.handle_event(PulseEvent.CANCEL)

        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.trigger is None

        clock.set(60.0)
        assert scheduler.on_deadline() is None
        mock_sender.send.assert_not_called()
        assert accumulator.snapshot() == {"Rust": 2}

    def test_counters_kept_after_cancel_are_sent_next_cycle(
        self, scheduler, accumulator, mock_sender, clock
    ):
        accumulator.increment("Rust")
        scheduler.handle_event(PulseEvent.UPDATE)
        scheduler.handle_event(PulseEvent.CANCEL)

        clock.set(20.0)
        accumulator.increment("Go")
        scheduler.handle_event(PulseEvent.UPDATE)
        clock.set(30.0)

        assert scheduler.on_deadline() is FlushOutcome.SENT
        assert sent_payload(mock_sender).to_wire()["xps"] == [
            {"language": "Rust", "xp": 1},
            {"language": "Go", "xp": 1},
        ]


class TestFlush:
    def test_flush_without_trigger(self, scheduler):
        with pytest.raises(NoTriggerSetError):
            scheduler.flush()

    def test_without_key_counters_keep_growing(self, accumulator, mock_sender, clock):
        scheduler = DebounceScheduler(
            accumulator, mock_sender, CodeStatsConfig, clock=clock.monotonic, now=clock.now
        )

        for i in range(50):
            clock.set(i * 11.0)
            accumulator.increment("Rust")
            scheduler.handle_event(PulseEvent.UPDATE)
            clock.advance(10.0)
            assert scheduler.on_deadline() is FlushOutcome.DISABLED

        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.DISABLED
        mock_sender.send.assert_not_called()
        assert accumulator.snapshot() == {"Rust": 50}

    def test_empty_aggregate(self, scheduler, mock_sender, clock):
        clock.set(30.0)
        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.EMPTY
        mock_sender.send.assert_not_called()
        assert scheduler.last_send == T0

    def test_send_after_quiet_window_exact_timeline(
        self, scheduler, accumulator, mock_sender, clock
    ):
        assert scheduler.last_send == T0

        clock.set(2.0)
        accumulator.increment("Rust")
        scheduler.handle_event(PulseEvent.UPDATE)
        assert scheduler.deadline == 12.0

        clock.set(12.0)
        assert scheduler.on_deadline() is FlushOutcome.SENT

        payload = sent_payload(mock_sender)
        assert payload.coded_at == T0 + timedelta(seconds=12)
        assert payload.xps == (PulseXP(language="Rust", xp=1),)
        assert scheduler.last_send == T0 + timedelta(seconds=12)

    def test_rate_limited_snapshot_is_discarded(self, scheduler, accumulator, mock_sender, clock):
        clock.set(1.0)
        accumulator.increment("Go")
        scheduler.handle_event(PulseEvent.UPDATE)
        assert scheduler.deadline == 11.0

        scheduler.last_send = T0 + timedelta(seconds=5)

        clock.set(11.0)
        assert scheduler.on_deadline() is FlushOutcome.RATE_LIMITED

        mock_sender.send.assert_not_called()
        assert accumulator.is_empty()
        assert scheduler.last_send == T0 + timedelta(seconds=5)

    def test_force_send_bypasses_rate_limit(self, scheduler, accumulator, mock_sender, clock):
        scheduler.last_send = T0
        clock.set(0.5)
        accumulator.increment("Go")

        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.SENT
        mock_sender.send.assert_called_once()

    def test_failed_send_still_updates_last_send(
        self, scheduler, accumulator, mock_sender, clock
    ):
        mock_sender.send.return_value = SendResult(success=False)
        clock.set(15.0)
        accumulator.increment("Rust")

        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.FAILED
        assert scheduler.last_send == T0 + timedelta(seconds=15)
        assert accumulator.is_empty()

    def test_sender_exception_still_updates_last_send(
        self, scheduler, accumulator, mock_sender, clock
    ):
        mock_sender.send.side_effect = RuntimeError("boom")
        clock.set(15.0)
        accumulator.increment("Rust")

        with pytest.raises(RuntimeError):
            scheduler.handle_event(PulseEvent.FORCE_SEND)
        assert scheduler.last_send == T0 + timedelta(seconds=15)

    def test_config_is_read_on_every_flush(self, accumulator, mock_sender, clock):
        configs = [CodeStatsConfig(), CodeStatsConfig(key="late-key")]
        scheduler = DebounceScheduler(
            accumulator,
            mock_sender,
            lambda: configs[0],
            clock=clock.monotonic,
            now=clock.now,
        )
        accumulator.increment("Rust")

        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.DISABLED
        configs.pop(0)
        assert scheduler.handle_event(PulseEvent.FORCE_SEND) is FlushOutcome.SENT

        args, kwargs = mock_sender.send.call_args
        assert args[1].key == "late-key"
