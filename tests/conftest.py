"""Shared fixtures for the Code::Stats client tests."""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from codestats.accumulator import XpAccumulator
from codestats.config import CodeStatsConfig
from codestats.scheduler import DebounceScheduler
from codestats.sender import PulseSender, SendResult

T0 = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))


class FakeClock:
    """Drives both the monotonic and the wall clock from one offset."""

    def __init__(self, start: datetime = T0):
        self.start = start
        self.offset = 0.0

    def monotonic(self) -> float:
        return self.offset

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.offset)

    def set(self, seconds: float) -> None:
        self.offset = seconds

    def advance(self, seconds: float) -> None:
        self.offset += seconds


def wait_until(condition, timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll ``condition`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def accumulator():
    return XpAccumulator()


@pytest.fixture
def mock_sender():
    sender = MagicMock(spec=PulseSender)
    sender.send.return_value = SendResult(success=True, response_text="ok")
    return sender


@pytest.fixture
def config():
    return CodeStatsConfig(server="https://codestats.example/", key="secret-token")


@pytest.fixture
def scheduler(accumulator, mock_sender, config, clock):
    return DebounceScheduler(
        accumulator,
        mock_sender,
        lambda: config,
        clock=clock.monotonic,
        now=clock.now,
    )
