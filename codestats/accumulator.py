"""Thread-safe per-language XP counters."""

from __future__ import annotations

import threading
from typing import Dict


class XpAccumulator:
    """Counts XP per language until the next snapshot.

    Every mutation and every read happens under a single lock, so an
    increment lands in exactly one snapshot.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {}

    def increment(self, language: str, amount: int = 1) -> None:
        """Add XP for a language.

        Args:
            language: Code::Stats language name
            amount: XP to add (default: 1)
        """
        if not language:
            raise ValueError("language must be a non-empty string")
        if amount < 0:
            raise ValueError(f"amount must not be negative, got {amount}")

        with self._lock:
            self._counts[language] = self._counts.get(language, 0) + amount

    def is_empty(self) -> bool:
        with self._lock:
            return not any(self._counts.values())

    def snapshot(self) -> Dict[str, int]:
        """Return a copy of the current counters without clearing them."""
        with self._lock:
            return dict(self._counts)

    def snapshot_and_clear(self) -> Dict[str, int]:
        """Return the current counters and reset them in one step."""
        with self._lock:
            counts = self._counts
            self._counts = {}
        return counts

    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
