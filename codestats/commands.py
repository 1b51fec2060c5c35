"""Host commands: show the live XP counters and send them right away."""

from __future__ import annotations

from typing import Mapping, Protocol

from codestats.reporter import Reporter

STATS_HEADER = "C::S info:\n"
STATS_FOOTER = "C::S info end\n"


class TextBuffer(Protocol):
    """The part of a host document used to insert text."""

    def insert_at_cursor(self, text: str) -> None: ...


def render_stats(counts: Mapping[str, int]) -> str:
    lines = [STATS_HEADER]
    for language, count in counts.items():
        lines.append(f"Lang: {language}, count: {count}\n")
    lines.append(STATS_FOOTER)
    return "".join(lines)


def dump_stats(reporter: Reporter, buffer: TextBuffer) -> str:
    """Insert the current, not yet sent, XP counters at the cursor.

    The counters are only read, never cleared.

    Returns:
        The inserted text
    """
    text = render_stats(reporter.stats())
    buffer.insert_at_cursor(text)
    return text


def send_stats(reporter: Reporter) -> bool:
    """Send accumulated XP now instead of waiting for the quiet window."""
    return reporter.force_send()
