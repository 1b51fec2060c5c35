"""Binding of host editor events to a Reporter."""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from codestats.reporter import Reporter

logger = logging.getLogger(__name__)

DOCUMENT_DID_CHANGE = "document_did_change"
QUIT = "quit"


class HookRegistry(Protocol):
    """The part of the host's hook dispatcher used here."""

    def register(self, event_name: str, callback: Callable[..., Any]) -> None: ...


def register_hooks(registry: HookRegistry, reporter: Reporter) -> None:
    """Count XP on every document change and flush when the host quits.

    The quit hook closes the reporter, so it returns only after the final
    pulse was attempted and the worker thread has stopped.
    """

    def on_document_did_change(document: Any, *args: Any, **kwargs: Any) -> None:
        reporter.record_edit(document)

    def on_quit(*args: Any, **kwargs: Any) -> None:
        reporter.close()

    registry.register(DOCUMENT_DID_CHANGE, on_document_did_change)
    registry.register(QUIT, on_quit)
    logger.info("Code::Stats hooks registered")
