"""Mapping from host document language metadata to Code::Stats language names."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Reported for documents the host could not assign any language to
DEFAULT_LANGUAGE = "Plain text"


@dataclass(frozen=True)
class LanguageInfo:
    """Language metadata attached to a host document.

    ``codestats_language`` is the name Code::Stats knows the language by, if
    the host configuration defines one.
    """

    language_id: str
    codestats_language: Optional[str] = None


def resolve_language(document: Any) -> Optional[str]:
    """Return the Code::Stats language an edit in ``document`` counts towards.

    Args:
        document: Any object with a ``language`` attribute holding a
            LanguageInfo-like object or None

    Returns:
        The language name, or None when the document's language has no
        Code::Stats mapping and the edit should not be counted
    """
    language = getattr(document, "language", None)

    if language is None:
        logger.debug(f"Document has no language, counting as {DEFAULT_LANGUAGE!r}")
        return DEFAULT_LANGUAGE

    codestats_language = getattr(language, "codestats_language", None)
    if not codestats_language:
        logger.warning(
            f"No Code::Stats language defined for {getattr(language, 'language_id', language)!r}"
        )
        return None

    return codestats_language
