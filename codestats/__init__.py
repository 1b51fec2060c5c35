"""Code::Stats XP reporting for text editors.

Counts edits per language and sends them to Code::Stats in debounced pulses.
"""

__version__ = "0.1.0"

from codestats.log import set_codestats_log_level

# Keep client logging quiet unless CODESTATS_LOG_LEVEL asks otherwise
set_codestats_log_level()

from codestats.accumulator import XpAccumulator  # noqa: E402
from codestats.commands import dump_stats, render_stats, send_stats  # noqa: E402
from codestats.config import CodeStatsConfig, ConfigStore  # noqa: E402
from codestats.errors import (  # noqa: E402
    CodeStatsError,
    ConfigError,
    InsecureServerError,
    NoTriggerSetError,
    ResponseReadFailure,
    TransportFailure,
)
from codestats.hooks import register_hooks  # noqa: E402
from codestats.language import DEFAULT_LANGUAGE, LanguageInfo, resolve_language  # noqa: E402
from codestats.models import PulseEvent, PulsePayload, PulseXP  # noqa: E402
from codestats.reporter import Reporter  # noqa: E402
from codestats.scheduler import DebounceScheduler, FlushOutcome  # noqa: E402
from codestats.sender import PulseSender, SendResult  # noqa: E402

__all__ = [
    "__version__",
    "CodeStatsConfig",
    "CodeStatsError",
    "ConfigError",
    "ConfigStore",
    "DEFAULT_LANGUAGE",
    "DebounceScheduler",
    "FlushOutcome",
    "InsecureServerError",
    "LanguageInfo",
    "NoTriggerSetError",
    "PulseEvent",
    "PulsePayload",
    "PulseSender",
    "PulseXP",
    "Reporter",
    "ResponseReadFailure",
    "SendResult",
    "TransportFailure",
    "XpAccumulator",
    "dump_stats",
    "register_hooks",
    "render_stats",
    "resolve_language",
    "send_stats",
    "set_codestats_log_level",
]
