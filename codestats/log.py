"""Log level control for the Code::Stats client loggers."""

import logging
import os
from typing import Optional

LOG_LEVEL_ENV_VAR = "CODESTATS_LOG_LEVEL"

_LOGGER_NAMES = [
    "codestats",
    "httpx",
    "httpcore",
]

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def set_codestats_log_level(level: Optional[int] = None) -> None:
    """Set the logging level for the client and its HTTP stack.

    By default, reads the CODESTATS_LOG_LEVEL environment variable
    ("DEBUG", "INFO", "WARNING" or "ERROR"). Unset or unrecognized values
    fall back to logging.WARNING, so pulses stay quiet unless asked for.

    Args:
        level: The logging level to set (overrides environment variable if provided)
    """
    if level is None:
        env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper()
        level = _LEVELS.get(env_level, logging.WARNING)

    for logger_name in _LOGGER_NAMES:
        logging.getLogger(logger_name).setLevel(level)
