"""Configuration for the Code::Stats pulse client."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from codestats.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "https://codestats.net/"

SERVER_ENV_VAR = "CODESTATS_SERVER"
API_KEY_ENV_VAR = "CODESTATS_API_KEY"


class CodeStatsConfig(BaseModel):
    """Server URL and API token used for pulses.

    A missing ``key`` is a valid state: XP is still counted, but nothing is
    ever sent.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    server: str = DEFAULT_SERVER
    key: Optional[str] = None

    @field_validator("server")
    @classmethod
    def _normalize_server(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("server must not be empty")
        if not value.endswith("/"):
            value += "/"
        return value

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def enabled(self) -> bool:
        """Whether pulses can be sent with this configuration."""
        return self.key is not None

    @property
    def pulses_url(self) -> str:
        return f"{self.server}api/my/pulses"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CodeStatsConfig:
        """Build a config from a parsed ``[codestats]`` table.

        Only ``server`` and ``key`` are recognized; anything else is an error.

        Raises:
            ConfigError: If the mapping has unknown keys or invalid values.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigError(f"Invalid codestats config: {e}") from e

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[Union[str, Path]] = None,
    ) -> CodeStatsConfig:
        """Load config from environment variables.

        Args:
            environ: Environment to read, defaults to ``os.environ``
            env_file: Optional ``.env`` file; real environment values win over it
        """
        values: Dict[str, Optional[str]] = {}
        if env_file is not None:
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        data: Dict[str, Any] = {}
        if values.get(SERVER_ENV_VAR):
            data["server"] = values[SERVER_ENV_VAR]
        if values.get(API_KEY_ENV_VAR):
            data["key"] = values[API_KEY_ENV_VAR]

        config = cls.from_dict(data)
        if config.enabled:
            logger.info(f"Code::Stats reporting enabled for {config.server}")
        else:
            logger.info("Code::Stats reporting disabled (no API key configured)")
        return config


ConfigProvider = Callable[[], CodeStatsConfig]


class ConfigStore:
    """Holds the live config; readers always see a complete config object."""

    def __init__(self, config: Optional[CodeStatsConfig] = None):
        self._lock = threading.Lock()
        self._config = config or CodeStatsConfig()

    def load(self) -> CodeStatsConfig:
        with self._lock:
            return self._config

    def store(self, config: CodeStatsConfig) -> None:
        with self._lock:
            self._config = config
        logger.debug(f"Code::Stats config replaced (enabled={config.enabled})")
