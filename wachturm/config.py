"""
Runtime configuration.

The environment is read once, at the entry point. Components receive plain
values through their constructors.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from wachturm.exceptions import ConfigError
from wachturm.risk import DEFAULT_MODEL

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def default_base_dir() -> Path:
    return Path.home() / ".wachturm"


@dataclass
class WachturmConfig:
    """Settings for one run."""
    oracle_api_key: str
    oracle_model: str = DEFAULT_MODEL
    oracle_timeout: float = 120.0
    base_dir: Optional[Path] = None
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    dry_run: bool = False
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.base_dir is None:
            self.base_dir = default_base_dir()

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WachturmConfig":
        """
        Build the configuration from environment variables.

        Raises:
            ConfigError: ANTHROPIC_API_KEY is unset or a value is invalid.
        """
        env = os.environ if environ is None else environ

        api_key = env.get("ANTHROPIC_API_KEY", "").strip()
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY environment variable not set")

        timeout_raw = env.get("WACHTURM_ORACLE_TIMEOUT", "120")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(f"WACHTURM_ORACLE_TIMEOUT must be a number, got '{timeout_raw}'")
        if timeout <= 0:
            raise ConfigError("WACHTURM_ORACLE_TIMEOUT must be positive")

        log_level = env.get("WACHTURM_LOG_LEVEL", "WARNING").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Unknown log level: {log_level}")

        token = env.get("WACHTURM_TELEGRAM_BOT_KEY", "").strip()
        chat_id = env.get("WACHTURM_TELEGRAM_CHAT_ID", "").strip()
        if token and not chat_id:
            logger.warning("WACHTURM_TELEGRAM_CHAT_ID not set, notifications disabled")

        home = env.get("WACHTURM_HOME", "").strip()

        return cls(
            oracle_api_key=api_key,
            oracle_model=env.get("WACHTURM_MODEL", "").strip() or DEFAULT_MODEL,
            oracle_timeout=timeout,
            base_dir=Path(home).expanduser() if home else default_base_dir(),
            telegram_bot_token=token,
            telegram_chat_id=chat_id,
            dry_run=env.get("WACHTURM_DRY_RUN", "").strip().lower() in _TRUTHY,
            log_level=log_level,
        )
