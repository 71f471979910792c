# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Runtime settings for tokstat.

Values come from the environment, optionally seeded by a `.env` file in
the config directory. Environment variables:
    TOKSTAT_CONFIG_DIR: Directory holding accounts.json / quota_history.json
    TOKSTAT_REFRESH_INTERVAL: Dashboard idle refresh interval in seconds (default: 60)
    TOKSTAT_HISTORY_SIZE: Max snapshots kept per account (default: 100)
    TOKSTAT_HTTP_TIMEOUT: Provider request timeout in seconds (default: 30)
    TOKSTAT_KEYRING_SERVICE: Secret-store namespace (default: tokstat)
    TOKSTAT_LOG_LEVEL: Logging level name (default: WARNING)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .utils.paths import ensure_dir, get_config_dir

lib_logger = logging.getLogger("tokstat_library")

DEFAULT_REFRESH_INTERVAL = 60
DEFAULT_HISTORY_SIZE = 100
DEFAULT_HTTP_TIMEOUT = 30
DEFAULT_KEYRING_SERVICE = "tokstat"


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    """Parse an integer from environment variable with fallback to default."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        lib_logger.warning(f"Invalid {name} value {raw!r}, using default {default}")
        return default
    if value < minimum:
        lib_logger.warning(f"{name} must be >= {minimum}, using default {default}")
        return default
    return value


@dataclass
class Settings:
    config_dir: Path
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    history_size: int = DEFAULT_HISTORY_SIZE
    http_timeout: int = DEFAULT_HTTP_TIMEOUT
    keyring_service: str = DEFAULT_KEYRING_SERVICE
    log_level: str = "WARNING"

    @property
    def index_path(self) -> Path:
        return self.config_dir / "accounts.json"

    @property
    def history_path(self) -> Path:
        return self.config_dir / "quota_history.json"


def load_settings(config_dir: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    Creates the config directory and loads its `.env` without overriding
    variables already present in the process environment.
    """
    directory = ensure_dir(get_config_dir(config_dir))

    env_file = directory / ".env"
    if env_file.is_file():
        load_dotenv(env_file, override=False)
        lib_logger.debug(f"Loaded settings overrides from {env_file}")

    return Settings(
        config_dir=directory,
        refresh_interval=_env_int("TOKSTAT_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
        history_size=_env_int("TOKSTAT_HISTORY_SIZE", DEFAULT_HISTORY_SIZE),
        http_timeout=_env_int("TOKSTAT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        keyring_service=os.environ.get("TOKSTAT_KEYRING_SERVICE")
        or DEFAULT_KEYRING_SERVICE,
        log_level=(os.environ.get("TOKSTAT_LOG_LEVEL") or "WARNING").upper(),
    )
