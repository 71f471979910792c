# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""Per-user locations for tokstat's persisted documents."""

import os
from pathlib import Path
from typing import Optional

APP_DIR_NAME = "tokstat"


def get_config_dir(override: Optional[str] = None) -> Path:
    """
    Resolve the config directory (not created here).

    Precedence: explicit override, TOKSTAT_CONFIG_DIR,
    $XDG_CONFIG_HOME/tokstat, ~/.config/tokstat.
    """
    if override:
        return Path(override).expanduser()

    env_dir = os.environ.get("TOKSTAT_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_DIR_NAME

    return Path.home() / ".config" / APP_DIR_NAME


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
