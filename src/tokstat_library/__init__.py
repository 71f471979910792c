# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""tokstat library: account storage, quota providers and login flows."""

__version__ = "0.3.0"

from .config import Settings, load_settings
from .core.types import Account, QuotaInfo, QuotaSnapshot, TokenLimits, TokenUsage
from .providers import PROVIDERS, QuotaGateway
from .storage import AccountStorage

__all__ = [
    "Account",
    "AccountStorage",
    "PROVIDERS",
    "QuotaGateway",
    "QuotaInfo",
    "QuotaSnapshot",
    "Settings",
    "TokenLimits",
    "TokenUsage",
    "load_settings",
]
