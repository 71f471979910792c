# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from .history import MAX_HISTORY_SIZE, QuotaHistoryLog
from .index import AccountIndex
from .manager import AccountStorage
from .vault import CredentialVault, mask_secret

__all__ = [
    "AccountIndex",
    "AccountStorage",
    "CredentialVault",
    "MAX_HISTORY_SIZE",
    "QuotaHistoryLog",
    "mask_secret",
]
