# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Login collaborators, one per provider tag.

Each flow is `async login(storage, account_name)`; on success it has
stored the credential and then saved the account record.
"""

from typing import Awaitable, Callable, Dict

from ..core.errors import UnknownProviderError
from . import copilot_auth, openrouter_auth

LoginFlow = Callable[..., Awaitable[None]]

LOGIN_FLOWS: Dict[str, LoginFlow] = {
    "copilot": copilot_auth.login,
    "openrouter": openrouter_auth.login,
}


def get_login_flow(provider: str) -> LoginFlow:
    try:
        return LOGIN_FLOWS[provider]
    except KeyError:
        raise UnknownProviderError(provider) from None


def default_account_name(provider: str, timestamp: int) -> str:
    return f"{provider}_{timestamp}"


__all__ = ["LOGIN_FLOWS", "LoginFlow", "default_account_name", "get_login_flow"]
