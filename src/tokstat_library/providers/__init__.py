# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Provider Gateway.

The set of supported providers is closed: every provider tag resolves
through the single PROVIDER_CLASSES table.
"""

import logging
from typing import Dict, List, Optional, Tuple, Type

import httpx

from ..core.errors import UnknownProviderError
from ..core.types import Account, QuotaInfo
from .copilot_provider import CopilotProvider
from .openrouter_provider import OpenRouterProvider
from .provider_interface import QuotaProvider

lib_logger = logging.getLogger("tokstat_library")

PROVIDER_CLASSES: Dict[str, Type[QuotaProvider]] = {
    CopilotProvider.provider_name: CopilotProvider,
    OpenRouterProvider.provider_name: OpenRouterProvider,
}

# (provider tag, display name), in menu order
PROVIDERS: List[Tuple[str, str]] = [
    (tag, cls.display_name) for tag, cls in PROVIDER_CLASSES.items()
]


def get_provider(provider: str, timeout: float = 30.0) -> QuotaProvider:
    try:
        provider_class = PROVIDER_CLASSES[provider]
    except KeyError:
        raise UnknownProviderError(provider) from None
    return provider_class(timeout=timeout)


def provider_display_name(provider: str) -> str:
    provider_class = PROVIDER_CLASSES.get(provider)
    return provider_class.display_name if provider_class else provider


class QuotaGateway:
    """
    Resolves an account's provider, loads its credential from the vault
    and runs the adapter. Provider errors propagate untranslated.
    """

    def __init__(self, storage, timeout: float = 30.0):
        self.storage = storage
        self.timeout = timeout

    async def fetch_quota(
        self, account: Account, client: Optional[httpx.AsyncClient] = None
    ) -> QuotaInfo:
        provider = get_provider(account.provider, timeout=self.timeout)
        credentials = self.storage.get_credentials(account.name)
        lib_logger.debug(f"Fetching {account.provider} quota for '{account.name}'")
        quota = await provider.fetch_quota(credentials, client=client)
        quota.account_name = account.name
        return quota


__all__ = [
    "CopilotProvider",
    "OpenRouterProvider",
    "PROVIDERS",
    "PROVIDER_CLASSES",
    "QuotaGateway",
    "QuotaProvider",
    "get_provider",
    "provider_display_name",
]
