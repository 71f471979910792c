# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
OpenRouter quota adapter.

API Details:
- Endpoint: GET https://openrouter.ai/api/v1/auth/key
- Auth: Bearer API key
- Response: {"data": {"usage": float, "limit": float | null, ...}}

Credential blob (JSON): {"api_key": str}
"""

import logging
from typing import Optional

import httpx

from ..core.errors import UnauthorizedError, UpstreamError
from ..core.types import QuotaInfo, TokenLimits, TokenUsage, utc_now
from .provider_interface import QuotaProvider

lib_logger = logging.getLogger("tokstat_library")

OPENROUTER_KEY_URL = "https://openrouter.ai/api/v1/auth/key"


class OpenRouterProvider(QuotaProvider):
    provider_name = "openrouter"
    display_name = "OpenRouter"

    async def fetch_quota(
        self, credentials: str, client: Optional[httpx.AsyncClient] = None
    ) -> QuotaInfo:
        creds = self._parse_credentials(credentials)
        api_key = creds.get("api_key")
        if not api_key:
            raise UnauthorizedError("OpenRouter credentials have no API key")

        data = await self._get_json(
            OPENROUTER_KEY_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            client=client,
        )

        try:
            key_data = data["data"]
            usage = float(key_data["usage"])
            limit = key_data.get("limit")
            max_cost = float(limit) if limit is not None else None
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UpstreamError("Failed to parse OpenRouter response", status=200) from e

        lib_logger.debug(f"OpenRouter usage: ${usage:.4f} of {max_cost}")
        return QuotaInfo(
            provider=self.provider_name,
            usage=TokenUsage(tokens_used=None, requests_made=None, cost=usage),
            limits=TokenLimits(max_cost=max_cost),
            reset_date=None,
            last_updated=utc_now(),
        )
