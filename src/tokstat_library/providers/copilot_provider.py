# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
GitHub Copilot quota adapter.

API Details:
- Endpoint: GET https://api.github.com/copilot_internal/v2/usage
- Auth: Bearer token from the OAuth device flow
- Response: {"total_tokens_used": int, "total_requests": int,
             "billing_cycle_end": str | null}

Credential blob (JSON):
    {"access_token": str, "refresh_token": str, "expires_at": ISO-8601}

Copilot is subscription based: no cost and no hard limits are reported.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from ..core.errors import CredentialExpiredError, UnauthorizedError, UpstreamError
from ..core.types import QuotaInfo, TokenLimits, TokenUsage, utc_now
from .provider_interface import QuotaProvider

lib_logger = logging.getLogger("tokstat_library")

COPILOT_USAGE_URL = "https://api.github.com/copilot_internal/v2/usage"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CopilotProvider(QuotaProvider):
    provider_name = "copilot"
    display_name = "GitHub Copilot"

    def _access_token(self, creds: Dict[str, Any]) -> str:
        access_token = creds.get("access_token")
        if not access_token:
            raise UnauthorizedError("Copilot credentials have no access token")
        try:
            expires_at = _parse_timestamp(creds.get("expires_at"))
        except ValueError as e:
            raise UnauthorizedError("Copilot credentials have an invalid expiry") from e
        # Refresh is not implemented; an expired token needs a new login
        if expires_at is not None and utc_now() >= expires_at:
            raise CredentialExpiredError()
        return access_token

    async def fetch_quota(
        self, credentials: str, client: Optional[httpx.AsyncClient] = None
    ) -> QuotaInfo:
        creds = self._parse_credentials(credentials)
        access_token = self._access_token(creds)

        data = await self._get_json(
            COPILOT_USAGE_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            client=client,
        )

        try:
            tokens_used = int(data["total_tokens_used"])
            requests_made = int(data["total_requests"])
            reset_date = _parse_timestamp(data.get("billing_cycle_end"))
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError("Failed to parse Copilot usage response", status=200) from e

        lib_logger.debug(
            f"Copilot usage: {tokens_used} tokens, {requests_made} requests"
        )
        return QuotaInfo(
            provider=self.provider_name,
            usage=TokenUsage(
                tokens_used=tokens_used,
                requests_made=requests_made,
                cost=None,
            ),
            limits=TokenLimits(),
            reset_date=reset_date,
            last_updated=utc_now(),
        )
