# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Base class for quota provider adapters.

An adapter receives the opaque credential blob stored in the vault and
returns a normalized QuotaInfo, or raises one of the ProviderError
subclasses. No retries happen at this layer.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..core.errors import (
    NotSupportedByVendorError,
    UnauthorizedError,
    UpstreamError,
)
from ..core.types import QuotaInfo

lib_logger = logging.getLogger("tokstat_library")

USER_AGENT = "tokstat"


class QuotaProvider(ABC):
    provider_name: str = ""
    display_name: str = ""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    @abstractmethod
    async def fetch_quota(
        self, credentials: str, client: Optional[httpx.AsyncClient] = None
    ) -> QuotaInfo:
        """Fetch the current quota for the account owning `credentials`."""

    def _parse_credentials(self, credentials: str) -> Dict[str, Any]:
        try:
            data = json.loads(credentials)
        except json.JSONDecodeError as e:
            raise UnauthorizedError(
                f"Failed to parse {self.display_name} credentials, please login again"
            ) from e
        if not isinstance(data, dict):
            raise UnauthorizedError(
                f"Failed to parse {self.display_name} credentials, please login again"
            )
        return data

    async def _get_json(
        self,
        url: str,
        headers: Dict[str, str],
        client: Optional[httpx.AsyncClient] = None,
    ) -> Dict[str, Any]:
        """
        GET `url` and decode a JSON object body.

        Maps HTTP failures onto the provider error taxonomy:
        401 -> UnauthorizedError, 403/404 -> NotSupportedByVendorError,
        anything else non-2xx, malformed JSON or transport errors -> UpstreamError.
        """
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json", **headers}
        try:
            if client is not None:
                response = await client.get(url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as new_client:
                    response = await new_client.get(
                        url, headers=headers, timeout=self.timeout
                    )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            lib_logger.warning(f"{self.display_name} quota request failed: HTTP {status}")
            if status == 401:
                raise UnauthorizedError(
                    f"{self.display_name} rejected the credentials (HTTP 401)"
                ) from e
            if status in (403, 404):
                raise NotSupportedByVendorError(
                    f"{self.display_name} quota endpoint unavailable (HTTP {status})"
                ) from e
            raise UpstreamError(
                f"Failed to fetch {self.display_name} quota: HTTP {status}", status=status
            ) from e
        except httpx.HTTPError as e:
            lib_logger.warning(
                f"{self.display_name} quota request failed: {type(e).__name__}: {e}"
            )
            raise UpstreamError(
                f"Failed to reach {self.display_name}: {type(e).__name__}"
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Failed to parse {self.display_name} response",
                status=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise UpstreamError(
                f"Unexpected {self.display_name} response shape",
                status=response.status_code,
            )
        return data
