# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
GitHub Copilot login via the OAuth device-code flow.

Steps:
1. POST the device-code endpoint and show the user code + verification URL
2. Poll the token endpoint every `interval` seconds until authorized,
   denied, or the device code expires
3. Store the credential blob in the vault, then save the account record
"""

import asyncio
import json
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..core.errors import LoginError
from ..core.types import Account, utc_now

lib_logger = logging.getLogger("tokstat_library")

GITHUB_CLIENT_ID = "Iv1.b507a08c87ecfe98"  # GitHub CLI client ID
GITHUB_DEVICE_CODE_URL = "https://github.com/login/device/code"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_SCOPES = "read:user"
DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

SLOW_DOWN_PENALTY = 5  # seconds
TOKEN_LIFETIME = timedelta(days=90)  # GitHub device tokens don't expire by default


async def _post_form(
    client: httpx.AsyncClient, url: str, form: Dict[str, str], what: str
) -> Dict[str, Any]:
    try:
        response = await client.post(
            url, data=form, headers={"Accept": "application/json"}, timeout=30
        )
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        raise LoginError(f"Failed to {what}: HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise LoginError(f"Failed to {what}: {type(e).__name__}") from e
    except ValueError as e:
        raise LoginError(f"Failed to parse response while trying to {what}") from e


async def _poll_for_token(
    client: httpx.AsyncClient, device: Dict[str, Any], console: Console
) -> str:
    interval = max(1, int(device.get("interval", 5)))
    expires_in = int(device.get("expires_in", 900))
    max_attempts = max(1, expires_in // interval)

    for _attempt in range(max_attempts):
        await asyncio.sleep(interval)

        token_data = await _post_form(
            client,
            GITHUB_TOKEN_URL,
            {
                "client_id": GITHUB_CLIENT_ID,
                "device_code": device["device_code"],
                "grant_type": DEVICE_GRANT_TYPE,
            },
            "request access token",
        )

        access_token = token_data.get("access_token")
        if access_token:
            return access_token

        error = token_data.get("error")
        if error == "authorization_pending":
            console.print(".", end="")
            continue
        if error == "slow_down":
            await asyncio.sleep(SLOW_DOWN_PENALTY)
            continue
        if error == "expired_token":
            raise LoginError("Device code expired, please try again")
        if error == "access_denied":
            raise LoginError("Access denied by user")
        if error:
            raise LoginError(
                f"OAuth error: {error} - {token_data.get('error_description', '')}"
            )

    raise LoginError("Failed to obtain access token (timeout)")


async def login(
    storage,
    account_name: str,
    console: Optional[Console] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> None:
    """Run the device flow and register `account_name` on success."""
    console = console or Console()
    console.print("\n[bold cyan]:locked_with_key: GitHub Copilot Login[/bold cyan]\n")

    async def _run(http: httpx.AsyncClient) -> str:
        console.print("Requesting device code...")
        device = await _post_form(
            http,
            GITHUB_DEVICE_CODE_URL,
            {"client_id": GITHUB_CLIENT_ID, "scope": GITHUB_SCOPES},
            "request device code",
        )
        if "device_code" not in device or "user_code" not in device:
            raise LoginError("Device code response is missing required fields")

        console.print(
            Panel(
                Text.from_markup(
                    f"Please visit: [bold]{device.get('verification_uri', 'https://github.com/login/device')}[/bold]\n"
                    f"And enter code: [bold yellow]{device['user_code']}[/bold yellow]"
                ),
                title="Authorize tokstat",
                style="bold blue",
                expand=False,
            )
        )
        console.print("Waiting for authorization", end="")
        return await _poll_for_token(http, device, console)

    if client is not None:
        access_token = await _run(client)
    else:
        async with httpx.AsyncClient() as new_client:
            access_token = await _run(new_client)

    console.print("\n[green]:white_check_mark: Authorization successful![/green]")

    credentials = {
        "access_token": access_token,
        "refresh_token": "",  # Device flow issues no refresh token
        "expires_at": (utc_now() + TOKEN_LIFETIME).isoformat(),
    }
    storage.store_credentials(account_name, json.dumps(credentials))
    storage.save_account(Account(name=account_name, provider="copilot"))
    lib_logger.info(f"Added Copilot account '{account_name}'")
