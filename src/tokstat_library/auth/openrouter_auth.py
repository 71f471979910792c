# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""OpenRouter login: manual API key entry, validated against the key endpoint."""

import json
import logging
from typing import Optional

import httpx
from rich.console import Console
from rich.prompt import Prompt

from ..core.errors import LoginError, UnauthorizedError, ValidationError
from ..core.types import Account
from ..providers.openrouter_provider import OPENROUTER_KEY_URL

lib_logger = logging.getLogger("tokstat_library")


async def _validate_key(api_key: str, client: httpx.AsyncClient) -> None:
    try:
        response = await client.get(
            OPENROUTER_KEY_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=30,
        )
    except httpx.HTTPError as e:
        raise LoginError(f"Failed to validate API key: {type(e).__name__}") from e
    if not response.is_success:
        raise UnauthorizedError(f"Invalid API key: HTTP {response.status_code}")


async def login(
    storage,
    account_name: str,
    console: Optional[Console] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> None:
    console = console or Console()
    console.print("\n[bold cyan]:locked_with_key: OpenRouter Login[/bold cyan]\n")
    console.print("You can find your API key at: [bold]https://openrouter.ai/keys[/bold]\n")

    api_key = Prompt.ask(
        "Enter your OpenRouter API key", password=True, console=console, default=""
    ).strip()
    if not api_key:
        raise ValidationError("API key cannot be empty")

    with console.status("[bold]Validating API key...", spinner="dots"):
        if client is not None:
            await _validate_key(api_key, client)
        else:
            async with httpx.AsyncClient() as new_client:
                await _validate_key(api_key, new_client)

    console.print("[green]:white_check_mark: API key validated successfully![/green]")

    storage.store_credentials(account_name, json.dumps({"api_key": api_key}))
    storage.save_account(Account(name=account_name, provider="openrouter"))
    lib_logger.info(f"Added OpenRouter account '{account_name}'")
