# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Interactive quota dashboard.

A single cooperative loop owns the terminal: render, poll the keyboard
with a short timeout, and on idle check whether the auto-refresh interval
has elapsed. Provider fetches run one account at a time; the UI does not
take input during a refresh pass. Login flows run with the terminal
suspended and always get it back afterwards.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from tokstat_library.auth import LOGIN_FLOWS, LoginFlow, default_account_name
from tokstat_library.config import DEFAULT_REFRESH_INTERVAL
from tokstat_library.core.errors import TokstatError
from tokstat_library.core.types import Account, QuotaInfo
from tokstat_library.providers import PROVIDERS, QuotaGateway
from tokstat_library.storage import AccountStorage

from .dashboard_modes import (
    CreatingAccount,
    CreatingAccountName,
    Deleting,
    Mode,
    Renaming,
    Viewing,
)
from .dashboard_render import DashboardView, render_dashboard
from .terminal import (
    KEY_BACKSPACE,
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESCAPE,
    KEY_UP,
    TerminalSession,
)

app_logger = logging.getLogger("tokstat_app")

INPUT_POLL_TIMEOUT = 0.1  # seconds

QUIT_KEYS = ("q", KEY_ESCAPE)
REFRESH_KEY = "R"
RENAME_KEY = "r"
NEW_KEY = "n"
DELETE_KEY = "d"
NEXT_KEYS = (KEY_DOWN, "j")
PREVIOUS_KEYS = (KEY_UP, "k")


def _is_text_key(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


class Dashboard:
    """
    Dashboard controller: account list, cached quotas and the mode machine.

    Args:
        storage: Account storage facade
        accounts: Initial in-memory account list
        gateway: Quota fetcher; defaults to a QuotaGateway over `storage`
        terminal: Terminal handle used for drawing, input and suspension
        login_flows: Provider tag -> login coroutine
        providers: (tag, display name) pairs offered when creating accounts
        refresh_interval: Idle auto-refresh interval in seconds
        clock: Monotonic clock for the refresh timer
        wall_clock: Unix time source for default account names
    """

    def __init__(
        self,
        storage: AccountStorage,
        accounts: Sequence[Account],
        gateway: Optional[Any] = None,
        terminal: Optional[TerminalSession] = None,
        login_flows: Optional[Mapping[str, LoginFlow]] = None,
        providers: Sequence[Tuple[str, str]] = tuple(PROVIDERS),
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ):
        if not providers:
            raise ValueError("At least one provider is required")
        self.storage = storage
        self.gateway = gateway or QuotaGateway(storage)
        self.terminal = terminal or TerminalSession()
        self.login_flows = dict(login_flows if login_flows is not None else LOGIN_FLOWS)
        self.providers: Tuple[Tuple[str, str], ...] = tuple(providers)
        self.refresh_interval = refresh_interval
        self._clock = clock
        self._wall_clock = wall_clock

        self.accounts: List[Account] = list(accounts)
        self.quotas: List[Optional[QuotaInfo]] = [None] * len(self.accounts)
        self.selected_index = 0
        self.mode: Mode = Viewing()
        self.status_message = "Loading..."
        self.should_quit = False
        self.last_refresh = self._clock()

        # One handler per mode; see dashboard_modes.MODE_TYPES
        self._handlers: Dict[type, Callable[[str], Awaitable[None]]] = {
            Viewing: self._handle_viewing,
            Renaming: self._handle_renaming,
            CreatingAccount: self._handle_creating_account,
            CreatingAccountName: self._handle_creating_account_name,
            Deleting: self._handle_deleting,
        }

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def selected_account(self) -> Optional[Account]:
        if 0 <= self.selected_index < len(self.accounts):
            return self.accounts[self.selected_index]
        return None

    def view(self) -> DashboardView:
        return DashboardView(
            mode=self.mode,
            accounts=tuple(self.accounts),
            quotas=tuple(self.quotas),
            selected_index=self.selected_index,
            status_message=self.status_message,
            providers=self.providers,
        )

    def next(self) -> None:
        if self.accounts:
            self.selected_index = (self.selected_index + 1) % len(self.accounts)

    def previous(self) -> None:
        if self.accounts:
            self.selected_index = (self.selected_index - 1) % len(self.accounts)

    def _reload_accounts(self) -> bool:
        """Re-read the index into memory. Returns False (with status) on failure."""
        try:
            self.accounts = self.storage.list_accounts()
        except TokstatError as e:
            self.status_message = f"Error reloading accounts: {e}"
            return False
        self.quotas = [None] * len(self.accounts)
        return True

    # =========================================================================
    # REFRESH
    # =========================================================================

    async def refresh_quotas(self) -> bool:
        """
        Fetch every account's quota, sequentially and in list order.

        A failed account leaves its slot empty and writes its error to the
        status line; when several fail, the last error is the one shown.

        Returns:
            True if every fetch succeeded
        """
        self.status_message = "Refreshing quota information..."
        self.quotas = [None] * len(self.accounts)
        has_error = False

        for idx, account in enumerate(self.accounts):
            try:
                quota = await self.gateway.fetch_quota(account)
            except Exception as e:
                app_logger.warning(f"Quota fetch failed for '{account.name}': {e}")
                self.status_message = f"Error fetching {account.name}: {e}"
                has_error = True
                continue

            self.quotas[idx] = quota
            try:
                self.storage.record_snapshot(account.name, quota)
            except TokstatError as e:
                app_logger.warning(f"Could not record quota history for '{account.name}': {e}")

        self.last_refresh = self._clock()
        if not has_error:
            self.status_message = f"Last updated: {time.strftime('%H:%M:%S')}"
        return not has_error

    async def tick(self) -> None:
        """Run the idle auto-refresh if its interval has elapsed."""
        if self._clock() - self.last_refresh >= self.refresh_interval:
            await self.refresh_quotas()

    async def _refresh_with_status(self, message: str) -> None:
        """Refresh, then show `message` unless the refresh reported an error."""
        if await self.refresh_quotas():
            self.status_message = message

    # =========================================================================
    # KEY HANDLING
    # =========================================================================

    async def handle_key(self, key: str) -> None:
        handler = self._handlers[type(self.mode)]
        await handler(key)

    async def _handle_viewing(self, key: str) -> None:
        if key in QUIT_KEYS:
            self.should_quit = True
        elif key == REFRESH_KEY:
            await self.refresh_quotas()
        elif key == RENAME_KEY:
            account = self.selected_account
            if account is not None:
                self.mode = Renaming(buffer=account.name)
                self.status_message = "Renaming mode: press Enter to confirm, Esc to cancel"
        elif key == NEW_KEY:
            self.mode = CreatingAccount(selected_provider=0)
            self.status_message = (
                "Select provider: ↑↓ to navigate, Enter to select, Esc to cancel"
            )
        elif key == DELETE_KEY:
            account = self.selected_account
            if account is not None:
                self.mode = Deleting()
                self.status_message = (
                    f"Delete account '{account.name}'? Press Enter to confirm, Esc to cancel"
                )
        elif key in NEXT_KEYS:
            self.next()
        elif key in PREVIOUS_KEYS:
            self.previous()

    async def _handle_renaming(self, key: str) -> None:
        mode = self.mode
        if key == KEY_ENTER:
            await self._confirm_rename(mode.buffer)
        elif key == KEY_ESCAPE:
            self.mode = Viewing()
            self.status_message = "Rename cancelled"
        elif key == KEY_BACKSPACE:
            self.mode = replace(mode, buffer=mode.buffer[:-1])
        elif _is_text_key(key):
            self.mode = replace(mode, buffer=mode.buffer + key)

    async def _confirm_rename(self, buffer: str) -> None:
        account = self.selected_account
        if account is None:
            self.mode = Viewing()
            return

        new_name = buffer.strip()
        if not new_name:
            # Stay in Renaming so the user can fix the name
            self.status_message = "Name cannot be empty"
            return

        self.mode = Viewing()
        try:
            updated = self.storage.rename_account(account.name, new_name)
        except TokstatError as e:
            self.status_message = f"Rename failed: {e}"
            return

        self.accounts[self.selected_index] = updated or replace(account, name=new_name)
        await self._refresh_with_status(f"Account renamed to '{new_name}'")

    async def _handle_creating_account(self, key: str) -> None:
        mode = self.mode
        if key == KEY_ENTER:
            provider_id, provider_name = self.providers[mode.selected_provider]
            self.mode = CreatingAccountName(
                provider_id=provider_id,
                provider_name=provider_name,
                buffer=default_account_name(provider_id, int(self._wall_clock())),
            )
            self.status_message = "Enter account name (optional, press Enter for default):"
        elif key == KEY_ESCAPE:
            self.mode = Viewing()
            self.status_message = "Account creation cancelled"
        elif key in NEXT_KEYS:
            last = len(self.providers) - 1
            self.mode = replace(mode, selected_provider=min(mode.selected_provider + 1, last))
        elif key in PREVIOUS_KEYS:
            self.mode = replace(mode, selected_provider=max(mode.selected_provider - 1, 0))

    async def _handle_creating_account_name(self, key: str) -> None:
        mode = self.mode
        if key == KEY_ENTER:
            await self._confirm_create(mode)
        elif key == KEY_ESCAPE:
            self.mode = Viewing()
            self.status_message = "Account creation cancelled"
        elif key == KEY_BACKSPACE:
            self.mode = replace(mode, buffer=mode.buffer[:-1])
        elif _is_text_key(key):
            self.mode = replace(mode, buffer=mode.buffer + key)

    async def _confirm_create(self, mode: CreatingAccountName) -> None:
        account_name = mode.buffer.strip() or default_account_name(
            mode.provider_id, int(self._wall_clock())
        )
        self.mode = Viewing()
        self.status_message = f"Creating {mode.provider_name} account..."

        login = self.login_flows.get(mode.provider_id)
        if login is None:
            self.status_message = f"Failed to add account: no login flow for {mode.provider_id}"
            return

        # Only login failures are reported here; a failed resume is fatal
        login_error: Optional[Exception] = None
        with self.terminal.suspended():
            try:
                await login(self.storage, account_name)
            except Exception as e:
                login_error = e

        if login_error is not None:
            app_logger.warning(f"Login for '{account_name}' failed: {login_error}")
            self.status_message = f"Failed to add account: {login_error}"
            return

        if not self._reload_accounts():
            return
        if self.accounts:
            self.selected_index = len(self.accounts) - 1
        await self._refresh_with_status(
            f"✓ {mode.provider_name} account '{account_name}' added successfully"
        )

    async def _handle_deleting(self, key: str) -> None:
        if key == KEY_ENTER:
            await self._confirm_delete()
        elif key == KEY_ESCAPE:
            self.mode = Viewing()
            self.status_message = "Delete cancelled"

    async def _confirm_delete(self) -> None:
        self.mode = Viewing()
        account = self.selected_account
        if account is None:
            return

        try:
            self.storage.remove_account(account.name)
        except TokstatError as e:
            self.status_message = f"Failed to delete account: {e}"
            return

        if not self._reload_accounts():
            return
        if not self.accounts:
            self.selected_index = 0
        elif self.selected_index >= len(self.accounts):
            self.selected_index = len(self.accounts) - 1
        await self._refresh_with_status(f"Account '{account.name}' deleted")

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def draw(self) -> None:
        self.terminal.draw(render_dashboard(self.view()))

    async def run_loop(self) -> None:
        """Loop until quit. The terminal must already be acquired."""
        self.draw()
        await self.refresh_quotas()

        while not self.should_quit:
            self.draw()
            key = self.terminal.read_key(INPUT_POLL_TIMEOUT)
            if key is None:
                await self.tick()
            else:
                await self.handle_key(key)


async def run(
    storage: AccountStorage,
    initial_accounts: Sequence[Account],
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    gateway: Optional[Any] = None,
    terminal: Optional[TerminalSession] = None,
) -> None:
    """
    Entry point: own the terminal until the user quits.

    Terminal setup failures propagate before the loop starts; a failure to
    take the terminal back after a login ends the run the same way.
    """
    terminal = terminal or TerminalSession()
    dashboard = Dashboard(
        storage,
        initial_accounts,
        gateway=gateway,
        terminal=terminal,
        refresh_interval=refresh_interval,
    )
    with terminal:
        await dashboard.run_loop()
