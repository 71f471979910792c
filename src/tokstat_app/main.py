# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""Command-line entry point: `tokstat [--format FMT] [COMMAND]`."""

import argparse
import asyncio
import json
import logging
import sys
import time
from typing import List, Optional, Sequence

import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tokstat_library import __version__
from tokstat_library.auth import default_account_name, get_login_flow
from tokstat_library.config import Settings, load_settings
from tokstat_library.core.errors import TokstatError
from tokstat_library.core.types import Account
from tokstat_library.providers import PROVIDER_CLASSES, QuotaGateway, provider_display_name
from tokstat_library.storage import AccountStorage

from . import dashboard
from .formatting import format_cost, format_datetime, format_number
from .report import REPORT_FORMATS, ReportResult, print_report

app_logger = logging.getLogger("tokstat_app")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
DASHBOARD_LOG_FILE = "tokstat.log"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokstat",
        description="Monitor token quotas across multiple AI providers.",
    )
    parser.add_argument(
        "--format",
        choices=REPORT_FORMATS,
        default="fancy",
        help="Output format for reports (default: fancy).",
    )
    parser.add_argument(
        "--config-dir",
        metavar="PATH",
        default=None,
        help="Directory holding accounts.json and quota_history.json.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    login = subparsers.add_parser("login", help="Add and login to a new provider account.")
    login.add_argument("provider", choices=sorted(PROVIDER_CLASSES), help="Provider name.")
    login.add_argument("-n", "--name", default=None, help="Account name/alias.")

    subparsers.add_parser("list", help="List all configured accounts.")
    subparsers.add_parser("dashboard", help="Open the interactive quota dashboard.")

    remove = subparsers.add_parser("remove", help="Remove an account.")
    remove.add_argument("name", help="Account name to remove.")

    refresh = subparsers.add_parser("refresh", help="Refresh quota information.")
    refresh.add_argument(
        "name", nargs="?", default=None, help="Specific account (all if omitted)."
    )

    history = subparsers.add_parser("history", help="Show recorded quota history.")
    history.add_argument("name", help="Account name.")

    subparsers.add_parser("version", help="Show version information.")
    return parser


def configure_logging(settings: Settings, verbose: bool = False, to_file: bool = False) -> None:
    """
    Configure root logging once.

    With `to_file`, records go to tokstat.log in the config directory so
    they cannot draw over the full-screen dashboard.
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    if to_file:
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            filename=str(settings.config_dir / DASHBOARD_LOG_FILE),
            encoding="utf-8",
        )
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


# =============================================================================
# COMMANDS
# =============================================================================


async def fetch_results(
    storage: AccountStorage, accounts: Sequence[Account], timeout: float
) -> List[ReportResult]:
    """Fetch every account once, recording history for each success."""
    gateway = QuotaGateway(storage, timeout=timeout)
    results: List[ReportResult] = []
    async with httpx.AsyncClient(timeout=timeout) as client:
        for account in accounts:
            try:
                quota = await gateway.fetch_quota(account, client=client)
            except Exception as e:
                app_logger.warning(f"Quota fetch failed for '{account.name}': {e}")
                results.append((account, e))
                continue
            try:
                storage.record_snapshot(account.name, quota)
            except TokstatError as e:
                app_logger.warning(f"Could not record quota history for '{account.name}': {e}")
            results.append((account, quota))
    return results


async def cmd_status(console, storage, settings, args) -> int:
    accounts = storage.list_accounts()
    results = await fetch_results(storage, accounts, settings.http_timeout)
    print_report(console, results, args.format)
    if args.format == "fancy" and accounts:
        console.print(
            "[dim]Tip: run 'tokstat dashboard' for an interactive view[/dim]"
        )
    return 0


async def cmd_refresh(console, storage, settings, args) -> int:
    if args.name:
        accounts = [storage.get_account(args.name)]
    else:
        accounts = storage.list_accounts()
    results = await fetch_results(storage, accounts, settings.http_timeout)
    print_report(console, results, args.format)
    # A single named account that failed is a command failure
    if args.name and isinstance(results[0][1], Exception):
        return 1
    return 0


async def cmd_login(console, storage, settings, args) -> int:
    login = get_login_flow(args.provider)
    account_name = (args.name or "").strip() or default_account_name(
        args.provider, int(time.time())
    )
    await login(storage, account_name, console=console)
    console.print(
        f"[green]✓[/green] Added {provider_display_name(args.provider)} "
        f"account '[bold]{escape(account_name)}[/bold]'"
    )
    return 0


async def cmd_list(console, storage, settings, args) -> int:
    accounts = storage.list_accounts()
    if args.format == "json":
        console.print_json(json.dumps([account.to_dict() for account in accounts]))
        return 0
    if not accounts:
        console.print("No accounts configured. Use 'tokstat login' to add an account.")
        return 0
    if args.format == "plain":
        for account in accounts:
            console.print(f"{account.name} ({account.provider})", markup=False, highlight=False)
        return 0

    table = Table(title="Configured Accounts", title_style="bold bright_magenta")
    table.add_column("Name", style="bold")
    table.add_column("Provider", style="cyan")
    table.add_column("Email", style="dim")
    table.add_column("Added", style="dim")
    for account in accounts:
        table.add_row(
            Text(account.name),
            provider_display_name(account.provider),
            Text(account.email or "-"),
            format_datetime(account.created_at, "%Y-%m-%d"),
        )
    console.print(table)
    return 0


async def cmd_remove(console, storage, settings, args) -> int:
    storage.remove_account(args.name)
    console.print(f"[green]✓[/green] Removed account '[bold]{escape(args.name)}[/bold]'")
    return 0


async def cmd_history(console, storage, settings, args) -> int:
    storage.get_account(args.name)
    snapshots = storage.get_quota_history(args.name)
    if args.format == "json":
        console.print_json(json.dumps([snapshot.to_dict() for snapshot in snapshots]))
        return 0
    if not snapshots:
        console.print(f"No quota history recorded for '{args.name}'.", markup=False)
        return 0

    table = Table(title=Text(f"Quota History: {args.name}"), title_style="bold bright_magenta")
    table.add_column("Timestamp")
    table.add_column("Tokens", justify="right")
    table.add_column("Requests", justify="right")
    table.add_column("Cost", justify="right")
    for snapshot in snapshots:
        table.add_row(
            format_datetime(snapshot.timestamp, "%Y-%m-%d %H:%M:%S"),
            "-" if snapshot.tokens_used is None else format_number(snapshot.tokens_used),
            "-" if snapshot.requests_made is None else format_number(snapshot.requests_made),
            format_cost(snapshot.cost),
        )
    console.print(table)
    return 0


async def cmd_dashboard(console, storage, settings, args) -> int:
    await dashboard.run(
        storage,
        storage.list_accounts(),
        refresh_interval=settings.refresh_interval,
        gateway=QuotaGateway(storage, timeout=settings.http_timeout),
    )
    return 0


async def cmd_version(console, storage, settings, args) -> int:
    console.print(f"tokstat {__version__}", markup=False, highlight=False)
    return 0


COMMANDS = {
    None: cmd_status,
    "login": cmd_login,
    "list": cmd_list,
    "dashboard": cmd_dashboard,
    "remove": cmd_remove,
    "refresh": cmd_refresh,
    "history": cmd_history,
    "version": cmd_version,
}


def main(
    argv: Optional[Sequence[str]] = None,
    console: Optional[Console] = None,
    storage: Optional[AccountStorage] = None,
) -> int:
    """Parse `argv`, run the command and return the process exit status."""
    args = build_parser().parse_args(argv)
    console = console or Console()

    try:
        settings = load_settings(args.config_dir)
        configure_logging(settings, args.verbose, to_file=args.command == "dashboard")
        if storage is None:
            storage = AccountStorage.from_settings(settings)
        return asyncio.run(COMMANDS[args.command](console, storage, settings, args))
    except TokstatError as e:
        console.print(Panel(Text(str(e)), title="Error", border_style="red", expand=False))
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130


def run_cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run_cli()
