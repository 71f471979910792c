# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Dashboard frame rendering.

`render_dashboard` is a pure function of a DashboardView snapshot; it
never touches storage, providers or the terminal.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from rich.align import Align
from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tokstat_library.core.types import Account, QuotaInfo

from .dashboard_modes import (
    CreatingAccount,
    CreatingAccountName,
    Deleting,
    Mode,
    Renaming,
    Viewing,
)
from .formatting import create_progress_bar, format_datetime, usage_lines

# =============================================================================
# DISPLAY CONFIGURATION
# =============================================================================

ACCOUNT_LIST_RATIO = 3  # Accounts column : details column = 3 : 7
DETAILS_RATIO = 7
GAUGE_WIDTH = 30

SELECTED_STYLE = "bold black on magenta"
KEY_STYLE = "bold yellow"

FOOTER_KEYS = (
    ("q", "to quit"),
    ("R", "to refresh"),
    ("r", "to rename"),
    ("n", "for new"),
    ("d", "to delete"),
    ("↑↓", "to navigate"),
)


@dataclass(frozen=True)
class DashboardView:
    """Everything the renderer is allowed to see."""

    mode: Mode
    accounts: Tuple[Account, ...]
    quotas: Tuple[Optional[QuotaInfo], ...]
    selected_index: int
    status_message: str
    providers: Tuple[Tuple[str, str], ...]

    @property
    def selected_account(self) -> Optional[Account]:
        if 0 <= self.selected_index < len(self.accounts):
            return self.accounts[self.selected_index]
        return None

    @property
    def selected_quota(self) -> Optional[QuotaInfo]:
        if 0 <= self.selected_index < len(self.quotas):
            return self.quotas[self.selected_index]
        return None


def _key_hint(pairs: Sequence[Tuple[str, str]]) -> Text:
    text = Text("Press ")
    for idx, (key, action) in enumerate(pairs):
        text.append(key, style=KEY_STYLE)
        text.append(f" {action}")
        text.append(", " if idx < len(pairs) - 1 else "")
    return text


def _render_header() -> Panel:
    title = Text.assemble(
        ("tokstat", "bold bright_magenta"),
        (" - ", "bold magenta"),
        ("Token Quota Monitor", "bold bright_cyan"),
    )
    return Panel(Align.center(title), border_style="magenta")


def _render_footer(view: DashboardView) -> Panel:
    return Panel(
        Group(Align.center(_key_hint(FOOTER_KEYS)), Align.center(Text(view.status_message))),
        border_style="white",
    )


def _render_account_list(view: DashboardView) -> Panel:
    if not view.accounts:
        welcome = Text.from_markup(
            "\nWelcome to [bold bright_magenta]tokstat[/bold bright_magenta]\n\n"
            "[grey62]No accounts configured yet.[/grey62]\n\n"
            "[grey62]Press[/grey62] [bold yellow]n[/bold yellow] "
            "[grey62]to add your first account[/grey62]",
            justify="center",
        )
        return Panel(welcome, title="Accounts")

    lines = Text()
    for idx, account in enumerate(view.accounts):
        style = SELECTED_STYLE if idx == view.selected_index else ""
        lines.append(f"{account.name} ({account.provider})", style=style)
        if idx < len(view.accounts) - 1:
            lines.append("\n")
    return Panel(lines, title="Accounts")


def _render_getting_started(view: DashboardView) -> Panel:
    text = Text.from_markup(
        "\n[bold bright_cyan]Getting Started[/bold bright_cyan]\n\n"
        "[grey62]tokstat monitors token quotas across multiple AI providers.[/grey62]\n\n"
        "[bold]Supported providers:[/bold]\n"
    )
    for _, display_name in view.providers:
        text.append("  • ", style="magenta")
        text.append(f"{display_name}\n")
    text.append_text(
        Text.from_markup(
            "\n[grey62]Press[/grey62] [bold yellow]n[/bold yellow] "
            "[grey62]to add an account and get started[/grey62]"
        )
    )
    return Panel(text, title="Quota Details")


def _render_quota_details(view: DashboardView) -> RenderableType:
    if not view.accounts:
        return _render_getting_started(view)

    account = view.selected_account
    quota = view.selected_quota
    if account is None or quota is None:
        if view.status_message.startswith("Error"):
            message = f"Failed to fetch quota data\n\n{view.status_message}"
        else:
            message = "No quota data available"
        return Panel(Align.center(Text(message), vertical="middle"), title="Quota Details")

    info = Table.grid(padding=(0, 1))
    info.add_column(style="bold")
    info.add_column()
    # User-chosen names are plain text, never markup
    info.add_row("Provider:", Text(account.provider))
    info.add_row("Account:", Text(account.name))
    info.add_row("Last Updated:", format_datetime(quota.last_updated, "%Y-%m-%d %H:%M:%S"))
    info.add_row("Quota Resets:", format_datetime(quota.reset_date, "%Y-%m-%d"))

    gauges: List[RenderableType] = [Panel(info, title="Account Info")]
    for line in usage_lines(quota):
        if line.percent_used is not None:
            bar = create_progress_bar(line.percent_used, GAUGE_WIDTH)
            body = Text.assemble(
                (bar, line.color), "  ", (line.describe(), line.color)
            )
        else:
            body = Text(line.describe(), style="bright_yellow")
        gauges.append(Panel(body, title=line.label))
    return Group(*gauges)


# =============================================================================
# MODE PROMPTS
# =============================================================================


def _render_rename_prompt(view: DashboardView, mode: Renaming) -> Panel:
    body = Text.assemble(
        ("Rename Account\n", "bold"),
        "Press Enter to confirm, Esc to cancel\n\n",
        (mode.buffer, "bold"),
        ("█", "blink"),
    )
    return Panel(body, title="Rename Account", border_style="cyan")


def _render_provider_picker(view: DashboardView, mode: CreatingAccount) -> Panel:
    items = Text()
    for idx, (provider_id, display_name) in enumerate(view.providers):
        style = SELECTED_STYLE if idx == mode.selected_provider else ""
        items.append(f"{provider_id} - {display_name}", style=style)
        if idx < len(view.providers) - 1:
            items.append("\n")
    return Panel(items, title="Select Provider", title_align="center", border_style="cyan")


def _render_name_prompt(view: DashboardView, mode: CreatingAccountName) -> Panel:
    body = Text.assemble(
        ("Create ", "bold"),
        (mode.provider_name, "bold bright_magenta"),
        (" Account\n\n", "bold"),
        "Enter an optional name (or press Enter for default):\n",
        (mode.buffer, "bold"),
        ("█\n\n", "blink"),
        ("Enter", "yellow"),
        " to confirm, ",
        ("Esc", "yellow"),
        " to cancel",
    )
    return Panel(body, title="Account Name", title_align="center", border_style="cyan")


def _render_delete_prompt(view: DashboardView, mode: Deleting) -> Panel:
    account = view.selected_account
    body = Text.assemble(
        ("Delete Account?\n\n", "bold red"),
        "Are you sure you want to delete account ",
        (account.name if account else "", "bold yellow"),
        "?\n\nPress Enter to confirm, Esc to cancel",
        justify="center",
    )
    return Panel(body, title="Confirm Delete", title_align="center", border_style="red")


def _render_mode_prompt(view: DashboardView) -> Optional[Panel]:
    mode = view.mode
    if isinstance(mode, Viewing):
        return None
    if isinstance(mode, Renaming):
        return _render_rename_prompt(view, mode)
    if isinstance(mode, CreatingAccount):
        return _render_provider_picker(view, mode)
    if isinstance(mode, CreatingAccountName):
        return _render_name_prompt(view, mode)
    if isinstance(mode, Deleting):
        return _render_delete_prompt(view, mode)
    raise TypeError(f"Unhandled dashboard mode: {type(mode).__name__}")


def render_dashboard(view: DashboardView) -> Layout:
    """Build one full-screen frame."""
    layout = Layout(name="root")
    layout.split_column(
        Layout(_render_header(), name="header", size=3),
        Layout(name="body"),
        Layout(_render_footer(view), name="footer", size=4),
    )

    details = _render_quota_details(view)
    prompt = _render_mode_prompt(view)
    if prompt is not None:
        # Prompts take over the details column while a mode is active
        details = prompt

    layout["body"].split_row(
        Layout(_render_account_list(view), name="accounts", ratio=ACCOUNT_LIST_RATIO),
        Layout(details, name="details", ratio=DETAILS_RATIO),
    )
    return layout
