# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Static (non-interactive) quota report.

Renders one fetch pass over all accounts in one of three formats:
    fancy  - rich panels per account with severity icons
    plain  - one line per metric, no styling
    json   - machine-readable list of objects
"""

import json
from typing import Any, Dict, List, Sequence, Tuple, Union

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from tokstat_library.core.types import Account, QuotaInfo

from .formatting import create_progress_bar, format_datetime, usage_lines

REPORT_FORMATS = ("fancy", "plain", "json")

# Per account: the fetched quota, or the exception that fetch raised
ReportResult = Tuple[Account, Union[QuotaInfo, Exception]]


def _account_title(account: Account) -> str:
    return f"{account.name} ({account.provider})"


# =============================================================================
# FANCY
# =============================================================================


def _fancy_quota(quota: QuotaInfo) -> RenderableType:
    body = Text()
    for line in usage_lines(quota):
        if line.percent_used is not None:
            body.append(f"{line.icon} ", style=line.color)
            body.append(create_progress_bar(line.percent_used, 20), style=line.color)
            body.append(f"  {line.describe()}\n")
        else:
            body.append(f"  {line.describe()}\n", style="bright_yellow")
    if not body.plain:
        body.append("No usage reported\n", style="dim")
    body.append(f"Resets: {format_datetime(quota.reset_date, '%Y-%m-%d')}", style="dim")
    return body


def render_fancy(results: Sequence[ReportResult]) -> RenderableType:
    if not results:
        return Panel(
            Text.from_markup(
                "No accounts configured. Run [bold yellow]tokstat login <provider>[/bold yellow] to add one."
            ),
            title="tokstat",
            border_style="magenta",
        )

    panels = []
    for account, outcome in results:
        if isinstance(outcome, Exception):
            panels.append(
                Panel(
                    Text(f"✗ {outcome}", style="red"),
                    title=Text(_account_title(account)),
                    border_style="red",
                )
            )
        else:
            panels.append(
                Panel(
                    _fancy_quota(outcome),
                    title=Text(_account_title(account)),
                    border_style="cyan",
                )
            )
    return Group(*panels)


# =============================================================================
# PLAIN / JSON
# =============================================================================


def render_plain(results: Sequence[ReportResult]) -> str:
    if not results:
        return "No accounts configured."

    out: List[str] = []
    for account, outcome in results:
        out.append(_account_title(account))
        if isinstance(outcome, Exception):
            out.append(f"  Error: {outcome}")
            continue
        lines = usage_lines(outcome)
        if not lines:
            out.append("  No usage reported")
        for line in lines:
            out.append(f"  {line.describe()}")
        out.append(f"  Resets: {format_datetime(outcome.reset_date, '%Y-%m-%d')}")
    return "\n".join(out)


def report_records(results: Sequence[ReportResult]) -> List[Dict[str, Any]]:
    records = []
    for account, outcome in results:
        record: Dict[str, Any] = {"name": account.name, "provider": account.provider}
        if isinstance(outcome, Exception):
            record["error"] = str(outcome)
        else:
            record["quota"] = outcome.to_dict()
        records.append(record)
    return records


def render_json(results: Sequence[ReportResult]) -> str:
    return json.dumps(report_records(results), indent=2)


def render_report(results: Sequence[ReportResult], fmt: str = "fancy") -> RenderableType:
    """Dispatch to the renderer for `fmt`."""
    if fmt == "fancy":
        return render_fancy(results)
    if fmt == "plain":
        return render_plain(results)
    if fmt == "json":
        return render_json(results)
    raise ValueError(f"Unknown report format: {fmt}")


def print_report(console: Console, results: Sequence[ReportResult], fmt: str = "fancy") -> None:
    rendered = render_report(results, fmt)
    if isinstance(rendered, str):
        # Raw text, so rich markup in account names or errors is not interpreted
        console.print(rendered, markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(rendered)
