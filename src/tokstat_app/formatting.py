# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Quota math and display formatting shared by the dashboard and the report.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple, Union

from tokstat_library.core.types import QuotaInfo

Number = Union[int, float]

# (upper bound of percent used, icon, color); anything above is critical
USAGE_LEVELS = (
    (50.0, "✓", "green"),
    (80.0, "⚠", "yellow"),
)
CRITICAL_LEVEL = ("✗", "red")


def format_number(count: int) -> str:
    """Format a counter for display (e.g., 125000 -> 125.0K)."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    elif count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def format_cost(cost: Optional[float]) -> str:
    if cost is None:
        return "-"
    return f"${cost:.2f}"


def format_datetime(dt: Optional[datetime], fmt: str = "%Y-%m-%d %H:%M UTC") -> str:
    if dt is None:
        return "Unknown"
    return dt.strftime(fmt)


def usage_ratio(used: Number, limit: Number) -> Tuple[Number, float]:
    """
    Remaining amount and percent used.

    Remaining saturates at zero; percent is not capped, so overuse shows
    above 100. A zero limit reports 0.0 percent.
    """
    remaining = max(limit - used, 0)
    percent_used = (used / limit) * 100.0 if limit > 0 else 0.0
    return remaining, percent_used


def usage_indicator(percent_used: float) -> Tuple[str, str]:
    """Return (icon, color) for a percent-used value."""
    for bound, icon, color in USAGE_LEVELS:
        if percent_used < bound:
            return icon, color
    return CRITICAL_LEVEL


def create_progress_bar(percent: Optional[float], width: int = 10) -> str:
    """Create a text-based progress bar."""
    if percent is None:
        return "░" * width
    filled = min(width, max(0, int(percent / 100 * width)))
    return "▓" * filled + "░" * (width - filled)


@dataclass
class UsageLine:
    """One displayable usage dimension of a QuotaInfo."""

    label: str
    used: str
    limit: Optional[str] = None
    remaining: Optional[str] = None
    percent_used: Optional[float] = None

    @property
    def icon(self) -> str:
        if self.percent_used is None:
            return ""
        return usage_indicator(self.percent_used)[0]

    @property
    def color(self) -> str:
        if self.percent_used is None:
            return "bright_yellow"
        return usage_indicator(self.percent_used)[1]

    def describe(self) -> str:
        """Plain-text rendering, e.g. 'Requests: 120 / 100 (0 remaining, 120.0%)'."""
        if self.limit is None:
            return f"{self.label}: {self.used}"
        extra = []
        if self.remaining is not None:
            extra.append(f"{self.remaining} remaining")
        extra.append(f"{self.percent_used:.1f}%")
        return f"{self.label}: {self.used} / {self.limit} ({', '.join(extra)})"


def usage_lines(quota: QuotaInfo) -> List[UsageLine]:
    """Build the request / token / cost lines a quota can report, in that order."""
    limits = quota.limits
    lines: List[UsageLine] = []

    requests = quota.usage.requests_made
    if requests is not None:
        max_requests = limits.max_requests if limits else None
        if max_requests is not None:
            remaining, percent = usage_ratio(requests, max_requests)
            lines.append(
                UsageLine(
                    "Requests",
                    format_number(requests),
                    format_number(max_requests),
                    format_number(remaining),
                    percent,
                )
            )
        else:
            lines.append(UsageLine("Requests", format_number(requests)))

    tokens = quota.usage.tokens_used
    if tokens is not None:
        max_tokens = limits.max_tokens if limits else None
        if max_tokens is not None:
            _, percent = usage_ratio(tokens, max_tokens)
            lines.append(
                UsageLine(
                    "Tokens",
                    format_number(tokens),
                    format_number(max_tokens),
                    percent_used=percent,
                )
            )
        else:
            lines.append(UsageLine("Tokens", format_number(tokens)))

    cost = quota.usage.cost
    if cost is not None:
        max_cost = limits.max_cost if limits else None
        if max_cost is not None:
            _, percent = usage_ratio(cost, max_cost)
            lines.append(
                UsageLine(
                    "Cost", format_cost(cost), format_cost(max_cost), percent_used=percent
                )
            )
        else:
            lines.append(UsageLine("Cost", format_cost(cost)))

    return lines
