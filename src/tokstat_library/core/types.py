# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Shared type definitions for the tokstat library.

This module contains the dataclasses used across the storage layer,
the provider adapters and the dashboard.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# ACCOUNT TYPES
# =============================================================================


@dataclass
class Account:
    """
    A named account registered with one provider.

    The name is the unique key shared by the account index, the
    credential vault and the quota history.
    """

    name: str
    provider: str  # Provider tag, e.g. "copilot", "openrouter"
    email: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    last_updated: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "provider": self.provider,
            "created_at": _format_datetime(self.created_at),
            "last_updated": _format_datetime(self.last_updated),
        }
        # Omit email entirely when unknown
        if self.email is not None:
            data["email"] = self.email
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        return cls(
            name=data["name"],
            provider=data["provider"],
            email=data.get("email"),
            created_at=_parse_datetime(data.get("created_at")) or utc_now(),
            last_updated=_parse_datetime(data.get("last_updated")) or utc_now(),
        )


# =============================================================================
# QUOTA TYPES
# =============================================================================


@dataclass
class TokenUsage:
    """Usage counters reported by a provider. None = not reported."""

    tokens_used: Optional[int] = None
    requests_made: Optional[int] = None
    cost: Optional[float] = None


@dataclass
class TokenLimits:
    """Upper bounds reported by a provider. None = no known limit."""

    max_tokens: Optional[int] = None
    max_requests: Optional[int] = None
    max_cost: Optional[float] = None


@dataclass
class QuotaInfo:
    """
    Normalized result of a live quota fetch.

    Provider-agnostic; each adapter maps its wire format into this shape.
    Not persisted.
    """

    provider: str
    usage: TokenUsage
    limits: Optional[TokenLimits] = None
    reset_date: Optional[datetime] = None
    last_updated: datetime = field(default_factory=utc_now)
    account_name: str = ""  # Filled in by the gateway

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "account_name": self.account_name,
            "usage": {
                "tokens_used": self.usage.tokens_used,
                "requests_made": self.usage.requests_made,
                "cost": self.usage.cost,
            },
            "limits": (
                {
                    "max_tokens": self.limits.max_tokens,
                    "max_requests": self.limits.max_requests,
                    "max_cost": self.limits.max_cost,
                }
                if self.limits is not None
                else None
            ),
            "reset_date": _format_datetime(self.reset_date),
            "last_updated": _format_datetime(self.last_updated),
        }


@dataclass(frozen=True)
class QuotaSnapshot:
    """One immutable point in an account's usage history."""

    timestamp: datetime
    tokens_used: Optional[int] = None
    requests_made: Optional[int] = None
    cost: Optional[float] = None

    @classmethod
    def from_quota_info(cls, quota: QuotaInfo) -> "QuotaSnapshot":
        return cls(
            timestamp=quota.last_updated,
            tokens_used=quota.usage.tokens_used,
            requests_made=quota.usage.requests_made,
            cost=quota.usage.cost,
        )

    def has_changed_from(self, other: "QuotaSnapshot") -> bool:
        """Timestamps are ignored; only the three usage counters count."""
        return (
            self.tokens_used != other.tokens_used
            or self.requests_made != other.requests_made
            or self.cost != other.cost
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _format_datetime(self.timestamp),
            "tokens_used": self.tokens_used,
            "requests_made": self.requests_made,
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuotaSnapshot":
        return cls(
            timestamp=_parse_datetime(data.get("timestamp")) or utc_now(),
            tokens_used=data.get("tokens_used"),
            requests_made=data.get("requests_made"),
            cost=data.get("cost"),
        )


@dataclass
class QuotaHistory:
    """Per-account ordered snapshot sequence, oldest first."""

    account_name: str
    snapshots: List[QuotaSnapshot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_name": self.account_name,
            "snapshots": [s.to_dict() for s in self.snapshots],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuotaHistory":
        return cls(
            account_name=data["account_name"],
            snapshots=[QuotaSnapshot.from_dict(s) for s in data.get("snapshots", [])],
        )
