# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Interaction modes of the dashboard.

Exactly one mode is active at a time. Every non-Viewing mode returns to
Viewing on confirm or cancel; the only two-step path is
CreatingAccount -> CreatingAccountName.
"""

from dataclasses import dataclass
from typing import Tuple, Type, Union


@dataclass(frozen=True)
class Viewing:
    pass


@dataclass(frozen=True)
class Renaming:
    buffer: str


@dataclass(frozen=True)
class CreatingAccount:
    selected_provider: int = 0


@dataclass(frozen=True)
class CreatingAccountName:
    provider_id: str
    provider_name: str
    buffer: str


@dataclass(frozen=True)
class Deleting:
    pass


Mode = Union[Viewing, Renaming, CreatingAccount, CreatingAccountName, Deleting]

MODE_TYPES: Tuple[Type, ...] = (
    Viewing,
    Renaming,
    CreatingAccount,
    CreatingAccountName,
    Deleting,
)
