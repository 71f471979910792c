# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""Account Index: ordered account records in a single JSON document."""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..core.errors import AccountNotFoundError, StorageIOError
from ..core.types import Account, utc_now
from .documents import load_json_document, write_json_document


class AccountIndex:
    """
    Document shape: {"accounts": [Account, ...]}. Name is the unique key.

    Every mutation reloads, edits and fully rewrites the document.
    """

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> List[Account]:
        data = load_json_document(self.path, {"accounts": []})
        try:
            return [Account.from_dict(entry) for entry in data.get("accounts", [])]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageIOError(f"Failed to parse accounts index: {e}") from e

    def _save(self, accounts: List[Account]) -> None:
        write_json_document(
            self.path, {"accounts": [account.to_dict() for account in accounts]}
        )

    def list(self) -> List[Account]:
        return self._load()

    def get(self, name: str) -> Account:
        for account in self._load():
            if account.name == name:
                return account
        raise AccountNotFoundError(name)

    def contains(self, name: str) -> bool:
        return any(account.name == name for account in self._load())

    def upsert(self, account: Account) -> None:
        """Replace any record with the same name; the saved record goes last."""
        accounts = [a for a in self._load() if a.name != account.name]
        accounts.append(account)
        self._save(accounts)

    def remove(self, name: str) -> None:
        accounts = self._load()
        remaining = [a for a in accounts if a.name != name]
        if len(remaining) == len(accounts):
            raise AccountNotFoundError(name)
        self._save(remaining)

    def rename(
        self, old_name: str, new_name: str, when: Optional[datetime] = None
    ) -> Account:
        """Rename in place, keeping list position. Returns the updated record."""
        accounts = self._load()
        target = next((a for a in accounts if a.name == old_name), None)
        if target is None:
            raise AccountNotFoundError(old_name)
        target.name = new_name
        target.last_updated = when or utc_now()
        self._save(accounts)
        return target
