# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
AccountStorage facade.

This is the main public API for account persistence. It composes the
credential vault, the account index and the quota history log into
account-level operations, so callers never observe a partially migrated
account.
"""

import logging
from typing import List, Optional

from ..config import Settings
from ..core.errors import AccountExistsError, StorageIOError, ValidationError
from ..core.types import Account, QuotaInfo, QuotaSnapshot, utc_now
from .history import QuotaHistoryLog
from .index import AccountIndex
from .vault import CredentialVault

lib_logger = logging.getLogger("tokstat_library")


class AccountStorage:
    """
    Facade over the three stores sharing the account name as key.

    Usage:
        storage = AccountStorage.from_settings(load_settings())
        storage.store_credentials("work", blob)   # credential first
        storage.save_account(Account("work", "copilot"))
    """

    def __init__(
        self,
        index: AccountIndex,
        vault: CredentialVault,
        history: QuotaHistoryLog,
    ):
        self.index = index
        self.vault = vault
        self.history = history

    @classmethod
    def from_settings(cls, settings: Settings, keyring_backend=None) -> "AccountStorage":
        return cls(
            index=AccountIndex(settings.index_path),
            vault=CredentialVault(settings.keyring_service, backend=keyring_backend),
            history=QuotaHistoryLog(settings.history_path, settings.history_size),
        )

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    def list_accounts(self) -> List[Account]:
        return self.index.list()

    def get_account(self, name: str) -> Account:
        return self.index.get(name)

    def save_account(self, account: Account) -> None:
        """
        Upsert the account record.

        The credential must already be stored: login flows store the
        credential first so a crash can orphan a credential but never an
        account record.
        """
        self.index.upsert(account)
        lib_logger.debug(f"Saved account '{account.name}' ({account.provider})")

    def remove_account(self, name: str) -> None:
        """
        Remove an account with its credential and history.

        Order: validate existence, delete dependent state, then drop the
        index entry, so a failure partway leaves the account listed for a
        retry. History removal is best-effort.
        """
        self.index.get(name)
        self.vault.delete(name)
        if not self.history.remove(name):
            lib_logger.debug(f"No quota history removed for '{name}'")
        self.index.remove(name)
        lib_logger.info(f"Removed account '{name}'")

    def rename_account(self, old_name: str, new_name: str) -> Optional[Account]:
        """
        Rename an account across vault, history and index.

        Raises:
            ValidationError: new_name is empty
            AccountExistsError: new_name already names an account
            AccountNotFoundError: old_name is unknown, or has no credential

        Returns:
            The updated account record, or None when the name is unchanged
        """
        if not new_name or not new_name.strip():
            raise ValidationError("Name cannot be empty")
        if old_name == new_name:
            return None

        if self.index.contains(new_name):
            raise AccountExistsError(new_name)
        self.index.get(old_name)

        # Index is untouched until the credential has been copied
        credentials = self.vault.get(old_name)
        self.vault.store(new_name, credentials)

        try:
            self.vault.delete(old_name)
            self.history.rename(old_name, new_name)
            account = self.index.rename(old_name, new_name, when=utc_now())
        except StorageIOError:
            self._rollback_rename(old_name, new_name, credentials)
            raise

        lib_logger.info(f"Renamed account '{old_name}' -> '{new_name}'")
        return account

    def _rollback_rename(self, old_name: str, new_name: str, credentials: str) -> None:
        try:
            self.vault.store(old_name, credentials)
            self.vault.delete(new_name)
            self.history.rename(new_name, old_name)
        except StorageIOError as e:
            lib_logger.warning(
                f"Rollback of rename '{old_name}' -> '{new_name}' incomplete: {e}"
            )

    # =========================================================================
    # CREDENTIALS
    # =========================================================================

    def store_credentials(self, name: str, credentials: str) -> None:
        self.vault.store(name, credentials)

    def get_credentials(self, name: str) -> str:
        return self.vault.get(name)

    # =========================================================================
    # QUOTA HISTORY
    # =========================================================================

    def record_snapshot(self, name: str, quota: QuotaInfo) -> bool:
        """Append a snapshot of `quota` if it differs from the last one."""
        return self.history.append_if_changed(name, QuotaSnapshot.from_quota_info(quota))

    def get_quota_history(self, name: str) -> List[QuotaSnapshot]:
        return self.history.history(name)
