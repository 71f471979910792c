# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Credential Vault backed by the host's secret store.

One entry per account: service = application namespace, username =
account name, password = opaque serialized credential blob. No caching;
every call goes to the secret store.
"""

import logging
from typing import Any, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..core.errors import AccountNotFoundError, StorageIOError

lib_logger = logging.getLogger("tokstat_library")


def mask_secret(secret: str, visible: int = 4) -> str:
    """Mask a secret for log output, keeping only a short prefix."""
    if not secret:
        return ""
    if len(secret) <= visible * 2:
        return "*" * len(secret)
    return f"{secret[:visible]}...({len(secret)} chars)"


class CredentialVault:
    """
    Opaque string blobs keyed by account name.

    Args:
        service: Secret-store namespace shared by all accounts
        backend: Object exposing keyring's get/set/delete_password API.
                 Defaults to the `keyring` module (the OS backend).
    """

    def __init__(self, service: str = "tokstat", backend: Optional[Any] = None):
        self.service = service
        self._keyring = backend if backend is not None else keyring

    def store(self, name: str, blob: str) -> None:
        try:
            self._keyring.set_password(self.service, name, blob)
        except KeyringError as e:
            raise StorageIOError(
                f"Failed to store credentials for '{name}' in secret store: {e}"
            ) from e
        lib_logger.debug(f"Stored credentials for '{name}' ({mask_secret(blob)})")

    def get(self, name: str) -> str:
        try:
            blob = self._keyring.get_password(self.service, name)
        except KeyringError as e:
            raise StorageIOError(
                f"Failed to retrieve credentials for '{name}' from secret store: {e}"
            ) from e
        if blob is None:
            raise AccountNotFoundError(name, what="Credentials for account")
        return blob

    def delete(self, name: str) -> None:
        """Delete an entry. A missing entry is not an error."""
        try:
            self._keyring.delete_password(self.service, name)
        except PasswordDeleteError:
            lib_logger.debug(f"No stored credentials for '{name}' to delete")
        except KeyringError as e:
            raise StorageIOError(
                f"Failed to delete credentials for '{name}' from secret store: {e}"
            ) from e
