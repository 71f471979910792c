# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Error taxonomy for the tokstat library.

Storage and provider layers raise these unchanged; the dashboard turns
them into status text and the CLI into an error panel.
"""

from typing import Optional


class TokstatError(Exception):
    """Base class for every error raised by the library."""


class AccountNotFoundError(TokstatError):
    """Account (or its credential) does not exist."""

    def __init__(self, name: str, what: str = "Account"):
        self.name = name
        super().__init__(f"{what} '{name}' not found")


class AccountExistsError(TokstatError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"An account named '{name}' already exists")


class ValidationError(TokstatError):
    """User input rejected before any storage call (e.g. empty name)."""


class StorageIOError(TokstatError):
    """Document read/write or host secret-store failure."""


class UnknownProviderError(TokstatError):
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown provider: {provider}")


class LoginError(TokstatError):
    """Interactive login flow did not produce a credential."""


# =============================================================================
# PROVIDER FAILURES
# =============================================================================


class ProviderError(TokstatError):
    """Base for failures reported by a provider adapter."""


class CredentialExpiredError(ProviderError):
    def __init__(self, message: str = "Access token expired, please login again"):
        super().__init__(message)


class UnauthorizedError(ProviderError):
    def __init__(self, message: str = "Provider rejected the credential (HTTP 401)"):
        super().__init__(message)


class NotSupportedByVendorError(ProviderError):
    def __init__(self, message: str = "Quota endpoint not available for this account"):
        super().__init__(message)


class UpstreamError(ProviderError):
    """Non-2xx status, malformed body or transport failure."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)
