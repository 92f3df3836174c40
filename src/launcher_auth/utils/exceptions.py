"""Custom exceptions for the launcher authentication core."""

from typing import Optional

from ..auth.errors import AuthErrorKind, describe_error


class LauncherAuthError(Exception):
    """Base exception for launcher authentication errors."""


class AuthenticationError(LauncherAuthError):
    """Raised when an account cannot be authenticated.

    Carries the normalized ``AuthErrorKind`` so callers can decide how to
    present the failure without parsing provider payloads.
    """

    def __init__(
        self,
        kind: AuthErrorKind,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        self.kind = kind
        self.error_code = error_code
        self.title, self.description = describe_error(kind)
        super().__init__(message or self.description)


class AccountStoreError(LauncherAuthError):
    """Raised when account store operations fail."""


class AccountNotFoundError(AccountStoreError):
    """Raised when an account id is not present in the store."""


class ConfigurationError(LauncherAuthError):
    """Raised when configuration is invalid."""
