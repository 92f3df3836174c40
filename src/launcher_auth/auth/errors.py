"""Normalized authentication error vocabulary and provider error tables.

Each identity provider reports failures with its own codes: OAuth error
strings, Xbox Live ``XErr`` numbers, game-service error types, or plain HTTP
statuses. They are folded into ``AuthErrorKind`` at the point of contact via
the static tables below; orchestration code never inspects raw codes.
"""

from enum import Enum
from typing import Mapping, Optional


class AuthErrorKind(str, Enum):
    """Normalized authentication failure kinds."""

    INVALID_CREDENTIALS = "invalid_credentials"
    REQUIRES_SECOND_FACTOR = "requires_second_factor"
    RATE_LIMITED = "rate_limited"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    UNKNOWN = "unknown"


_HTTP_STATUS_CODES: dict[str, AuthErrorKind] = {
    "401": AuthErrorKind.INVALID_CREDENTIALS,
    "403": AuthErrorKind.INVALID_CREDENTIALS,
    "429": AuthErrorKind.RATE_LIMITED,
    "500": AuthErrorKind.PROVIDER_UNAVAILABLE,
    "502": AuthErrorKind.PROVIDER_UNAVAILABLE,
    "503": AuthErrorKind.PROVIDER_UNAVAILABLE,
    "504": AuthErrorKind.PROVIDER_UNAVAILABLE,
}

MICROSOFT_ERROR_CODES: Mapping[str, AuthErrorKind] = {
    **_HTTP_STATUS_CODES,
    "404": AuthErrorKind.INVALID_CREDENTIALS,
    # OAuth token endpoint
    "invalid_grant": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_request": AuthErrorKind.INVALID_CREDENTIALS,
    "unauthorized_client": AuthErrorKind.INVALID_CREDENTIALS,
    "interaction_required": AuthErrorKind.INVALID_CREDENTIALS,
    "temporarily_unavailable": AuthErrorKind.PROVIDER_UNAVAILABLE,
    "server_error": AuthErrorKind.PROVIDER_UNAVAILABLE,
    # XSTS XErr codes
    "2148916233": AuthErrorKind.INVALID_CREDENTIALS,  # no Xbox account
    "2148916235": AuthErrorKind.INVALID_CREDENTIALS,  # Xbox Live unavailable in region
    "2148916236": AuthErrorKind.INVALID_CREDENTIALS,  # adult verification required
    "2148916237": AuthErrorKind.INVALID_CREDENTIALS,  # adult verification required
    "2148916238": AuthErrorKind.INVALID_CREDENTIALS,  # child account, needs family
    # Game service
    "NOT_FOUND": AuthErrorKind.INVALID_CREDENTIALS,  # account owns no game profile
}

PASSWORD_ERROR_CODES: Mapping[str, AuthErrorKind] = {
    **_HTTP_STATUS_CODES,
    "422": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_code": AuthErrorKind.INVALID_CREDENTIALS,
    "invalid_token": AuthErrorKind.INVALID_CREDENTIALS,
    "user_banned": AuthErrorKind.INVALID_CREDENTIALS,
    "email_not_verified": AuthErrorKind.INVALID_CREDENTIALS,
    "2fa": AuthErrorKind.REQUIRES_SECOND_FACTOR,
    "maintenance": AuthErrorKind.PROVIDER_UNAVAILABLE,
}

_DESCRIPTIONS: dict[AuthErrorKind, tuple[str, str]] = {
    AuthErrorKind.INVALID_CREDENTIALS: (
        "Login failed",
        "The provider rejected these credentials. Please sign in again.",
    ),
    AuthErrorKind.REQUIRES_SECOND_FACTOR: (
        "Second factor required",
        "Enter the one-time code from your authenticator to finish signing in.",
    ),
    AuthErrorKind.RATE_LIMITED: (
        "Too many attempts",
        "The provider is rate limiting requests. Wait a moment and try again.",
    ),
    AuthErrorKind.PROVIDER_UNAVAILABLE: (
        "Provider unavailable",
        "The authentication server is unreachable or under maintenance.",
    ),
    AuthErrorKind.UNKNOWN: (
        "Unknown error",
        "An unknown error occurred during login. Check the logs for details.",
    ),
}


def map_error(table: Mapping[str, AuthErrorKind], code: Optional[str]) -> AuthErrorKind:
    """
    Map a provider error code to its normalized kind.

    Args:
        table: Provider error table
        code: Raw provider error code (any type is stringified)

    Returns:
        Normalized AuthErrorKind, UNKNOWN when the code is not in the table
    """
    if code is None:
        return AuthErrorKind.UNKNOWN
    return table.get(str(code), AuthErrorKind.UNKNOWN)


def describe_error(kind: AuthErrorKind) -> tuple[str, str]:
    """Return a user-facing (title, description) pair for an error kind."""
    return _DESCRIPTIONS[kind]
