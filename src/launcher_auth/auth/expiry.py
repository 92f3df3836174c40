"""Token expiry policy.

Expiry instants are stamped locally from the lifetime the provider reports,
pulled forward by a fixed margin so that a token checked as valid is still
valid by the time the request using it lands.
"""

from typing import Optional

EXPIRY_MARGIN_SECONDS = 10


def compute_expiry(now_ms: int, lifetime_seconds: int) -> int:
    """
    Compute the local expiry instant for a freshly issued token.

    Args:
        now_ms: Current time in epoch milliseconds
        lifetime_seconds: Token lifetime reported by the provider

    Returns:
        Expiry instant in epoch milliseconds, never earlier than now_ms
    """
    usable_seconds = max(lifetime_seconds - EXPIRY_MARGIN_SECONDS, 0)
    return now_ms + usable_seconds * 1000


def is_expired(now_ms: int, expires_at: Optional[int]) -> bool:
    """Return True once now_ms has reached expires_at. No expiry counts as expired."""
    if expires_at is None:
        return True
    return now_ms >= expires_at
