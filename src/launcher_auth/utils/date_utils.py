"""Clock helpers. Instants are epoch milliseconds throughout the package."""

import time
from datetime import datetime
from typing import Optional

import pytz


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """
    Convert epoch milliseconds to an aware UTC datetime.

    Args:
        timestamp_ms: Epoch milliseconds

    Returns:
        UTC datetime
    """
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=pytz.utc)


def format_expiry(timestamp_ms: Optional[int], target_tz: str = "UTC") -> str:
    """Render an expiry instant for display, "never" when there is none."""
    if timestamp_ms is None:
        return "never"
    return ms_to_datetime(timestamp_ms).astimezone(pytz.timezone(target_tz)).strftime(
        "%Y-%m-%d %H:%M:%S %Z"
    )
