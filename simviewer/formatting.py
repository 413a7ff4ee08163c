"""Human-readable size and timestamp labels for list rows."""

from __future__ import annotations

import time
from datetime import datetime

_UNITS = "KMGTPE"


def format_size(size: int) -> str:
    """Format ``size`` bytes with 1024-based units (``"1.5 KB"``)."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    exp = -1
    while value >= 1024 and exp < len(_UNITS) - 1:
        value /= 1024
        exp += 1
    return f"{value:.1f} {_UNITS[exp]}B"


def format_modified(timestamp: float, now: float | None = None) -> str:
    """Format a modification time relative to ``now``.

    Recent times read as "5 minutes ago"; anything older than a week shows
    the calendar date.
    """
    if timestamp <= 0:
        return ""
    now = time.time() if now is None else now
    diff = now - timestamp
    if diff < 60:
        return "just now"
    if diff < 3600:
        mins = int(diff // 60)
        return "1 minute ago" if mins == 1 else f"{mins} minutes ago"
    if diff < 86400:
        hours = int(diff // 3600)
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"
    if diff < 2 * 86400:
        return "yesterday"
    if diff < 7 * 86400:
        return f"{int(diff // 86400)} days ago"
    when = datetime.fromtimestamp(timestamp)
    if when.year == datetime.fromtimestamp(now).year:
        return f"{when:%b} {when.day}"
    return f"{when:%b} {when.day}, {when.year}"


__all__ = ["format_modified", "format_size"]
