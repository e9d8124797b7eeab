"""
StroyMarket - Shared Helpers
=============================
Pure utility functions with NO database or module dependencies.
"""

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def same_name(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive name comparison, ignoring surrounding whitespace."""
    return (a or "").strip().lower() == (b or "").strip().lower()


def split_path(path: Optional[str], separator: str = "/") -> list:
    """Split a 'A / B / C' string into trimmed, non-empty segments."""
    if not path:
        return []
    return [part.strip() for part in path.split(separator) if part.strip()]
