"""
Storefront - Shared Helpers
============================
Pure utility functions with NO database or module dependencies.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_uuid(value) -> Optional[uuid.UUID]:
    """Safely convert a string to UUID. Returns None on failure."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, TypeError, AttributeError):
        return None


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-joined query value, dropping blanks: "a, b,,c" -> ["a", "b", "c"]."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def mask_token(token: Optional[str]) -> str:
    """Short, log-safe prefix of an opaque token."""
    if not token:
        return "-"
    return token[:6] + "…"
