"""
Timestamp and identifier helpers.

Row identities are UUID4 strings generated by the engine at creation time;
timestamps are timezone-aware UTC rendered as ISO 8601 in the grid.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def new_record_id() -> str:
    """Generate a globally unique row identity."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string, the form stored in cells."""
    return utc_now().isoformat()


__all__ = [
    "utc_now",
    "new_record_id",
    "utc_now_iso",
]
