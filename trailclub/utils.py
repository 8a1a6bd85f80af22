"""Utility functions for the application."""

from __future__ import annotations

import datetime
from typing import Any

from .constants import DATE_FORMAT, TIME_FORMAT


def canonical_id(value: Any) -> str | None:
    """Return the canonical (string) form of a row id.

    Backends hand out numeric or string ids; everything inside the app uses
    strings so that set membership never depends on where an id came from.
    """
    if value is None or value == "":
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def canonical_ids(values: Any) -> list[str]:
    """Canonicalize a list of ids, dropping empties and duplicates."""
    seen: dict[str, None] = {}
    for value in values or ():
        cid = canonical_id(value)
        if cid is not None:
            seen.setdefault(cid, None)
    return list(seen)


def parse_date(value: Any) -> datetime.date:
    """Parse an ISO calendar date (or a stored date/datetime).

    Raises:
        ValueError: If the value is missing or malformed.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if hasattr(value, "to_datetime"):  # Firestore Timestamp
        return value.to_datetime().date()
    if not value:
        raise ValueError("date is required")
    return datetime.datetime.strptime(str(value)[:10], DATE_FORMAT).date()


def parse_time(value: Any) -> datetime.time:
    """Parse a local-clock time given as ``HH:MM`` or ``HH:MM:SS``.

    Raises:
        ValueError: If the value is missing or malformed.
    """
    if isinstance(value, datetime.time):
        return value
    if not value:
        raise ValueError("time is required")
    text = str(value)
    for fmt in (TIME_FORMAT, "%H:%M"):
        try:
            return datetime.datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"invalid time: {text!r}")


def format_date(value: datetime.date) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: datetime.time | None) -> str | None:
    return value.strftime(TIME_FORMAT) if value else None
