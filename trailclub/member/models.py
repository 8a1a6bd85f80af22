"""Data models for the member blueprint."""

from __future__ import annotations

from typing import Any

from trailclub.core.types import StoredDocument


class Member(StoredDocument, total=False):
    """A club member as stored by the backend."""

    nickname: str
    name: str
    region: str | None
    child_name: str | None
    handle: str | None
    email: str | None
    phone: str | None
    status: str
    created_at: Any
    joined_display: str
