"""Service layer for the member roster."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from trailclub.core.search import autocomplete_options, search_members
from trailclub.errors import ValidationError
from trailclub.utils import format_date, parse_date

if TYPE_CHECKING:
    from trailclub.storage.base import MeetupStore

    from .models import Member

logger = logging.getLogger(__name__)

MEMBER_STATUSES = ("active", "inactive")
DEFAULT_MEMBER_STATUS = "active"

MEMBER_TEXT_FIELDS = (
    "nickname",
    "name",
    "region",
    "child_name",
    "handle",
    "email",
    "phone",
)


def validate_member(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a submitted member and return the payload to store.

    Raises:
        ValidationError: If the nickname is missing, the email malformed
            or the status unknown.
    """
    payload: dict[str, Any] = {}
    for key in MEMBER_TEXT_FIELDS:
        value = data.get(key)
        payload[key] = value.strip() if isinstance(value, str) else value
        payload[key] = payload[key] or None

    if not payload["nickname"]:
        raise ValidationError("Nickname is required.", "nickname")
    if payload["email"] and "@" not in payload["email"]:
        raise ValidationError("Email address is not valid.", "email")

    status = data.get("status") or DEFAULT_MEMBER_STATUS
    if status not in MEMBER_STATUSES:
        raise ValidationError(f"Unknown status: {status}.", "status")
    payload["status"] = status
    return payload


def _joined_display(created_at: Any) -> str:
    try:
        return format_date(parse_date(created_at))
    except (TypeError, ValueError):
        return "-"


class MemberService:
    """Service class for member-related operations."""

    @staticmethod
    def list_members(store: MeetupStore, query: str = "") -> list[Member]:
        """Fetch the roster, optionally filtered by a free-text query."""
        members = store.list_members()
        for member in members:
            member["joined_display"] = _joined_display(member.get("created_at"))
        if query:
            return search_members(members, query)  # type: ignore[return-value]
        return members

    @staticmethod
    def roster(store: MeetupStore) -> dict[str, Member]:
        """Snapshot of the roster keyed by member id."""
        return {member["id"]: member for member in store.list_members()}

    @staticmethod
    def autocomplete(store: MeetupStore, text: str) -> list[dict[str, Any]]:
        """Nickname suggestions for the leader and attendee pickers."""
        if not text:
            return []
        return autocomplete_options(store.list_members(), text)

    @staticmethod
    def get_member(store: MeetupStore, member_id: str) -> Member:
        return store.get_member(member_id)

    @staticmethod
    def create_member(store: MeetupStore, data: Mapping[str, Any]) -> str:
        """Validate and create a member, returning its id."""
        payload = validate_member(data)
        member_id = store.create_member(payload)
        logger.info(f"Created member {member_id} ({payload['nickname']})")
        return member_id

    @staticmethod
    def update_member(
        store: MeetupStore, member_id: str, data: Mapping[str, Any]
    ) -> None:
        payload = validate_member(data)
        store.update_member(member_id, payload)
        logger.info(f"Updated member {member_id}")

    @staticmethod
    def delete_member(store: MeetupStore, member_id: str) -> None:
        store.delete_member(member_id)
        logger.info(f"Deleted member {member_id}")
