"""Data models for the meetup blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, TypedDict, Union

from trailclub.core.types import StoredDocument


class AttendeeLink(StoredDocument, total=False):
    """A stored meetup/member join row with payment metadata."""

    meetup_id: str
    member_id: str
    donation_paid: bool
    donation_amount: int
    # Display only, resolved from the roster.
    nickname: str


class Meetup(StoredDocument, total=False):
    """A meetup row as returned by the storage backend."""

    date: str
    start_time: str | None
    end_time: str | None
    title: str
    place: str
    course: str | None
    leader_member_id: str | None
    leader_nickname: str
    sub_leader_member_ids: list[str]
    description: str | None
    type: str
    level: str | None
    status: str
    cancel_reason: str | None
    review: str | None
    total_donation: int
    # One of the two join shapes returned by the backends.
    meetup_attendees: list[AttendeeLink]
    attendee_ids: list[str]


class Attendee(TypedDict):
    """Uniform attendee shape used by views once references are resolved."""

    id: str | None
    member_id: str
    nickname: str
    donation_paid: bool
    donation_amount: int


@dataclass(frozen=True)
class MemberIdRef:
    """An attendee known only by member id."""

    member_id: str


@dataclass(frozen=True)
class LinkRowRef:
    """An attendee backed by a stored link row."""

    id: str | None
    member_id: str
    donation_paid: bool = False
    donation_amount: int = 0
    nickname: str | None = None


AttendeeRef = Union[MemberIdRef, LinkRowRef]


@dataclass(frozen=True)
class CalendarEvent:
    """A calendar-displayable interval derived from a meetup."""

    id: str
    start: datetime.datetime
    end: datetime.datetime
    title: str
    resource: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EventStyle:
    """Presentation hints for a calendar event."""

    color: str
    opacity: float
    strikethrough: bool
