"""Projection of stored meetups into calendar events.

Everything here is pure: the same meetups and roster snapshot always give
the same events, and nothing is written back. The roster may be stale or
empty; unresolved members are displayed as ``#<id>``.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from trailclub.constants import DEFAULT_DURATION_MINUTES, DEFAULT_START_TIME
from trailclub.utils import canonical_id, parse_date, parse_time

from .models import (
    Attendee,
    AttendeeRef,
    CalendarEvent,
    EventStyle,
    LinkRowRef,
    MemberIdRef,
)
from .options import DEFAULT_TYPE_COLOR, STATUS_CANCELLED, type_color_table

logger = logging.getLogger(__name__)

Roster = Mapping[str, Mapping[str, Any]]
ErrorCallback = Callable[[Mapping[str, Any], Exception], None]

DEFAULT_DURATION = datetime.timedelta(minutes=DEFAULT_DURATION_MINUTES)

CANCELLED_COLOR = "#bfbfbf"
CANCELLED_OPACITY = 0.5
ACTIVE_OPACITY = 0.8

# Raw join keys, replaced by the normalized ``attendees`` list.
_JOIN_KEYS = ("meetup_attendees", "attendee_ids", "attendees")


def to_attendee_ref(raw: Any) -> AttendeeRef:
    """Normalize one element of a join list into an AttendeeRef.

    A bare id becomes a ``MemberIdRef``; a join row (stored link, or the
    ``memberId``-shaped rows posted by forms) becomes a ``LinkRowRef``.

    Raises:
        ValueError: If a join row carries no member id.
    """
    if isinstance(raw, (MemberIdRef, LinkRowRef)):
        return raw
    if isinstance(raw, Mapping):
        member_id = canonical_id(raw.get("member_id", raw.get("memberId")))
        if member_id is None:
            raise ValueError(f"attendee row without member id: {raw!r}")
        nested = raw.get("members") or raw.get("member") or {}
        nickname = raw.get("nickname") or (
            nested.get("nickname") if isinstance(nested, Mapping) else None
        )
        return LinkRowRef(
            id=canonical_id(raw.get("id")),
            member_id=member_id,
            donation_paid=bool(raw.get("donation_paid", raw.get("donationPaid"))),
            donation_amount=int(
                raw.get("donation_amount", raw.get("donationAmount")) or 0
            ),
            nickname=nickname,
        )
    member_id = canonical_id(raw)
    if member_id is None:
        raise ValueError("empty attendee id")
    return MemberIdRef(member_id)


def attendee_refs(meetup: Mapping[str, Any]) -> list[AttendeeRef]:
    """Extract the attendee sub-list of a meetup, whatever its join shape."""
    raw_items: Iterable[Any] = ()
    for key in _JOIN_KEYS:
        if meetup.get(key):
            raw_items = meetup[key]
            break

    refs: list[AttendeeRef] = []
    for raw in raw_items:
        try:
            refs.append(to_attendee_ref(raw))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping attendee of meetup {meetup.get('id')}: {e}")
    return refs


def resolve_attendee(ref: AttendeeRef, roster: Roster | None = None) -> Attendee:
    """Resolve an AttendeeRef into the uniform attendee shape."""
    nickname = ref.nickname if isinstance(ref, LinkRowRef) else None
    if not nickname and roster:
        member = roster.get(ref.member_id)
        if member:
            nickname = member.get("nickname")

    if isinstance(ref, LinkRowRef):
        return {
            "id": ref.id,
            "member_id": ref.member_id,
            "nickname": nickname or f"#{ref.member_id}",
            "donation_paid": ref.donation_paid,
            "donation_amount": ref.donation_amount,
        }
    return {
        "id": None,
        "member_id": ref.member_id,
        "nickname": nickname or f"#{ref.member_id}",
        "donation_paid": False,
        "donation_amount": 0,
    }


def event_title(meetup: Mapping[str, Any]) -> str:
    """Meetup title, or ``place (course)`` when the title is empty."""
    if meetup.get("title"):
        return str(meetup["title"])
    place = meetup.get("place") or ""
    course = meetup.get("course")
    return f"{place} ({course})" if course else place


def event_interval(
    meetup: Mapping[str, Any],
) -> tuple[datetime.datetime, datetime.datetime]:
    """Return the (start, end) instants of a meetup.

    Raises:
        ValueError: If the date or a time is missing or malformed.
    """
    day = parse_date(meetup.get("date"))
    start = datetime.datetime.combine(
        day, parse_time(meetup.get("start_time") or DEFAULT_START_TIME)
    )
    if meetup.get("end_time"):
        end = datetime.datetime.combine(day, parse_time(meetup["end_time"]))
    else:
        end = start + DEFAULT_DURATION
    return start, end


def project_meetup(
    meetup: Mapping[str, Any], roster: Roster | None = None
) -> CalendarEvent:
    """Project a single meetup.

    Raises:
        ValueError: If the meetup has no usable date or time.
    """
    start, end = event_interval(meetup)
    attendees = [resolve_attendee(ref, roster) for ref in attendee_refs(meetup)]

    resource = {k: v for k, v in meetup.items() if k not in _JOIN_KEYS}
    resource["attendees"] = attendees

    return CalendarEvent(
        id=str(canonical_id(meetup.get("id"))),
        start=start,
        end=end,
        title=event_title(meetup),
        resource=resource,
    )


def _log_projection_error(meetup: Mapping[str, Any], error: Exception) -> None:
    logger.warning(f"Skipping meetup {meetup.get('id')} in calendar: {error}")


def project(
    meetups: Iterable[Mapping[str, Any]],
    roster: Roster | None = None,
    on_error: ErrorCallback | None = None,
) -> list[CalendarEvent]:
    """Project meetups into calendar events, preserving input order.

    A malformed meetup is reported through ``on_error`` and skipped; the
    remaining meetups are still projected.
    """
    report = on_error or _log_projection_error
    events = []
    for meetup in meetups:
        try:
            events.append(project_meetup(meetup, roster))
        except (TypeError, ValueError) as e:
            report(meetup, e)
    return events


def style_for(
    event: CalendarEvent, type_colors: Mapping[str, str] | None = None
) -> EventStyle:
    """Presentation hints for an event; cancellation overrides the type colour."""
    meetup = event.resource
    if meetup.get("status") == STATUS_CANCELLED:
        return EventStyle(
            color=CANCELLED_COLOR, opacity=CANCELLED_OPACITY, strikethrough=True
        )
    table = type_colors if type_colors is not None else type_color_table()
    color = table.get(meetup.get("type"), DEFAULT_TYPE_COLOR)
    return EventStyle(color=color, opacity=ACTIVE_OPACITY, strikethrough=False)
