"""Render projected calendar events for the calendar widget and iCal clients."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from icalendar import Calendar, Event

from .models import CalendarEvent
from .options import STATUS_CANCELLED, STATUS_COMPLETED
from .projection import style_for

ICAL_PRODID = "-//trailclub//meetup calendar//EN"
ICAL_UID_DOMAIN = "trailclub"


def to_feed_item(
    event: CalendarEvent, type_colors: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Serialize an event and its style for the calendar's JSON feed."""
    style = style_for(event, type_colors)
    meetup = event.resource
    return {
        "id": event.id,
        "title": event.title,
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "backgroundColor": style.color,
        "borderColor": style.color,
        "opacity": style.opacity,
        "textDecoration": "line-through" if style.strikethrough else "none",
        "extendedProps": {
            "type": meetup.get("type"),
            "level": meetup.get("level"),
            "status": meetup.get("status"),
            "leader_nickname": meetup.get("leader_nickname"),
            "attendees": [a["nickname"] for a in meetup.get("attendees", [])],
        },
    }


def build_ical(events: Iterable[CalendarEvent], name: str = "Club meetups") -> bytes:
    """Export projected events as an iCalendar document.

    Times are floating local-clock times, the same way meetups store them.
    """
    cal = Calendar()
    cal.add("prodid", ICAL_PRODID)
    cal.add("version", "2.0")
    cal.add("x-wr-calname", name)

    for event in events:
        meetup = event.resource
        vevent = Event()
        vevent.add("uid", f"meetup-{event.id}@{ICAL_UID_DOMAIN}")
        vevent.add("summary", event.title)
        vevent.add("dtstart", event.start)
        vevent.add("dtend", event.end)
        if meetup.get("place"):
            vevent.add("location", meetup["place"])

        description = meetup.get("description") or meetup.get("course")
        if meetup.get("status") == STATUS_CANCELLED:
            vevent.add("status", "CANCELLED")
            description = meetup.get("cancel_reason") or description
        elif meetup.get("status") == STATUS_COMPLETED:
            vevent.add("status", "CONFIRMED")
        else:
            vevent.add("status", "TENTATIVE")
        if description:
            vevent.add("description", description)

        cal.add_component(vevent)

    return cal.to_ical()
