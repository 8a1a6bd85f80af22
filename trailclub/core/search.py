"""Client-side search and filtering over already-fetched records."""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

MEMBER_SEARCH_FIELDS = ("nickname", "name", "region", "child_name", "handle")


def _as_mapping(record: Any) -> Mapping[str, Any]:
    """Return the meetup mapping behind a record (CalendarEvents carry it)."""
    resource = getattr(record, "resource", None)
    if isinstance(resource, Mapping):
        return resource
    return record


def _as_date(value: Any) -> datetime.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def text_matches(record: Mapping[str, Any], query: str, fields: Sequence[str]) -> bool:
    """Case-insensitive substring match on any of ``fields``."""
    if not query:
        return True
    needle = query.strip().lower()
    if not needle:
        return True
    for name in fields:
        value = record.get(name)
        if value and needle in str(value).lower():
            return True
    return False


def in_selection(value: Any, selected: Iterable[Any] | None) -> bool:
    """Exact match against a multi-select; an empty selection matches all."""
    choices = set(selected or ())
    if not choices:
        return True
    return value in choices


def in_date_range(
    value: Any,
    start: datetime.date | None = None,
    end: datetime.date | None = None,
) -> bool:
    """Inclusive date range containment; open bounds are unbounded."""
    if start is None and end is None:
        return True
    day = _as_date(value)
    if day is None:
        return False
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


@dataclass(frozen=True)
class MeetupFilters:
    """Search criteria of the meetup table. Categories AND together."""

    title: str = ""
    leader: str = ""
    types: frozenset[str] = field(default_factory=frozenset)
    levels: frozenset[str] = field(default_factory=frozenset)
    statuses: frozenset[str] = field(default_factory=frozenset)
    date_from: datetime.date | None = None
    date_to: datetime.date | None = None

    @classmethod
    def from_args(cls, args: Any) -> MeetupFilters:
        """Build filters from request query args (a werkzeug MultiDict)."""
        return cls(
            title=args.get("title", ""),
            leader=args.get("leader", ""),
            types=frozenset(v for v in args.getlist("type") if v),
            levels=frozenset(v for v in args.getlist("level") if v),
            statuses=frozenset(v for v in args.getlist("status") if v),
            date_from=_as_date(args.get("date_from")),
            date_to=_as_date(args.get("date_to")),
        )

    def is_empty(self) -> bool:
        return self == MeetupFilters()

    def matches(self, record: Any) -> bool:
        meetup = _as_mapping(record)
        return (
            text_matches(meetup, self.title, ("title",))
            and text_matches(meetup, self.leader, ("leader_nickname",))
            and in_selection(meetup.get("type"), self.types)
            and in_selection(meetup.get("level"), self.levels)
            and in_selection(meetup.get("status"), self.statuses)
            and in_date_range(meetup.get("date"), self.date_from, self.date_to)
        )


def filter_meetups(records: Iterable[Any], filters: MeetupFilters) -> list[Any]:
    """Filter meetup dicts or CalendarEvents, preserving order."""
    return [record for record in records if filters.matches(record)]


def search_members(
    members: Iterable[Mapping[str, Any]],
    query: str,
    fields: Sequence[str] = MEMBER_SEARCH_FIELDS,
) -> list[Mapping[str, Any]]:
    """Filter the roster by a free-text query over ``fields``."""
    return [member for member in members if text_matches(member, query, fields)]


def autocomplete_options(
    members: Iterable[Mapping[str, Any]], text: str
) -> list[dict[str, Any]]:
    """Nickname autocomplete options for the leader/attendee pickers."""
    if not text:
        return []
    return [
        {
            "value": member["nickname"],
            "label": member["nickname"],
            "member_id": member["id"],
        }
        for member in members
        if member.get("nickname") and text in member["nickname"]
    ]


def find_member_id_by_nickname(
    members: Iterable[Mapping[str, Any]], nickname: str
) -> str | None:
    """Return the id of the first member whose nickname contains ``nickname``."""
    if not nickname:
        return None
    for member in members:
        if member.get("nickname") and nickname in member["nickname"]:
            return member["id"]
    return None
