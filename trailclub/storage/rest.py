"""JSON-over-HTTP backend for the club's REST API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

import requests

from trailclub.constants import ATTENDEES_ENDPOINT, MEETUPS_ENDPOINT, MEMBERS_ENDPOINT
from trailclub.errors import NotFoundError, RemoteOperationError
from trailclub.utils import canonical_id, canonical_ids

from .base import MeetupStore

if TYPE_CHECKING:
    from trailclub.meetup.models import AttendeeLink, Meetup
    from trailclub.member.models import Member

logger = logging.getLogger(__name__)

ID_FIELDS = ("id", "meetup_id", "member_id", "leader_member_id")
ID_LIST_FIELDS = ("sub_leader_member_ids", "attendee_ids")
_DERIVED_MEETUP_FIELDS = ("id", "meetup_attendees", "attendee_ids", "attendees")


def from_wire(row: dict[str, Any]) -> dict[str, Any]:
    """Canonicalize the ids of a row received from the API."""
    data = dict(row)
    for key in ID_FIELDS:
        if key in data:
            data[key] = canonical_id(data[key])
    for key in ID_LIST_FIELDS:
        if key in data:
            data[key] = canonical_ids(data[key])
    if isinstance(data.get("meetup_attendees"), list):
        data["meetup_attendees"] = [
            from_wire(link) if isinstance(link, dict) else canonical_id(link)
            for link in data["meetup_attendees"]
        ]
    return data


def _wire_id(value: Any) -> Any:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def to_wire(payload: dict[str, Any]) -> dict[str, Any]:
    """Convert canonical string ids back to the API's numeric ids."""
    data = dict(payload)
    for key in ID_FIELDS:
        if key in data:
            data[key] = _wire_id(data[key])
    for key in ID_LIST_FIELDS:
        if key in data and data[key] is not None:
            data[key] = [_wire_id(v) for v in data[key]]
    return data


def _unwrap(data: Any) -> Any:
    """Some endpoints wrap their payload in ``{"data": ...}``."""
    if isinstance(data, dict) and "data" in data and "id" not in data:
        return data["data"]
    return data


class RestStore(MeetupStore):
    """Client for the club REST API.

    Attributes:
        base_url: Server URL, without the ``/api`` prefix.
        timeout: Seconds before a request gives up; None uses the transport
            default.
    """

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        if not base_url:
            logger.warning("API_BASE_URL is not configured")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request to the API and return the decoded JSON body.

        Raises:
            NotFoundError: If the API answers 404.
            RemoteOperationError: If the request fails for any other reason.
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")
        try:
            response = requests.request(
                method,
                url,
                json=to_wire(payload) if payload is not None else None,
                params=params,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"API request failed: {method} {url}: {e}")
            raise RemoteOperationError(f"API request failed: {e}") from e

        if not response.ok:
            try:
                message = (response.json() or {}).get("message")
            except (ValueError, AttributeError):
                message = response.reason
            message = message or f"HTTP error! status: {response.status_code}"
            logger.error(f"API request failed: {method} {url}: {message}")
            if response.status_code == 404:
                raise NotFoundError(message)
            raise RemoteOperationError(message)

        if not response.content:
            return None
        try:
            return _unwrap(response.json())
        except ValueError as e:
            raise RemoteOperationError(f"Invalid JSON from {endpoint}") from e

    def _created_id(self, data: Any, endpoint: str) -> str:
        created_id = canonical_id(data.get("id")) if isinstance(data, dict) else None
        if created_id is None:
            raise RemoteOperationError(f"No id returned by POST {endpoint}")
        return created_id

    # Meetups

    def list_meetups(self) -> list[Meetup]:
        rows = self._request("GET", MEETUPS_ENDPOINT) or []
        meetups = [from_wire(row) for row in rows]
        meetups.sort(key=lambda m: str(m.get("date") or ""))
        return cast("list[Meetup]", meetups)

    def get_meetup(self, meetup_id: str) -> Meetup:
        row = self._request("GET", f"{MEETUPS_ENDPOINT}/{meetup_id}")
        if not row:
            raise NotFoundError("Meetup not found.")
        return cast("Meetup", from_wire(row))

    def create_meetup(self, data: dict[str, Any]) -> str:
        payload = {k: v for k, v in data.items() if k not in _DERIVED_MEETUP_FIELDS}
        created = self._request("POST", MEETUPS_ENDPOINT, payload)
        return self._created_id(created, MEETUPS_ENDPOINT)

    def update_meetup(self, meetup_id: str, data: dict[str, Any]) -> None:
        payload = {k: v for k, v in data.items() if k not in _DERIVED_MEETUP_FIELDS}
        self._request("PUT", f"{MEETUPS_ENDPOINT}/{meetup_id}", payload)

    def delete_meetup(self, meetup_id: str) -> None:
        self._request("DELETE", f"{MEETUPS_ENDPOINT}/{meetup_id}")

    # Attendee links

    def list_attendee_links(self, meetup_id: str | None = None) -> list[AttendeeLink]:
        params = {"meetup_id": _wire_id(meetup_id)} if meetup_id is not None else None
        rows = self._request("GET", ATTENDEES_ENDPOINT, params=params) or []
        links = [from_wire(row) for row in rows]
        # The API may ignore the filter and return every row.
        if meetup_id is not None:
            links = [link for link in links if link.get("meetup_id") == meetup_id]
        return cast("list[AttendeeLink]", links)

    def create_attendee_link(
        self,
        meetup_id: str,
        member_id: str,
        donation_paid: bool = False,
        donation_amount: int = 0,
    ) -> str:
        created = self._request(
            "POST",
            ATTENDEES_ENDPOINT,
            {
                "meetup_id": meetup_id,
                "member_id": member_id,
                "donation_paid": donation_paid,
                "donation_amount": donation_amount,
            },
        )
        return self._created_id(created, ATTENDEES_ENDPOINT)

    def delete_attendee_link(self, link_id: str) -> None:
        self._request("DELETE", f"{ATTENDEES_ENDPOINT}/{link_id}")

    # Members

    def list_members(self) -> list[Member]:
        rows = self._request("GET", MEMBERS_ENDPOINT) or []
        return cast("list[Member]", [from_wire(row) for row in rows])

    def get_member(self, member_id: str) -> Member:
        row = self._request("GET", f"{MEMBERS_ENDPOINT}/{member_id}")
        if not row:
            raise NotFoundError("Member not found.")
        return cast("Member", from_wire(row))

    def create_member(self, data: dict[str, Any]) -> str:
        payload = {k: v for k, v in data.items() if k != "id"}
        created = self._request("POST", MEMBERS_ENDPOINT, payload)
        return self._created_id(created, MEMBERS_ENDPOINT)

    def update_member(self, member_id: str, data: dict[str, Any]) -> None:
        payload = {k: v for k, v in data.items() if k != "id"}
        self._request("PUT", f"{MEMBERS_ENDPOINT}/{member_id}", payload)

    def delete_member(self, member_id: str) -> None:
        self._request("DELETE", f"{MEMBERS_ENDPOINT}/{member_id}")
