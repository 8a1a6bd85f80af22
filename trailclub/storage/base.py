"""The storage collaborator interface shared by every backend."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from trailclub.meetup.models import AttendeeLink, Meetup
    from trailclub.member.models import Member


class MeetupStore(abc.ABC):
    """CRUD over meetups, attendee link rows and members.

    Ids are canonical strings. Every failure of the backend, transport or
    remote validation alike, is raised as ``RemoteOperationError``; a
    missing row is ``NotFoundError``.
    """

    # Meetups

    @abc.abstractmethod
    def list_meetups(self) -> list[Meetup]:
        """List meetups by ascending date, with their link rows embedded."""

    @abc.abstractmethod
    def get_meetup(self, meetup_id: str) -> Meetup:
        """Fetch one meetup."""

    @abc.abstractmethod
    def create_meetup(self, data: dict[str, Any]) -> str:
        """Create a meetup and return its id."""

    @abc.abstractmethod
    def update_meetup(self, meetup_id: str, data: dict[str, Any]) -> None:
        """Update the fields of a meetup."""

    @abc.abstractmethod
    def delete_meetup(self, meetup_id: str) -> None:
        """Delete a meetup row (its link rows are not touched)."""

    # Attendee links

    @abc.abstractmethod
    def list_attendee_links(self, meetup_id: str | None = None) -> list[AttendeeLink]:
        """List link rows, optionally only those of one meetup."""

    @abc.abstractmethod
    def create_attendee_link(
        self,
        meetup_id: str,
        member_id: str,
        donation_paid: bool = False,
        donation_amount: int = 0,
    ) -> str:
        """Insert a link row and return its id."""

    @abc.abstractmethod
    def delete_attendee_link(self, link_id: str) -> None:
        """Delete a link row."""

    # Members

    @abc.abstractmethod
    def list_members(self) -> list[Member]:
        """List the whole roster."""

    @abc.abstractmethod
    def get_member(self, member_id: str) -> Member:
        """Fetch one member."""

    @abc.abstractmethod
    def create_member(self, data: dict[str, Any]) -> str:
        """Create a member and return its id."""

    @abc.abstractmethod
    def update_member(self, member_id: str, data: dict[str, Any]) -> None:
        """Update the fields of a member."""

    @abc.abstractmethod
    def delete_member(self, member_id: str) -> None:
        """Delete a member."""
