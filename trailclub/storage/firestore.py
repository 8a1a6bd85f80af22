"""Cloud Firestore backend."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from trailclub.constants import (
    ATTENDEES_COLLECTION,
    MEETUPS_COLLECTION,
    MEMBERS_COLLECTION,
)
from trailclub.errors import AppError, NotFoundError, RemoteOperationError

from .base import MeetupStore

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

    from trailclub.meetup.models import AttendeeLink, Meetup
    from trailclub.member.models import Member

logger = logging.getLogger(__name__)

# Fields that only exist on projected or joined meetups.
_DERIVED_MEETUP_FIELDS = ("id", "meetup_attendees", "attendee_ids", "attendees")


@contextmanager
def remote_call(action: str) -> Iterator[None]:
    """Turn any backend failure into a RemoteOperationError."""
    try:
        yield
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Firestore failed to {action}: {e}")
        raise RemoteOperationError(f"Failed to {action}: {e}") from e


def _with_id(doc: Any) -> dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def link_document_id(meetup_id: str, member_id: str) -> str:
    """Deterministic link row id; keeps (meetup, member) pairs unique."""
    return f"{meetup_id}_{member_id}"


class FirestoreStore(MeetupStore):
    """Meetups, link rows and members in three top-level collections."""

    def __init__(self, db: Client) -> None:
        self.db = db

    def _meetup_payload(self, data: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in data.items() if k not in _DERIVED_MEETUP_FIELDS}

    def _get_existing(self, collection: str, doc_id: str, label: str) -> Any:
        ref = self.db.collection(collection).document(doc_id)
        doc = cast("DocumentSnapshot", ref.get())
        if not doc.exists:
            raise NotFoundError(f"{label} not found.")
        return ref, doc

    # Meetups

    def list_meetups(self) -> list[Meetup]:
        with remote_call("list meetups"):
            docs = list(self.db.collection(MEETUPS_COLLECTION).stream())
            links = self.list_attendee_links()

        links_by_meetup: dict[str, list[AttendeeLink]] = {}
        for link in links:
            links_by_meetup.setdefault(str(link.get("meetup_id")), []).append(link)

        meetups = []
        for doc in docs:
            data = _with_id(doc)
            data["meetup_attendees"] = links_by_meetup.get(doc.id, [])
            meetups.append(cast("Meetup", data))
        # Undated meetups are kept; the projector reports and skips them.
        return sorted(meetups, key=lambda m: str(m.get("date") or ""))

    def get_meetup(self, meetup_id: str) -> Meetup:
        with remote_call("load meetup"):
            _, doc = self._get_existing(MEETUPS_COLLECTION, meetup_id, "Meetup")
            data = _with_id(doc)
            data["meetup_attendees"] = self.list_attendee_links(meetup_id)
        return cast("Meetup", data)

    def create_meetup(self, data: dict[str, Any]) -> str:
        payload = self._meetup_payload(data)
        payload["created_at"] = firestore.SERVER_TIMESTAMP
        with remote_call("create meetup"):
            _, ref = self.db.collection(MEETUPS_COLLECTION).add(payload)
        return str(ref.id)

    def update_meetup(self, meetup_id: str, data: dict[str, Any]) -> None:
        payload = self._meetup_payload(data)
        payload["updated_at"] = firestore.SERVER_TIMESTAMP
        with remote_call("update meetup"):
            ref, _ = self._get_existing(MEETUPS_COLLECTION, meetup_id, "Meetup")
            ref.update(payload)

    def delete_meetup(self, meetup_id: str) -> None:
        with remote_call("delete meetup"):
            self.db.collection(MEETUPS_COLLECTION).document(meetup_id).delete()

    # Attendee links

    def list_attendee_links(self, meetup_id: str | None = None) -> list[AttendeeLink]:
        with remote_call("list attendees"):
            query = self.db.collection(ATTENDEES_COLLECTION)
            if meetup_id is not None:
                query = query.where(
                    filter=firestore.FieldFilter("meetup_id", "==", meetup_id)
                )
            return [cast("AttendeeLink", _with_id(doc)) for doc in query.stream()]

    def create_attendee_link(
        self,
        meetup_id: str,
        member_id: str,
        donation_paid: bool = False,
        donation_amount: int = 0,
    ) -> str:
        link_id = link_document_id(meetup_id, member_id)
        with remote_call("add attendee"):
            self.db.collection(ATTENDEES_COLLECTION).document(link_id).set(
                {
                    "meetup_id": meetup_id,
                    "member_id": member_id,
                    "donation_paid": donation_paid,
                    "donation_amount": donation_amount,
                    "created_at": firestore.SERVER_TIMESTAMP,
                }
            )
        return link_id

    def delete_attendee_link(self, link_id: str) -> None:
        with remote_call("remove attendee"):
            self.db.collection(ATTENDEES_COLLECTION).document(link_id).delete()

    # Members

    def list_members(self) -> list[Member]:
        with remote_call("list members"):
            docs = self.db.collection(MEMBERS_COLLECTION).stream()
            members = [cast("Member", _with_id(doc)) for doc in docs]
        members.sort(key=lambda m: (m.get("nickname") or "").lower())
        return members

    def get_member(self, member_id: str) -> Member:
        with remote_call("load member"):
            _, doc = self._get_existing(MEMBERS_COLLECTION, member_id, "Member")
        return cast("Member", _with_id(doc))

    def create_member(self, data: dict[str, Any]) -> str:
        payload = {k: v for k, v in data.items() if k != "id"}
        payload["created_at"] = firestore.SERVER_TIMESTAMP
        with remote_call("create member"):
            _, ref = self.db.collection(MEMBERS_COLLECTION).add(payload)
        return str(ref.id)

    def update_member(self, member_id: str, data: dict[str, Any]) -> None:
        payload = {k: v for k, v in data.items() if k != "id"}
        with remote_call("update member"):
            ref, _ = self._get_existing(MEMBERS_COLLECTION, member_id, "Member")
            ref.update(payload)

    def delete_member(self, member_id: str) -> None:
        with remote_call("delete member"):
            self.db.collection(MEMBERS_COLLECTION).document(member_id).delete()
