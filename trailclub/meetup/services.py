"""Service layer for meetup operations and data orchestration."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from trailclub.constants import (
    DEFAULT_RECONCILE_MAX_WORKERS,
    DEFAULT_STATUS,
    DEFAULT_TOTAL_DONATION,
)
from trailclub.errors import (
    AppError,
    PartialBatchError,
    RemoteOperationError,
    ValidationError,
)
from trailclub.utils import (
    canonical_id,
    canonical_ids,
    format_date,
    format_time,
    parse_date,
    parse_time,
)

from .options import LEVELED_TYPE, MEETUP_LEVELS, MEETUP_STATUSES
from .projection import Roster, project, project_meetup
from .reconcile import ReconcileResult, apply_diff, diff, reconcile_attendees

if TYPE_CHECKING:
    from trailclub.storage.base import MeetupStore

    from .models import CalendarEvent, Meetup

logger = logging.getLogger(__name__)

_TEXT_FIELDS = (
    "title",
    "place",
    "course",
    "leader_nickname",
    "description",
    "cancel_reason",
    "review",
)


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def validate_meetup(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a submitted meetup and return the payload to store.

    Runs before any remote call, so an invalid submission never writes.

    Raises:
        ValidationError: On the first invalid field.
    """
    payload: dict[str, Any] = {}
    for key in _TEXT_FIELDS:
        if key in data:
            payload[key] = _clean(data[key]) or None

    try:
        payload["date"] = format_date(parse_date(data.get("date")))
    except (TypeError, ValueError):
        raise ValidationError("A valid date (YYYY-MM-DD) is required.", "date")

    for key in ("start_time", "end_time"):
        value = data.get(key)
        try:
            payload[key] = format_time(parse_time(value)) if value else None
        except (TypeError, ValueError):
            raise ValidationError("Times must be HH:MM or HH:MM:SS.", key)

    if not payload.get("title"):
        raise ValidationError("Title is required.", "title")

    payload["leader_member_id"] = canonical_id(data.get("leader_member_id"))
    if not payload.get("leader_nickname") and not payload["leader_member_id"]:
        raise ValidationError("Leader is required.", "leader_nickname")
    payload["sub_leader_member_ids"] = canonical_ids(
        data.get("sub_leader_member_ids")
    )

    meetup_type = _clean(data.get("type"))
    if not meetup_type:
        raise ValidationError("Type is required.", "type")
    payload["type"] = meetup_type

    level = _clean(data.get("level")) or None
    if meetup_type == LEVELED_TYPE and not level:
        raise ValidationError("Level is required for hiking meetups.", "level")
    if level is not None and level not in MEETUP_LEVELS:
        raise ValidationError(f"Unknown level: {level}.", "level")
    payload["level"] = level

    status = _clean(data.get("status")) or DEFAULT_STATUS
    if status not in MEETUP_STATUSES:
        raise ValidationError(f"Unknown status: {status}.", "status")
    payload["status"] = status

    donation = data.get("total_donation")
    if donation in (None, ""):
        donation = DEFAULT_TOTAL_DONATION
    try:
        donation = int(donation)
    except (TypeError, ValueError):
        raise ValidationError("Total donation must be a whole number.", "total_donation")
    if donation < 0:
        raise ValidationError("Total donation cannot be negative.", "total_donation")
    payload["total_donation"] = donation

    return payload


@dataclass
class SaveResult:
    """Outcome of a meetup save.

    The meetup write itself succeeded; ``warning`` is set when some of the
    attendee changes did not.
    """

    meetup_id: str
    reconcile: ReconcileResult | None = None
    warning: str | None = None


class MeetupService:
    """Service class for meetup-related operations."""

    @staticmethod
    def list_meetups(store: MeetupStore) -> list[Meetup]:
        """Fetch all meetups sorted by date."""
        meetups = store.list_meetups()
        return sorted(meetups, key=lambda m: str(m.get("date") or ""))

    @staticmethod
    def list_events(
        store: MeetupStore, roster: Roster | None = None
    ) -> list[CalendarEvent]:
        """Fetch all meetups and project them into calendar events."""
        return project(MeetupService.list_meetups(store), roster)

    @staticmethod
    def get_event(
        store: MeetupStore, meetup_id: str, roster: Roster | None = None
    ) -> CalendarEvent:
        """Fetch and project a single meetup.

        Raises:
            NotFoundError: If the meetup does not exist.
            ValidationError: If the stored meetup cannot be displayed.
        """
        meetup = store.get_meetup(meetup_id)
        try:
            return project_meetup(meetup, roster)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Meetup {meetup_id} has invalid data: {e}")

    @staticmethod
    def _attendee_warning(meetup_id: str, error: AppError) -> str:
        logger.error(f"Attendee update failed for meetup {meetup_id}: {error.message}")
        return f"Meetup saved, but {error.message[0].lower()}{error.message[1:]}"

    @staticmethod
    def create_meetup(
        store: MeetupStore,
        data: Mapping[str, Any],
        attendee_ids: Iterable[Any] = (),
        max_workers: int = DEFAULT_RECONCILE_MAX_WORKERS,
    ) -> SaveResult:
        """Create a meetup, then link its attendees.

        Raises:
            ValidationError: If the submission is invalid (nothing written).
            RemoteOperationError: If the meetup itself cannot be created.
        """
        payload = validate_meetup(data)
        meetup_id = store.create_meetup(payload)
        logger.info(f"Created meetup {meetup_id}")

        result = SaveResult(meetup_id=meetup_id)
        attendee_diff = diff((), canonical_ids(attendee_ids))
        if attendee_diff.is_empty():
            return result
        try:
            result.reconcile = apply_diff(
                store, meetup_id, attendee_diff, {}, max_workers
            )
        except PartialBatchError as e:
            result.reconcile = e.result
            result.warning = MeetupService._attendee_warning(meetup_id, e)
        return result

    @staticmethod
    def update_meetup(
        store: MeetupStore,
        meetup_id: str,
        data: Mapping[str, Any],
        attendee_ids: Iterable[Any] | None = None,
        max_workers: int = DEFAULT_RECONCILE_MAX_WORKERS,
    ) -> SaveResult:
        """Update a meetup, then reconcile its attendees.

        ``attendee_ids=None`` leaves the attendees untouched.

        Raises:
            ValidationError: If the submission is invalid (nothing written).
            NotFoundError: If the meetup does not exist.
            RemoteOperationError: If the meetup itself cannot be updated.
        """
        payload = validate_meetup(data)
        store.update_meetup(meetup_id, payload)
        logger.info(f"Updated meetup {meetup_id}")

        result = SaveResult(meetup_id=meetup_id)
        if attendee_ids is None:
            return result
        try:
            result.reconcile = reconcile_attendees(
                store, meetup_id, attendee_ids, max_workers
            )
        except PartialBatchError as e:
            result.reconcile = e.result
            result.warning = MeetupService._attendee_warning(meetup_id, e)
        except RemoteOperationError as e:
            result.warning = MeetupService._attendee_warning(meetup_id, e)
        return result

    @staticmethod
    def delete_meetup(
        store: MeetupStore,
        meetup_id: str,
        max_workers: int = DEFAULT_RECONCILE_MAX_WORKERS,
    ) -> None:
        """Delete a meetup together with its attendee links.

        The links go first. If any of them cannot be deleted the meetup is
        kept, so a retry finds and removes the remaining links.

        Raises:
            RemoteOperationError: If a link or the meetup cannot be deleted.
        """
        try:
            reconcile_attendees(store, meetup_id, (), max_workers)
        except PartialBatchError as e:
            logger.error(f"Keeping meetup {meetup_id}: {e.message}")
            raise RemoteOperationError(
                f"Could not delete the meetup's attendees: {e.message}"
            ) from e
        store.delete_meetup(meetup_id)
        logger.info(f"Deleted meetup {meetup_id}")
