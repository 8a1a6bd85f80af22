"""Attendee reconciliation: converge stored link rows to a desired roster.

``diff`` is a pure set difference. ``apply_diff`` writes it: a removal
batch, then an addition batch, each fanned out over a thread pool and
awaited. Rows are independent, so there is no cross-row transaction: rows
that succeed stay written even when others fail, and the failures are
reported once per pass as a ``PartialBatchError``. Running
``reconcile_attendees`` again re-reads the stored rows and retries whatever
is still missing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from trailclub.constants import DEFAULT_RECONCILE_MAX_WORKERS
from trailclub.errors import PartialBatchError
from trailclub.utils import canonical_id, canonical_ids

if TYPE_CHECKING:
    from trailclub.storage.base import MeetupStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

OP_ADD = "add"
OP_REMOVE = "remove"


@dataclass(frozen=True)
class AttendeeDiff:
    """Membership changes needed to reach the desired attendee set."""

    to_add: frozenset[str] = frozenset()
    to_remove: frozenset[str] = frozenset()

    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass(frozen=True)
class RowFailure:
    """A single link write that failed."""

    member_id: str
    operation: str
    message: str


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    meetup_id: str
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failures: list[RowFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def diff(current: Iterable[str], desired: Iterable[str]) -> AttendeeDiff:
    """Compute the minimal membership change from ``current`` to ``desired``.

    Members in both sets are left alone, so their paid flag and amount are
    never touched.
    """
    current_set = frozenset(current)
    desired_set = frozenset(desired)
    return AttendeeDiff(
        to_add=desired_set - current_set,
        to_remove=current_set - desired_set,
    )


def links_by_member(links: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Index stored link rows by member id (member id -> link row ids)."""
    index: dict[str, list[str]] = {}
    for link in links:
        member_id = canonical_id(link.get("member_id"))
        link_id = canonical_id(link.get("id"))
        if member_id is None or link_id is None:
            continue
        index.setdefault(member_id, []).append(link_id)
    return index


def _fan_out(
    fn: Callable[[T], Any], items: Sequence[T], max_workers: int
) -> list[tuple[T, Exception | None]]:
    """Run ``fn`` on every item concurrently and wait for all of them."""
    if not items:
        return []
    outcomes: list[tuple[T, Exception | None]] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items)))) as pool:
        futures = {pool.submit(fn, item): item for item in items}
        for future in as_completed(futures):
            item = futures[future]
            try:
                future.result()
            except Exception as e:
                outcomes.append((item, e))
            else:
                outcomes.append((item, None))
    return outcomes


def apply_diff(
    store: MeetupStore,
    meetup_id: str,
    attendee_diff: AttendeeDiff,
    current_links: Mapping[str, Sequence[str]],
    max_workers: int = DEFAULT_RECONCILE_MAX_WORKERS,
) -> ReconcileResult:
    """Write an AttendeeDiff to the store.

    Raises:
        PartialBatchError: If any row write failed. Successful rows stay
            applied; the error carries the full ``ReconcileResult``.
    """
    result = ReconcileResult(meetup_id=meetup_id)

    # Removals first. A member is removed once every one of its rows is gone.
    removals = [
        (member_id, link_id)
        for member_id in sorted(attendee_diff.to_remove)
        for link_id in current_links.get(member_id, ())
    ]
    failed_removals: dict[str, str] = {}
    for (member_id, link_id), error in _fan_out(
        lambda row: store.delete_attendee_link(row[1]), removals, max_workers
    ):
        if error is not None:
            logger.error(
                f"Failed to remove attendee link {link_id} "
                f"(member {member_id}) from meetup {meetup_id}: {error}"
            )
            failed_removals.setdefault(member_id, str(error))
    for member_id in sorted(attendee_diff.to_remove):
        if member_id in failed_removals:
            result.failures.append(
                RowFailure(member_id, OP_REMOVE, failed_removals[member_id])
            )
        else:
            result.removed.append(member_id)

    additions = sorted(attendee_diff.to_add)
    for member_id, error in _fan_out(
        lambda mid: store.create_attendee_link(
            meetup_id, mid, donation_paid=False, donation_amount=0
        ),
        additions,
        max_workers,
    ):
        if error is not None:
            logger.error(
                f"Failed to add member {member_id} to meetup {meetup_id}: {error}"
            )
            result.failures.append(RowFailure(member_id, OP_ADD, str(error)))
        else:
            result.added.append(member_id)
    result.added.sort()

    logger.info(
        f"Reconciled attendees of meetup {meetup_id}: "
        f"+{len(result.added)} -{len(result.removed)} "
        f"({len(result.failures)} failed)"
    )
    if result.failures:
        raise PartialBatchError(result)
    return result


def reconcile_attendees(
    store: MeetupStore,
    meetup_id: str,
    desired: Iterable[Any],
    max_workers: int = DEFAULT_RECONCILE_MAX_WORKERS,
) -> ReconcileResult:
    """Converge the stored attendees of a meetup to ``desired`` member ids.

    Raises:
        RemoteOperationError: If the current link rows cannot be listed.
        PartialBatchError: If some row writes failed.
    """
    current_links = links_by_member(store.list_attendee_links(meetup_id))
    attendee_diff = diff(current_links.keys(), canonical_ids(desired))
    if attendee_diff.is_empty():
        return ReconcileResult(meetup_id=meetup_id)
    return apply_diff(store, meetup_id, attendee_diff, current_links, max_workers)
