"""Tests for attendee reconciliation."""

import threading
import unittest
from unittest.mock import MagicMock

from trailclub.errors import PartialBatchError, RemoteOperationError
from trailclub.meetup.reconcile import (
    OP_ADD,
    OP_REMOVE,
    AttendeeDiff,
    diff,
    links_by_member,
    reconcile_attendees,
)
from trailclub.storage.base import MeetupStore
from trailclub.storage.firestore import link_document_id
from tests.conftest import make_store, seed_links
from tests.mock_utils import FlakyStore

MEETUP_ID = "meetup1"


def _stored_members(store):
    return set(links_by_member(store.list_attendee_links(MEETUP_ID)))


class BarrierStore(FlakyStore):
    """Link writes block until a second write of the same kind arrives."""

    def __init__(self, inner, parties=2, timeout=5):
        super().__init__(inner)
        self.delete_barrier = threading.Barrier(parties, timeout=timeout)
        self.create_barrier = threading.Barrier(parties, timeout=timeout)

    def delete_attendee_link(self, link_id):
        self.delete_barrier.wait()
        super().delete_attendee_link(link_id)

    def create_attendee_link(self, meetup_id, member_id, *args, **kwargs):
        self.create_barrier.wait()
        return super().create_attendee_link(meetup_id, member_id, *args, **kwargs)


class DiffTestCase(unittest.TestCase):
    def test_add_and_remove(self):
        """{1,2,3} -> {2,3,4} adds 4 and removes 1."""
        result = diff({"1", "2", "3"}, {"2", "3", "4"})
        self.assertEqual(result.to_add, {"4"})
        self.assertEqual(result.to_remove, {"1"})

    def test_convergence_and_disjointness(self):
        cases = [
            (set(), set()),
            (set(), {"a", "b"}),
            ({"a", "b"}, set()),
            ({"a", "b", "c"}, {"c", "d"}),
            ({"1", "2"}, {"1", "2"}),
        ]
        for current, desired in cases:
            with self.subTest(current=current, desired=desired):
                result = diff(current, desired)
                self.assertFalse(result.to_add & result.to_remove)
                self.assertEqual(
                    (current - result.to_remove) | result.to_add, desired
                )

    def test_same_set_is_empty(self):
        self.assertEqual(diff({"x", "y"}, {"x", "y"}), AttendeeDiff())
        self.assertTrue(diff({"x"}, ["x", "x"]).is_empty())


class ReconcileTestCase(unittest.TestCase):
    def setUp(self):
        self.store = make_store()

    def test_converges_to_desired_set(self):
        seed_links(self.store, MEETUP_ID, ["1", "2", "3"])

        result = reconcile_attendees(self.store, MEETUP_ID, [2, "3", "4"])

        self.assertTrue(result.ok)
        self.assertEqual(result.added, ["4"])
        self.assertEqual(result.removed, ["1"])
        self.assertEqual(_stored_members(self.store), {"2", "3", "4"})

    def test_unchanged_links_keep_their_payment_data(self):
        self.store.create_attendee_link(
            MEETUP_ID, "2", donation_paid=True, donation_amount=20
        )

        reconcile_attendees(self.store, MEETUP_ID, ["2", "5"])

        links = {
            link["member_id"]: link
            for link in self.store.list_attendee_links(MEETUP_ID)
        }
        self.assertTrue(links["2"]["donation_paid"])
        self.assertEqual(links["2"]["donation_amount"], 20)
        self.assertFalse(links["5"]["donation_paid"])
        self.assertEqual(links["5"]["donation_amount"], 0)

    def test_other_meetups_are_untouched(self):
        seed_links(self.store, "other", ["1"])
        seed_links(self.store, MEETUP_ID, ["1"])

        reconcile_attendees(self.store, MEETUP_ID, [])

        self.assertEqual(_stored_members(self.store), set())
        self.assertEqual(len(self.store.list_attendee_links("other")), 1)

    def test_no_writes_when_already_converged(self):
        store = MagicMock(spec=MeetupStore)
        store.list_attendee_links.return_value = [
            {"id": "l1", "meetup_id": MEETUP_ID, "member_id": "1"},
        ]

        result = reconcile_attendees(store, MEETUP_ID, ["1"])

        self.assertTrue(result.ok)
        store.create_attendee_link.assert_not_called()
        store.delete_attendee_link.assert_not_called()

    def test_removals_run_before_additions(self):
        flaky = FlakyStore(self.store)
        seed_links(self.store, MEETUP_ID, ["1", "2"])

        reconcile_attendees(flaky, MEETUP_ID, ["3", "4"], max_workers=4)

        operations = [op for op, _ in flaky.calls]
        self.assertEqual(
            operations,
            ["delete_attendee_link"] * 2 + ["create_attendee_link"] * 2,
        )

    def test_writes_within_a_phase_run_concurrently(self):
        """Each barrier only opens when both writes of a phase are in flight."""
        seed_links(self.store, MEETUP_ID, ["1", "2"])
        store = BarrierStore(self.store)

        result = reconcile_attendees(store, MEETUP_ID, ["3", "4"], max_workers=2)

        self.assertTrue(result.ok)
        self.assertEqual(sorted(result.removed), ["1", "2"])
        self.assertEqual(sorted(result.added), ["3", "4"])
        self.assertEqual(_stored_members(self.store), {"3", "4"})

    def test_duplicate_rows_of_a_removed_member_are_all_deleted(self):
        store = MagicMock(spec=MeetupStore)
        store.list_attendee_links.return_value = [
            {"id": "l1", "meetup_id": MEETUP_ID, "member_id": 1},
            {"id": "l2", "meetup_id": MEETUP_ID, "member_id": "1"},
        ]

        result = reconcile_attendees(store, MEETUP_ID, [])

        self.assertEqual(result.removed, ["1"])
        deleted = {c.args[0] for c in store.delete_attendee_link.call_args_list}
        self.assertEqual(deleted, {"l1", "l2"})

    def test_partial_removal_failure_keeps_successful_removals(self):
        """Removed rows stay removed and the next diff only sees the failures."""
        seed_links(self.store, MEETUP_ID, ["1", "2", "3"])
        flaky = FlakyStore(self.store)
        flaky.fail_link_deletes.add(link_document_id(MEETUP_ID, "1"))

        with self.assertRaises(PartialBatchError) as cm:
            reconcile_attendees(flaky, MEETUP_ID, ["3"])

        result = cm.exception.result
        self.assertEqual(result.removed, ["2"])
        self.assertEqual([(f.member_id, f.operation) for f in result.failures],
                         [("1", OP_REMOVE)])
        self.assertEqual(cm.exception.status_code, 502)

        # No silent revert: member 2 is gone from the next pass's input.
        current = _stored_members(self.store)
        self.assertEqual(current, {"1", "3"})
        self.assertEqual(diff(current, {"3"}).to_remove, {"1"})

        # A retry recomputes the remaining delta and converges.
        flaky.fail_link_deletes.clear()
        flaky.calls.clear()
        retry = reconcile_attendees(flaky, MEETUP_ID, ["3"])
        self.assertEqual(retry.removed, ["1"])
        self.assertEqual(flaky.calls, [("delete_attendee_link", "meetup1_1")])
        self.assertEqual(_stored_members(self.store), {"3"})

    def test_partial_addition_failure_is_reported_once(self):
        flaky = FlakyStore(self.store)
        flaky.fail_link_adds.add("5")

        with self.assertLogs("trailclub.meetup.reconcile", level="ERROR"):
            with self.assertRaises(PartialBatchError) as cm:
                reconcile_attendees(flaky, MEETUP_ID, ["4", "5", "6"])

        error = cm.exception
        self.assertEqual(error.message, "1 of 3 attendee updates failed.")
        self.assertEqual(error.result.added, ["4", "6"])
        self.assertEqual(error.result.failures[0].operation, OP_ADD)
        self.assertEqual(_stored_members(self.store), {"4", "6"})

    def test_listing_failure_propagates(self):
        flaky = FlakyStore(self.store)
        flaky.fail_link_listing = True

        with self.assertRaises(RemoteOperationError):
            reconcile_attendees(flaky, MEETUP_ID, ["1"])
        self.assertEqual(flaky.calls, [])


if __name__ == "__main__":
    unittest.main()
