"""Tests for the Firestore storage backend."""

import unittest
from unittest.mock import MagicMock

from trailclub.errors import NotFoundError, RemoteOperationError
from trailclub.storage.firestore import FirestoreStore, link_document_id
from tests.conftest import make_store, seed_links


class FirestoreStoreTestCase(unittest.TestCase):
    def setUp(self):
        self.store = make_store()

    def test_meetups_are_listed_by_date_with_their_links(self):
        later = self.store.create_meetup({"date": "2025-05-01", "title": "Later"})
        sooner = self.store.create_meetup({"date": "2025-02-01", "title": "Sooner"})
        seed_links(self.store, later, ["m1", "m2"])

        meetups = self.store.list_meetups()

        self.assertEqual([m["id"] for m in meetups], [sooner, later])
        self.assertEqual(meetups[0]["meetup_attendees"], [])
        self.assertEqual(
            {link["member_id"] for link in meetups[1]["meetup_attendees"]},
            {"m1", "m2"},
        )

    def test_meetups_without_a_date_are_still_listed(self):
        dated = self.store.create_meetup({"date": "2025-02-01", "title": "Dated"})
        _, ref = self.store.db.collection("meetups").add({"title": "Undated"})

        meetups = self.store.list_meetups()

        self.assertEqual([m["id"] for m in meetups], [ref.id, dated])

    def test_create_strips_derived_fields(self):
        meetup_id = self.store.create_meetup(
            {
                "id": "ignored",
                "date": "2025-01-01",
                "title": "Walk",
                "attendees": [{"member_id": "1"}],
                "attendee_ids": ["1"],
            }
        )

        meetup = self.store.get_meetup(meetup_id)

        self.assertEqual(meetup["id"], meetup_id)
        self.assertNotIn("attendees", meetup)
        self.assertNotIn("attendee_ids", meetup)
        self.assertEqual(meetup["meetup_attendees"], [])

    def test_update_meetup(self):
        meetup_id = self.store.create_meetup({"date": "2025-01-01", "title": "A"})

        self.store.update_meetup(meetup_id, {"title": "B", "status": "completed"})

        meetup = self.store.get_meetup(meetup_id)
        self.assertEqual(meetup["title"], "B")
        self.assertEqual(meetup["date"], "2025-01-01")

    def test_missing_meetup(self):
        with self.assertRaises(NotFoundError):
            self.store.get_meetup("nope")
        with self.assertRaises(NotFoundError):
            self.store.update_meetup("nope", {"title": "x"})

    def test_delete_meetup_leaves_links(self):
        meetup_id = self.store.create_meetup({"date": "2025-01-01", "title": "A"})
        seed_links(self.store, meetup_id, ["m1"])

        self.store.delete_meetup(meetup_id)

        with self.assertRaises(NotFoundError):
            self.store.get_meetup(meetup_id)
        self.assertEqual(len(self.store.list_attendee_links(meetup_id)), 1)

    def test_attendee_links(self):
        link_id = self.store.create_attendee_link(
            "mt1", "m1", donation_paid=True, donation_amount=10
        )
        seed_links(self.store, "mt2", ["m1"])

        self.assertEqual(link_id, link_document_id("mt1", "m1"))
        [link] = self.store.list_attendee_links("mt1")
        self.assertEqual(link["id"], link_id)
        self.assertTrue(link["donation_paid"])
        self.assertEqual(len(self.store.list_attendee_links()), 2)

        self.store.delete_attendee_link(link_id)
        self.assertEqual(self.store.list_attendee_links("mt1"), [])

    def test_relinking_a_member_does_not_duplicate(self):
        seed_links(self.store, "mt1", ["m1", "m1"])
        self.assertEqual(len(self.store.list_attendee_links("mt1")), 1)

    def test_members(self):
        zed = self.store.create_member({"nickname": "zed", "name": "Z"})
        amy = self.store.create_member({"nickname": "Amy", "name": "A"})

        self.assertEqual([m["id"] for m in self.store.list_members()], [amy, zed])

        self.store.update_member(zed, {"region": "West"})
        self.assertEqual(self.store.get_member(zed)["region"], "West")

        self.store.delete_member(zed)
        with self.assertRaises(NotFoundError):
            self.store.get_member(zed)

    def test_backend_errors_become_remote_operation_errors(self):
        db = MagicMock()
        db.collection.side_effect = RuntimeError("deadline exceeded")
        store = FirestoreStore(db)

        with self.assertLogs("trailclub.storage.firestore", level="ERROR"):
            with self.assertRaises(RemoteOperationError) as cm:
                store.list_meetups()
        self.assertIn("deadline exceeded", cm.exception.message)


if __name__ == "__main__":
    unittest.main()
