"""Common utilities for tests."""

from typing import Any, Optional

from mockfirestore import CollectionReference, MockFirestore, Query

from trailclub.storage.firestore import FirestoreStore


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:  # noqa: E501
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where


def make_store() -> FirestoreStore:
    """A FirestoreStore over an empty in-memory database."""
    patch_mockfirestore()
    return FirestoreStore(MockFirestore())


def seed_links(store: FirestoreStore, meetup_id: str, member_ids, **fields) -> None:
    for member_id in member_ids:
        store.create_attendee_link(meetup_id, member_id, **fields)
