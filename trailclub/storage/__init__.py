"""Storage backends for meetups, attendee links and members."""

from flask import current_app, g

from .base import MeetupStore

__all__ = ["MeetupStore", "create_store", "get_store"]


def create_store(config):
    """Build the backend selected by ``STORAGE_BACKEND``."""
    backend = config.get("STORAGE_BACKEND", "firestore")
    if backend == "rest":
        from .rest import RestStore

        return RestStore(config.get("API_BASE_URL", ""), config.get("API_TIMEOUT"))
    if backend == "firestore":
        from firebase_admin import firestore

        from .firestore import FirestoreStore

        return FirestoreStore(firestore.client())
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")


def get_store():
    """Return the store of the current request, creating it on first use."""
    if "store" not in g:
        g.store = create_store(current_app.config)
    return g.store
