"""Core data types for the trailclub application."""

from typing import Any, TypedDict


class _StoredDocumentBase(TypedDict):
    id: str


class StoredDocument(_StoredDocumentBase, total=False):
    """Generic stored row/document structure, whatever the backend."""

    created_at: Any
    updated_at: Any
