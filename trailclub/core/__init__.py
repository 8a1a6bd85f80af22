"""Core module for the trailclub application."""

from .types import StoredDocument

__all__ = ["StoredDocument"]
