"""Structured errors raised (or logged) by the book tracker core."""

from __future__ import annotations
from typing import Any


class BookTrackerError(Exception):
    """Base class for book tracker issues."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class DuplicateBookError(BookTrackerError):
    """Raised when a (title, author) pair already exists, ignoring case."""


class BookNotFoundError(BookTrackerError):
    """Raised when an update targets a book key that is not in the collection."""


class CorruptStateError(BookTrackerError):
    """Malformed persisted data. Logged by the store, never propagated."""


class InvalidBookError(BookTrackerError, ValueError):
    """Raised when a book lacks a title or author."""
