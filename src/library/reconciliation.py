"""Language set reconciliation, run after every change of the collection.

Keeps the derived ``customLanguages`` cache in sync with the books and
performs the one-time filter initialization the first time the collection
holds any book.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping

from config import settings
from domain.models import Book
from storage import schema
from storage.preference_store import PreferenceStore

__all__ = ["reconcile_languages", "reconciled_snapshot", "custom_languages_for"]

_log = logging.getLogger(__name__)


def custom_languages_for(
    books: Iterable[Book], standard: Iterable[str] = settings.STANDARD_LANGUAGES
) -> frozenset[str]:
    return frozenset(b.language for b in books) - frozenset(standard)


def reconciled_snapshot(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``snapshot`` with filter init (once) and custom languages applied."""
    books = snapshot[schema.BOOKS]
    updated = dict(snapshot)
    if books and not snapshot[schema.FILTERS_INITIALIZED]:
        updated[schema.SHOW_READ] = True
        updated[schema.SHOW_UNREAD] = True
        updated[schema.SELECTED_LANGUAGES] = frozenset(b.language for b in books)
        updated[schema.FILTERS_INITIALIZED] = True
        _log.info("Initialized filters with %d language(s)", len(updated[schema.SELECTED_LANGUAGES]))
    updated[schema.CUSTOM_LANGUAGES] = custom_languages_for(books)
    return updated


def reconcile_languages(store: PreferenceStore) -> Dict[str, Any]:
    """Apply the reconciliation rules to the store in one atomic write."""
    return store.write_atomic(reconciled_snapshot)
