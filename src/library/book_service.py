"""Book library service: the operations the presentation layer calls.

Wraps an injected :class:`PreferenceStore`. Persisted state (collection,
filters, sort) goes through the store; the search text is transient and
lives here. Every operation returns the recomputed ordered view, and every
emission of a view-relevant key republishes it as ``AppEvent.VIEW_CHANGED``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from config import settings
from core.event_bus import AppEvent, EventBus, Subscription
from domain.errors import BookNotFoundError, DuplicateBookError, InvalidBookError
from domain.models import Book, BookKey, FilterKind, SortOption, normalize_language
from storage import schema
from storage.preference_store import PreferenceStore

from .reconciliation import reconcile_languages
from .view_pipeline import ViewState, available_languages, derive_view

__all__ = ["BookLibraryService", "FormDefaults", "FILTER_KEYS"]

_log = logging.getLogger(__name__)

FILTER_KEYS: Dict[FilterKind, str] = {
    FilterKind.READ: schema.SHOW_READ,
    FilterKind.UNREAD: schema.SHOW_UNREAD,
    FilterKind.YOUTH: schema.FILTER_YOUTH,
    FilterKind.OWNED: schema.FILTER_OWNED,
    FilterKind.NON_FICTION: schema.FILTER_NON_FICTION,
}

_VIEW_KEYS = (
    schema.BOOKS,
    schema.SORT_OPTION,
    schema.SELECTED_LANGUAGES,
    *FILTER_KEYS.values(),
)

KeyLike = BookKey | Book | Tuple[str, str]


@dataclass(frozen=True)
class FormDefaults:
    """Pre-fill values for the "add book" form."""

    language: str
    read: bool
    language_choices: Tuple[str, ...]


class BookLibraryService:
    def __init__(self, store: PreferenceStore, *, event_bus: EventBus | None = None) -> None:
        self._store = store
        self._bus = event_bus or store.event_bus
        self._search = ""
        self._subs: List[Subscription] = []
        self._subs.append(
            store.observe(schema.BOOKS, self._on_books_changed, emit_current=True)
        )
        for key in _VIEW_KEYS:
            self._subs.append(store.observe(key, self._on_view_input, emit_current=False))

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def _on_books_changed(self, _books: Any) -> None:
        reconcile_languages(self._store)

    def _on_view_input(self, _value: Any) -> None:
        self._publish_view()

    def _publish_view(self) -> List[Book]:
        view = self.list_books()
        self._bus.publish(AppEvent.VIEW_CHANGED, view)
        return view

    def close(self) -> None:
        for sub in self._subs:
            self._store.event_bus.unsubscribe(sub)
        self._subs.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def store(self) -> PreferenceStore:
        return self._store

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def search(self) -> str:
        return self._search

    def books(self) -> List[Book]:
        """The full collection in stored order."""
        return list(self._store.read(schema.BOOKS))

    def view_state(self) -> ViewState:
        return ViewState.from_snapshot(self._store.snapshot(), search=self._search)

    def list_books(self) -> List[Book]:
        snapshot = self._store.snapshot()
        state = ViewState.from_snapshot(snapshot, search=self._search)
        return derive_view(snapshot[schema.BOOKS], state)

    def find_book(self, key: KeyLike) -> Optional[Book]:
        wanted = BookKey.coerce(key)
        for book in self._store.read(schema.BOOKS):
            if book.key == wanted:
                return book
        return None

    def available_languages(self) -> List[str]:
        return available_languages(self._store.read(schema.BOOKS))

    def font_scale(self) -> float:
        return self._store.read(schema.FONT_SCALE)

    def form_defaults(self) -> FormDefaults:
        snapshot = self._store.snapshot()
        choices = sorted(set(settings.STANDARD_LANGUAGES) | set(snapshot[schema.CUSTOM_LANGUAGES]))
        return FormDefaults(
            language=snapshot[schema.LAST_SELECTED_LANGUAGE],
            read=snapshot[schema.LAST_READ_STATUS],
            language_choices=tuple(choices),
        )

    # ------------------------------------------------------------------
    # Collection edits
    # ------------------------------------------------------------------
    @staticmethod
    def _validated(book: Book) -> Book:
        if not book.title.strip():
            raise InvalidBookError("Book title must not be blank")
        if not book.author.strip():
            raise InvalidBookError("Book author must not be blank", context={"title": book.title})
        return book.normalized()

    def add_book(self, book: Book) -> List[Book]:
        """Append ``book``; raises DuplicateBookError if its key already exists."""
        book = self._validated(book)

        def mutate(snap: Dict[str, Any]) -> Dict[str, Any]:
            books = snap[schema.BOOKS]
            if any(b.key == book.key for b in books):
                raise DuplicateBookError(
                    f"'{book.title}' by {book.author} is already in the library",
                    context={"title": book.title, "author": book.author},
                )
            return {
                **snap,
                schema.BOOKS: (*books, book),
                schema.SELECTED_LANGUAGES: snap[schema.SELECTED_LANGUAGES] | {book.language},
                schema.LAST_SELECTED_LANGUAGE: book.language,
                schema.LAST_READ_STATUS: book.read,
            }

        self._store.write_atomic(mutate)
        _log.info("Added book %r by %r (%s)", book.title, book.author, book.language)
        return self.list_books()

    def update_book(self, old_key: KeyLike, **fields: Any) -> List[Book]:
        """Replace the book identified by ``old_key`` with a copy using ``fields``."""
        wanted = BookKey.coerce(old_key)

        def mutate(snap: Dict[str, Any]) -> Dict[str, Any]:
            books = list(snap[schema.BOOKS])
            for index, existing in enumerate(books):
                if existing.key == wanted:
                    break
            else:
                raise BookNotFoundError(
                    f"No book with title {wanted.title!r} by {wanted.author!r}",
                    context={"title": wanted.title, "author": wanted.author},
                )
            updated = self._validated(replace(existing, **fields))
            if updated.key != wanted and any(
                b.key == updated.key for i, b in enumerate(books) if i != index
            ):
                raise DuplicateBookError(
                    f"'{updated.title}' by {updated.author} is already in the library",
                    context={"title": updated.title, "author": updated.author},
                )
            books[index] = updated
            return {**snap, schema.BOOKS: tuple(books)}

        self._store.write_atomic(mutate)
        return self.list_books()

    def delete_book(self, key: KeyLike) -> List[Book]:
        wanted = BookKey.coerce(key)

        def mutate(snap: Dict[str, Any]) -> Dict[str, Any]:
            remaining = tuple(b for b in snap[schema.BOOKS] if b.key != wanted)
            return {**snap, schema.BOOKS: remaining}

        self._store.write_atomic(mutate)
        return self.list_books()

    def toggle_read(self, key: KeyLike) -> List[Book]:
        book = self.find_book(key)
        if book is None:
            raise BookNotFoundError(f"No book matching {key!r}")
        return self.update_book(book.key, read=not book.read)

    def toggle_owned(self, key: KeyLike) -> List[Book]:
        book = self.find_book(key)
        if book is None:
            raise BookNotFoundError(f"No book matching {key!r}")
        return self.update_book(book.key, is_on_shelf=not book.is_on_shelf)

    # ------------------------------------------------------------------
    # Filters / sort / search
    # ------------------------------------------------------------------
    def set_filter(self, kind: FilterKind | str, value: bool) -> List[Book]:
        self._store.write(FILTER_KEYS[FilterKind.parse(kind)], bool(value))
        return self.list_books()

    def toggle_filter(self, kind: FilterKind | str) -> List[Book]:
        key = FILTER_KEYS[FilterKind.parse(kind)]
        self._store.write_atomic(lambda snap: {**snap, key: not snap[key]})
        return self.list_books()

    def toggle_language(self, language: str) -> List[Book]:
        language = normalize_language(language)

        def mutate(snap: Dict[str, Any]) -> Dict[str, Any]:
            selected = snap[schema.SELECTED_LANGUAGES]
            selected = selected - {language} if language in selected else selected | {language}
            return {**snap, schema.SELECTED_LANGUAGES: selected}

        self._store.write_atomic(mutate)
        return self.list_books()

    def set_sort(self, option: SortOption | str) -> List[Book]:
        self._store.write(schema.SORT_OPTION, SortOption.parse(option))
        return self.list_books()

    def set_search(self, text: str) -> List[Book]:
        self._search = text
        return self._publish_view()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def set_font_scale(self, value: float) -> float:
        if value <= 0:
            _log.warning("Ignoring non-positive font scale %r", value)
            return self.font_scale()
        self._store.write(schema.FONT_SCALE, float(value))
        return float(value)

    def add_custom_language(self, language: str) -> str:
        """Register a typed language for the creation form; returns it normalized."""
        normalized = normalize_language(language)
        if normalized:
            self._store.add_custom_language(normalized)
        return normalized
