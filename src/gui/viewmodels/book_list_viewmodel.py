"""ViewModel for the book list screen.

Turns the service's derived view into display rows (author reordered, tag
badges) so the Qt model and window stay thin. Pure Python, testable without a
QApplication.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from core.event_bus import AppEvent, Event, Subscription
from domain.models import Book, BookKey
from library.book_service import BookLibraryService

BADGE_YOUTH = "YTH"
BADGE_OWNED = "OWN"
BADGE_NON_FICTION = "N-F"


@dataclass(frozen=True)
class BookRow:
    key: BookKey
    title: str
    author: str
    language: str
    read: bool
    badges: Tuple[str, ...]

    @classmethod
    def from_book(cls, book: Book) -> "BookRow":
        badges = []
        if book.is_youth:
            badges.append(BADGE_YOUTH)
        if book.is_non_fiction:
            badges.append(BADGE_NON_FICTION)
        if book.is_on_shelf:
            badges.append(BADGE_OWNED)
        return cls(
            key=book.key,
            title=book.title,
            author=book.display_author,
            language=book.language,
            read=book.read,
            badges=tuple(badges),
        )


class BookListViewModel:
    """Keeps the current rows in sync with ``VIEW_CHANGED`` events."""

    def __init__(self, service: BookLibraryService):
        self._service = service
        self._rows: List[BookRow] = [BookRow.from_book(b) for b in service.list_books()]
        self._listeners: List[Callable[[List[BookRow]], None]] = []
        self._sub: Optional[Subscription] = service.event_bus.subscribe(
            AppEvent.VIEW_CHANGED, self._on_view_changed
        )

    def _on_view_changed(self, evt: Event) -> None:
        self._rows = [BookRow.from_book(b) for b in evt.payload]
        for listener in list(self._listeners):
            listener(self.rows())

    def add_listener(self, listener: Callable[[List[BookRow]], None]) -> None:
        self._listeners.append(listener)

    def rows(self) -> List[BookRow]:
        return list(self._rows)

    def empty_message(self) -> str:
        if self._rows:
            return ""
        return "No results found" if self._service.search else "No books in library"

    def close(self) -> None:
        if self._sub is not None:
            self._service.event_bus.unsubscribe(self._sub)
            self._sub = None
        self._listeners.clear()


__all__ = ["BookListViewModel", "BookRow", "BADGE_NON_FICTION", "BADGE_OWNED", "BADGE_YOUTH"]
