"""View derivation pipeline.

Pure function turning the stored collection plus the current search, filter
and sort state into the ordered list shown to the user. No I/O, no mutation;
identical inputs always yield identical output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Mapping, Sequence

from domain.models import Book, SortOption, author_sort_key
from storage import schema

__all__ = [
    "ViewState",
    "available_languages",
    "derive_view",
    "matches",
    "sort_books",
]


@dataclass(frozen=True)
class ViewState:
    """Everything besides the collection that shapes the visible list."""

    search: str = ""
    show_read: bool = True
    show_unread: bool = True
    filter_youth: bool = False
    filter_owned: bool = False
    filter_non_fiction: bool = False
    selected_languages: frozenset[str] = field(default_factory=frozenset)
    sort_option: SortOption = SortOption.AUTHOR

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, object], search: str = "") -> "ViewState":
        return cls(
            search=search,
            show_read=bool(snapshot[schema.SHOW_READ]),
            show_unread=bool(snapshot[schema.SHOW_UNREAD]),
            filter_youth=bool(snapshot[schema.FILTER_YOUTH]),
            filter_owned=bool(snapshot[schema.FILTER_OWNED]),
            filter_non_fiction=bool(snapshot[schema.FILTER_NON_FICTION]),
            selected_languages=frozenset(snapshot[schema.SELECTED_LANGUAGES]),  # type: ignore[arg-type]
            sort_option=SortOption.parse(snapshot[schema.SORT_OPTION]),  # type: ignore[arg-type]
        )

    @property
    def any_tag_filter(self) -> bool:
        return self.filter_youth or self.filter_owned or self.filter_non_fiction


def _matches_search(book: Book, search: str) -> bool:
    if not search.strip():
        return True
    needle = search.lower()
    return needle in book.title.lower() or needle in book.author.lower()


def _matches_status(book: Book, state: ViewState) -> bool:
    return (book.read and state.show_read) or (not book.read and state.show_unread)


def _matches_tags(book: Book, state: ViewState) -> bool:
    # Inclusive OR across the active tag filters
    if not state.any_tag_filter:
        return True
    return (
        (state.filter_youth and book.is_youth)
        or (state.filter_owned and book.is_on_shelf)
        or (state.filter_non_fiction and book.is_non_fiction)
    )


def matches(book: Book, state: ViewState) -> bool:
    return (
        _matches_search(book, state.search)
        and _matches_status(book, state)
        and _matches_tags(book, state)
        and book.language in state.selected_languages
    )


_SORT_KEYS: dict[SortOption, Callable[[Book], str]] = {
    SortOption.TITLE: lambda b: b.title.lower(),
    SortOption.LANGUAGE: lambda b: b.language.lower(),
    SortOption.AUTHOR: lambda b: author_sort_key(b.author),
}


def sort_books(books: Iterable[Book], option: SortOption) -> List[Book]:
    # sorted() is stable: equal keys keep their input order
    return sorted(books, key=_SORT_KEYS[option])


def derive_view(books: Sequence[Book], state: ViewState) -> List[Book]:
    return sort_books((b for b in books if matches(b, state)), state.sort_option)


def available_languages(books: Iterable[Book]) -> List[str]:
    """Distinct languages present in the collection, sorted."""
    return sorted({b.language for b in books})
