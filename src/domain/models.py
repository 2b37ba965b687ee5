"""Domain models for the personal book collection."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from config import settings

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_language(language: str) -> str:
    """Trim and upper-case the first character ("english " -> "English")."""
    text = language.strip()
    return text[:1].upper() + text[1:]


def author_sort_key(author: str) -> str:
    """Return the lower-cased surname used to order books by author.

    "Tolkien, J.R.R." -> "tolkien", "Jane Austen" -> "austen", "Homer" -> "homer".
    """
    text = author.strip()
    if "," in text:
        return text.split(",", 1)[0].strip().lower()
    if _WHITESPACE_RE.search(text):
        return _WHITESPACE_RE.split(text)[-1].lower()
    return text.lower()


def display_author(author: str) -> str:
    """Reorder "Surname, Given" to "Given Surname" for display."""
    if "," not in author:
        return author
    parts = author.split(",")
    return f"{parts[1].strip()} {parts[0].strip()}"


def compose_author(surname: str, given_name: str = "") -> str:
    """Build the stored author string from the creation form fields."""
    surname = surname.strip()
    given_name = given_name.strip()
    return f"{surname}, {given_name}" if given_name else surname


class SortOption(str, Enum):
    AUTHOR = "AUTHOR"
    TITLE = "TITLE"
    LANGUAGE = "LANGUAGE"

    @classmethod
    def parse(cls, value: "str | SortOption") -> "SortOption":
        if isinstance(value, SortOption):
            return value
        return cls(str(value).strip().upper())


class FilterKind(str, Enum):
    READ = "read"
    UNREAD = "unread"
    YOUTH = "youth"
    OWNED = "owned"
    NON_FICTION = "non_fiction"

    @classmethod
    def parse(cls, value: "str | FilterKind") -> "FilterKind":
        if isinstance(value, FilterKind):
            return value
        return cls(str(value).strip().lower().replace("-", "_"))


class BookKey(NamedTuple):
    """Case-insensitive structural identity of a book."""

    title: str
    author: str

    @classmethod
    def of(cls, title: str, author: str) -> "BookKey":
        return cls(title.lower(), author.lower())

    @classmethod
    def coerce(cls, value: "BookKey | Book | tuple[str, str]") -> "BookKey":
        if isinstance(value, Book):
            return value.key
        title, author = value
        return cls.of(title, author)


@dataclass(frozen=True, slots=True)
class Book:
    title: str
    author: str
    language: str = settings.DEFAULT_LANGUAGE
    read: bool = False
    is_youth: bool = False
    is_on_shelf: bool = False
    is_non_fiction: bool = False

    @property
    def key(self) -> BookKey:
        return BookKey.of(self.title, self.author)

    @property
    def display_author(self) -> str:
        return display_author(self.author)

    def normalized(self) -> "Book":
        language = normalize_language(self.language) or settings.DEFAULT_LANGUAGE
        if language == self.language:
            return self
        return replace(self, language=language)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "language": self.language,
            "read": self.read,
            "isYouth": self.is_youth,
            "isOnShelf": self.is_on_shelf,
            "isNonFiction": self.is_non_fiction,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["Book"]:
        """Parse one stored entry; returns None for entries without a usable title."""
        if not isinstance(data, dict):
            return None
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            return None
        author = data.get("author")
        language = data.get("language")
        return cls(
            title=title,
            author=author if isinstance(author, str) else "",
            language=(
                normalize_language(language)
                if isinstance(language, str) and language.strip()
                else settings.DEFAULT_LANGUAGE
            ),
            read=bool(data.get("read", False)),
            is_youth=bool(data.get("isYouth", False)),
            is_on_shelf=bool(data.get("isOnShelf", False)),
            is_non_fiction=bool(data.get("isNonFiction", False)),
        )


__all__ = [
    "Book",
    "BookKey",
    "FilterKind",
    "SortOption",
    "author_sort_key",
    "compose_author",
    "display_author",
    "normalize_language",
]
