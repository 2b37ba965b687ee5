"""Persisted preference layout: key names, defaults and value codecs.

Every value is stored as plain JSON inside a single preference file. Each
field owns a ``decode`` (raw JSON -> typed value, raising
``CorruptStateError`` on malformed data) and an ``encode`` (typed value ->
raw JSON) so the store can fall back to the documented default per key.

The book collection is kept as one JSON *string* under ``books`` and is
rewritten as a whole on every change.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Final, Iterable, Mapping, Tuple

from config import settings
from domain.errors import CorruptStateError
from domain.models import Book, SortOption, normalize_language

__all__ = [
    "BOOKS",
    "SORT_OPTION",
    "LEGACY_SORT_TITLE",
    "FONT_SCALE",
    "SHOW_READ",
    "SHOW_UNREAD",
    "FILTER_YOUTH",
    "FILTER_OWNED",
    "FILTER_NON_FICTION",
    "SELECTED_LANGUAGES",
    "FILTERS_INITIALIZED",
    "CUSTOM_LANGUAGES",
    "LAST_SELECTED_LANGUAGE",
    "LAST_READ_STATUS",
    "FIELDS",
    "PreferenceField",
    "decode_snapshot",
    "default_snapshot",
    "encode_snapshot",
]

_log = logging.getLogger(__name__)

BOOKS: Final = "books"
SORT_OPTION: Final = "sortOption"
LEGACY_SORT_TITLE: Final = "sortTitle"  # written alongside sortOption for older readers
FONT_SCALE: Final = "fontScale"
SHOW_READ: Final = "showRead"
SHOW_UNREAD: Final = "showUnread"
FILTER_YOUTH: Final = "filterYouth"
FILTER_OWNED: Final = "filterOwned"
FILTER_NON_FICTION: Final = "filterNonFiction"
SELECTED_LANGUAGES: Final = "selectedLanguages"
FILTERS_INITIALIZED: Final = "filtersInitialized"
CUSTOM_LANGUAGES: Final = "customLanguages"
LAST_SELECTED_LANGUAGE: Final = "lastSelectedLanguage"
LAST_READ_STATUS: Final = "lastReadStatus"


@dataclass(frozen=True)
class PreferenceField:
    key: str
    default: Any
    decode: Callable[[Any], Any]
    encode: Callable[[Any], Any]


# ----------------------------------------------------------------------
# Codecs
# ----------------------------------------------------------------------
def _corrupt(key: str, raw: Any, reason: str) -> CorruptStateError:
    return CorruptStateError(
        f"Invalid stored value for '{key}': {reason}", context={"key": key, "raw": repr(raw)[:80]}
    )


def _decode_bool(key: str) -> Callable[[Any], bool]:
    def decode(raw: Any) -> bool:
        if isinstance(raw, bool):
            return raw
        raise _corrupt(key, raw, "expected a boolean")

    return decode


def _decode_books(raw: Any) -> Tuple[Book, ...]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return ()
    if isinstance(raw, str):
        try:
            entries = json.loads(raw)
        except ValueError as exc:
            raise _corrupt(BOOKS, raw, f"not valid JSON ({exc})") from exc
    else:
        entries = raw
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise _corrupt(BOOKS, raw, "expected a list of books")
    books = []
    for entry in entries:
        book = Book.from_dict(entry)
        if book is None:
            _log.warning("Dropping unreadable book entry: %r", entry)
            continue
        books.append(book)
    return tuple(books)


def _encode_books(books: Iterable[Book]) -> str:
    return json.dumps([b.normalized().to_dict() for b in books], ensure_ascii=False)


def _decode_sort(raw: Any) -> SortOption:
    try:
        return SortOption.parse(raw)
    except ValueError as exc:
        raise _corrupt(SORT_OPTION, raw, "unknown sort option") from exc


def _decode_font_scale(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
        raise _corrupt(FONT_SCALE, raw, "expected a positive number")
    return float(raw)


def _decode_languages(key: str) -> Callable[[Any], frozenset[str]]:
    def decode(raw: Any) -> frozenset[str]:
        if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
            raise _corrupt(key, raw, "expected a list of strings")
        return frozenset(normalize_language(v) for v in raw if v.strip())

    return decode


def _encode_languages(values: Iterable[str]) -> list[str]:
    return sorted({normalize_language(v) for v in values if v and v.strip()})


def _decode_language(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise _corrupt(LAST_SELECTED_LANGUAGE, raw, "expected a non-blank string")
    return normalize_language(raw)


def _encode_language(value: str) -> str:
    return normalize_language(value) or settings.DEFAULT_LANGUAGE


def _bool_field(key: str, default: bool) -> PreferenceField:
    return PreferenceField(key, default, _decode_bool(key), bool)


FIELDS: Dict[str, PreferenceField] = {
    f.key: f
    for f in (
        PreferenceField(BOOKS, (), _decode_books, _encode_books),
        PreferenceField(
            SORT_OPTION, SortOption.AUTHOR, _decode_sort, lambda v: SortOption.parse(v).value
        ),
        PreferenceField(FONT_SCALE, settings.DEFAULT_FONT_SCALE, _decode_font_scale, float),
        _bool_field(SHOW_READ, True),
        _bool_field(SHOW_UNREAD, True),
        _bool_field(FILTER_YOUTH, False),
        _bool_field(FILTER_OWNED, False),
        _bool_field(FILTER_NON_FICTION, False),
        PreferenceField(
            SELECTED_LANGUAGES,
            frozenset(),
            _decode_languages(SELECTED_LANGUAGES),
            _encode_languages,
        ),
        _bool_field(FILTERS_INITIALIZED, False),
        PreferenceField(
            CUSTOM_LANGUAGES,
            frozenset(),
            _decode_languages(CUSTOM_LANGUAGES),
            _encode_languages,
        ),
        PreferenceField(
            LAST_SELECTED_LANGUAGE,
            settings.DEFAULT_LANGUAGE,
            _decode_language,
            _encode_language,
        ),
        _bool_field(LAST_READ_STATUS, False),
    )
}


# ----------------------------------------------------------------------
# Snapshot helpers
# ----------------------------------------------------------------------
def default_snapshot() -> Dict[str, Any]:
    return {key: f.default for key, f in FIELDS.items()}


def decode_value(key: str, raw: Mapping[str, Any]) -> Any:
    """Decode one key from the raw mapping; raises CorruptStateError."""
    field = FIELDS[key]
    if key == SORT_OPTION and SORT_OPTION not in raw:
        legacy = raw.get(LEGACY_SORT_TITLE)
        return SortOption.TITLE if legacy is True else SortOption.AUTHOR
    if key not in raw:
        return field.default
    return field.decode(raw[key])


def decode_snapshot(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Decode every known key, substituting defaults for corrupt values."""
    snapshot: Dict[str, Any] = {}
    for key, field in FIELDS.items():
        try:
            snapshot[key] = decode_value(key, raw)
        except CorruptStateError as err:
            _log.warning("%s (using default)", err)
            snapshot[key] = field.default
    return snapshot


def encode_snapshot(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(snapshot) - set(FIELDS)
    if unknown:
        raise KeyError(f"Unknown preference keys: {sorted(unknown)}")
    raw = {key: FIELDS[key].encode(snapshot[key]) for key in FIELDS if key in snapshot}
    if SORT_OPTION in raw:
        raw[LEGACY_SORT_TITLE] = raw[SORT_OPTION] == SortOption.TITLE.value
    return raw
