import pytest

from core.event_bus import AppEvent
from domain.errors import BookNotFoundError, DuplicateBookError, InvalidBookError
from domain.models import Book, BookKey, FilterKind, SortOption
from library.book_service import BookLibraryService
from storage import schema
from storage.preference_store import PreferenceStore


def _titles(books):
    return [b.title for b in books]


def test_add_book_round_trip_normalizes_language(library: BookLibraryService):
    view = library.add_book(Book("Dune", "Herbert, Frank", language="french"))
    assert _titles(view) == ["Dune"]
    stored = library.find_book(("dune", "herbert, frank"))
    assert stored is not None and stored.language == "French"
    assert library.view_state().selected_languages == frozenset({"French"})


def test_add_book_remembers_form_defaults(library: BookLibraryService):
    library.add_book(Book("Dune", "Herbert, Frank", language="Zulu", read=True))
    defaults = library.form_defaults()
    assert defaults.language == "Zulu"
    assert defaults.read is True
    assert defaults.language_choices == ("Afrikaans", "English", "Zulu")


def test_duplicate_rejected_case_insensitively(library: BookLibraryService):
    library.add_book(Book("Dune", "Herbert, Frank"))
    before = library.books()
    with pytest.raises(DuplicateBookError):
        library.add_book(Book("DUNE", "herbert, FRANK", language="Zulu"))
    assert library.books() == before


def test_blank_title_or_author_rejected(library: BookLibraryService):
    with pytest.raises(InvalidBookError):
        library.add_book(Book("  ", "Someone"))
    with pytest.raises(InvalidBookError):
        library.add_book(Book("Title", ""))
    assert library.books() == []


def test_update_keeps_position_and_checks_collisions(library: BookLibraryService):
    library.add_book(Book("Emma", "Austen, Jane"))
    library.add_book(Book("Dune", "Herbert, Frank"))
    library.update_book(("emma", "austen, jane"), title="Persuasion", is_on_shelf=True)
    assert _titles(library.books()) == ["Persuasion", "Dune"]
    assert library.books()[0].is_on_shelf
    with pytest.raises(DuplicateBookError):
        library.update_book(("persuasion", "austen, jane"), title="Dune", author="Herbert, Frank")
    with pytest.raises(BookNotFoundError):
        library.update_book(("missing", "nobody"), read=True)


def test_update_may_change_case_of_own_key(library: BookLibraryService):
    library.add_book(Book("dune", "herbert, frank"))
    library.update_book(("dune", "herbert, frank"), title="Dune", author="Herbert, Frank")
    assert library.books() == [Book("Dune", "Herbert, Frank")]


def test_delete_and_toggles(library: BookLibraryService):
    library.add_book(Book("Dune", "Herbert, Frank"))
    key = BookKey.of("Dune", "Herbert, Frank")
    library.toggle_read(key)
    library.toggle_owned(key)
    book = library.find_book(key)
    assert book.read and book.is_on_shelf
    library.toggle_read(key)
    assert not library.find_book(key).read
    library.delete_book(key)
    assert library.books() == []
    library.delete_book(key)  # deleting an absent book is a no-op
    with pytest.raises(BookNotFoundError):
        library.toggle_read(key)


def test_filters_sort_and_search(library: BookLibraryService):
    library.add_book(Book("Emma", "Austen, Jane", read=True))
    library.add_book(Book("Dune", "Herbert, Frank", is_youth=True))
    assert _titles(library.set_filter(FilterKind.READ, False)) == ["Dune"]
    assert _titles(library.toggle_filter("read")) == ["Emma", "Dune"]
    assert _titles(library.set_sort("title")) == ["Dune", "Emma"]
    assert library.store.read(schema.SORT_OPTION) is SortOption.TITLE
    assert _titles(library.set_filter("youth", True)) == ["Dune"]
    library.set_filter("youth", False)
    assert _titles(library.set_search("aust")) == ["Emma"]
    assert library.search == "aust"
    assert library.store.read(schema.BOOKS)  # search is never persisted


def test_toggle_language_adds_and_removes(library: BookLibraryService):
    library.add_book(Book("Emma", "Austen, Jane"))
    library.add_book(Book("Inkinsela", "Ntuli, D.B.Z.", language="Zulu"))
    assert _titles(library.toggle_language("zulu")) == ["Emma"]
    assert _titles(library.toggle_language("Zulu")) == ["Emma", "Inkinsela"]


def test_view_changed_published_on_every_relevant_change(library: BookLibraryService):
    views = []
    library.event_bus.subscribe(AppEvent.VIEW_CHANGED, lambda evt: views.append(_titles(evt.payload)))
    library.add_book(Book("Dune", "Herbert, Frank"))
    library.set_filter("unread", False)
    library.set_search("zzz")
    assert views[-1] == []
    assert ["Dune"] in views


def test_font_scale_ignores_non_positive(library: BookLibraryService):
    assert library.font_scale() == 1.3
    assert library.set_font_scale(1.6) == 1.6
    assert library.set_font_scale(0) == 1.6
    assert library.set_font_scale(-2) == 1.6
    assert library.font_scale() == 1.6


def test_custom_language_offered_in_form(library: BookLibraryService):
    assert library.add_custom_language(" xhosa ") == "Xhosa"
    assert "Xhosa" in library.form_defaults().language_choices


def test_existing_collection_initializes_filters_on_start(tmp_path):
    with PreferenceStore(tmp_path, async_writes=False) as store:
        store.write(schema.BOOKS, (Book("A", "X", language="Zulu"), Book("B", "Y")))
        svc = BookLibraryService(store)
        assert store.read(schema.FILTERS_INITIALIZED) is True
        assert _titles(svc.list_books()) == ["A", "B"]
        assert svc.available_languages() == ["English", "Zulu"]
        svc.close()
