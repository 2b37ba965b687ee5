from domain.models import Book
from gui.viewmodels.book_list_viewmodel import BookListViewModel, BookRow


def test_row_shows_given_name_first_and_badges():
    row = BookRow.from_book(
        Book("Sapiens", "Harari, Yuval Noah", is_youth=True, is_on_shelf=True, is_non_fiction=True)
    )
    assert row.author == "Yuval Noah Harari"
    assert row.badges == ("YTH", "N-F", "OWN")
    assert BookRow.from_book(Book("Emma", "Austen, Jane")).badges == ()


def test_rows_follow_view_changes(library):
    vm = BookListViewModel(library)
    updates = []
    vm.add_listener(lambda rows: updates.append([r.title for r in rows]))
    assert vm.rows() == []
    assert vm.empty_message() == "No books in library"

    library.add_book(Book("Dune", "Herbert, Frank"))
    assert [r.title for r in vm.rows()] == ["Dune"]
    assert vm.empty_message() == ""

    library.set_search("nothing matches")
    assert vm.rows() == []
    assert vm.empty_message() == "No results found"
    assert updates[-1] == []
    vm.close()


def test_close_stops_updates(library):
    vm = BookListViewModel(library)
    vm.close()
    library.add_book(Book("Dune", "Herbert, Frank"))
    assert vm.rows() == []
