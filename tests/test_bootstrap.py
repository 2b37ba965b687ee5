import json
import sys

from core.event_bus import AppEvent
from domain.models import Book
from gui.app.bootstrap import create_app


def test_headless_bootstrap_builds_context(tmp_path):
    ctx = create_app(data_dir=tmp_path, headless=True)
    try:
        assert ctx.qt_app is None
        assert ctx.headless is True
        assert ctx.data_dir == tmp_path
        assert ctx.store.path == tmp_path / "book_prefs.json"
        assert ctx.library.store is ctx.store
        assert ctx.library.event_bus is ctx.event_bus
        assert ctx.logging_service.attached
        assert not ctx.error_service.installed
        assert ctx.duration_s >= 0
    finally:
        ctx.shutdown()
    assert ctx.store.closed
    assert not ctx.logging_service.attached


def test_contexts_are_independent(tmp_path):
    with create_app(data_dir=tmp_path / "a", headless=True) as a, create_app(
        data_dir=tmp_path / "b", headless=True
    ) as b:
        a.library.add_book(Book("Dune", "Herbert, Frank"))
        assert a.event_bus is not b.event_bus
        assert b.library.books() == []


def test_shutdown_flushes_preferences(tmp_path):
    with create_app(data_dir=tmp_path, headless=True) as ctx:
        ctx.library.add_book(Book("Dune", "Herbert, Frank", language="zulu"))
    raw = json.loads((tmp_path / "book_prefs.json").read_text(encoding="utf-8"))
    books = json.loads(raw["books"])
    assert books[0]["language"] == "Zulu"
    assert raw["customLanguages"] == ["Zulu"]
    ctx.shutdown()  # second call is a no-op


def test_error_hooks_installed_on_request(tmp_path):
    prev = sys.excepthook
    with create_app(data_dir=tmp_path, headless=True, install_error_hooks=True) as ctx:
        assert ctx.error_service.installed
    assert sys.excepthook is prev


def test_corrupt_state_warning_reaches_log_buffer(tmp_path):
    (tmp_path / "book_prefs.json").write_text(json.dumps({"fontScale": -1}), encoding="utf-8")
    with create_app(data_dir=tmp_path, headless=True) as ctx:
        warnings = ctx.logging_service.filter(level="WARNING", name_contains="storage")
        assert any("fontScale" in w.message for w in warnings)
        assert ctx.library.font_scale() == 1.3


def test_view_changes_reach_subscribers(tmp_path):
    with create_app(data_dir=tmp_path, headless=True) as ctx:
        seen = []
        ctx.event_bus.subscribe(AppEvent.VIEW_CHANGED, lambda evt: seen.append(len(evt.payload)))
        ctx.library.add_book(Book("Dune", "Herbert, Frank"))
        assert seen and seen[-1] == 1


def test_headless_hint_uses_thread_timer(tmp_path):
    with create_app(data_dir=tmp_path, headless=True) as ctx:
        assert ctx.metadata["hint_timer"] == "thread"


def test_gui_bootstrap_uses_qt_timer_for_hint(qtbot, tmp_path):
    with create_app(data_dir=tmp_path, headless=False, install_error_hooks=False) as ctx:
        assert ctx.qt_app is not None
        assert ctx.metadata["hint_timer"] == "qt"
        assert ctx.hint.tap() is False
