# Shared fixtures for the book tracker tests.
# Provides a fallback 'qtbot' fixture if pytest-qt is not installed; if it is,
# its fixture wins. Qt always runs on the offscreen platform.

import sys
import os
import contextlib
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from library.book_service import BookLibraryService  # noqa: E402
from storage.preference_store import PreferenceStore  # noqa: E402

try:  # If pytest-qt present, do nothing (its fixture will be used)
    import pytestqt  # type: ignore  # noqa: F401
except ImportError:  # pragma: no cover
    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError:  # pragma: no cover
        QApplication = None  # type: ignore

    @pytest.fixture
    def qtbot():  # type: ignore
        if QApplication is None:
            pytest.skip("PyQt6 not available")
        app = QApplication.instance() or QApplication(sys.argv[:1])  # type: ignore  # noqa: F841
        widgets = []

        class Bot:
            def addWidget(self, w):  # mimic pytest-qt API subset
                widgets.append(w)

            @contextlib.contextmanager
            def waitSignal(self, *args, **kwargs):  # no-op stub
                yield

        yield Bot()
        for w in widgets:
            w.close()


@pytest.fixture
def store(tmp_path: Path):
    s = PreferenceStore(tmp_path, async_writes=False)
    yield s
    s.close()


@pytest.fixture
def library(store: PreferenceStore):
    svc = BookLibraryService(store)
    yield svc
    svc.close()
