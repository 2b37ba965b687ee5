"""Application bootstrap utilities for the BookTracker GUI.

Responsibilities:
 - Optional headless bootstrap (for tests / environments without a display)
 - Creating the preference store for the data directory
 - Wiring the event bus, library service, logging and error services
 - Returning one context object that owns those instances until shutdown

The bootstrap avoids importing PyQt6 at module import time so tests and the
command line can build a context without a GUI. Nothing here is a
process-wide singleton: every ``create_app`` call returns fresh instances.
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from config import settings
from core.event_bus import AppEvent, EventBus
from gui.services.error_handling_service import ErrorHandlingService
from gui.services.logging_service import LoggingService
from gui.services.read_toggle_hint import ReadToggleHint, qt_timer
from library.book_service import BookLibraryService
from storage.preference_store import PreferenceStore

try:  # Lazy / optional Qt import
    from PyQt6.QtWidgets import QApplication  # type: ignore

    _QT_AVAILABLE = True
except ImportError:  # pragma: no cover - depends on environment
    QApplication = None  # type: ignore
    _QT_AVAILABLE = False

_log = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Container with references created during bootstrap.

    Attributes
    ----------
    qt_app: The underlying QApplication instance (None if headless)
    headless: Whether headless bootstrap was used
    data_dir: Directory holding the preference file
    event_bus: Bus shared by the store, library service and diagnostics
    store: Preference store (collection + settings)
    library: Book library service used by every presentation surface
    logging_service: Ring-buffer log capture attached to the root logger
    error_service: Uncaught exception capture (hooks installed if requested)
    hint: Read-toggle hint counter
    duration_s: Total elapsed seconds for bootstrap
    """

    qt_app: Optional[Any]
    headless: bool
    data_dir: Path
    event_bus: EventBus
    store: PreferenceStore
    library: BookLibraryService
    logging_service: LoggingService
    error_service: ErrorHandlingService
    hint: ReadToggleHint
    duration_s: float
    metadata: dict[str, Any] = field(default_factory=dict)
    _shut_down: bool = False

    def shutdown(self) -> None:
        """Tear down in reverse creation order; safe to call twice."""
        if self._shut_down:
            return
        self._shut_down = True
        self.hint.cancel()
        self.library.close()
        self.store.close()
        self.error_service.uninstall()
        self.logging_service.detach_root()
        _log.debug("Application context for %s shut down", self.data_dir)

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


def create_app(
    *,
    data_dir: str | Path | None = None,
    headless: bool | None = None,
    install_error_hooks: bool | None = None,
    async_writes: bool = True,
) -> AppContext:
    """Create and initialize the application context.

    Parameters
    ----------
    data_dir: Directory for ``book_prefs.json`` (defaults to ``settings.DATA_DIR``).
    headless: Force headless (no QApplication). If None, inferred by Qt availability.
    install_error_hooks: Install global exception hooks; defaults to ``not headless``.
    async_writes: Persist on the background writer thread (False writes inline).
    """
    started = time.perf_counter()
    if headless is None:
        headless = not _QT_AVAILABLE
    if install_error_hooks is None:
        install_error_hooks = not headless

    qt_app = None
    if not headless and _QT_AVAILABLE:
        qt_app = QApplication.instance() or QApplication(sys.argv[:1])

    bus = EventBus()
    logging_service = LoggingService(event_bus=bus)
    logging_service.attach_root()
    error_service = ErrorHandlingService(event_bus=bus)
    if install_error_hooks:
        error_service.install()

    base = Path(data_dir) if data_dir is not None else Path(settings.DATA_DIR)
    store = PreferenceStore(base, event_bus=bus, async_writes=async_writes)
    library = BookLibraryService(store, event_bus=bus)
    if qt_app is not None:
        hint = ReadToggleHint(event_bus=bus, timer_factory=qt_timer)
    else:
        hint = ReadToggleHint(event_bus=bus)

    duration = time.perf_counter() - started
    ctx = AppContext(
        qt_app=qt_app,
        headless=headless,
        data_dir=base,
        event_bus=bus,
        store=store,
        library=library,
        logging_service=logging_service,
        error_service=error_service,
        hint=hint,
        duration_s=duration,
        metadata={
            "qt_available": _QT_AVAILABLE,
            "prefs_path": str(store.path),
            "hint_timer": "qt" if qt_app is not None else "thread",
        },
    )
    _log.info("Book tracker started with %d book(s) from %s", len(library.books()), store.path)
    bus.publish(AppEvent.STARTUP_COMPLETE, {"duration_s": duration})
    return ctx
