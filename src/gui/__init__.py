"""BookTracker GUI public API.

Curated, intentionally small surface for external callers (launcher, tests)
to interact with the GUI layer without depending on deep internal module
paths. Importing this package never creates a QApplication.
"""

from __future__ import annotations

from core.event_bus import AppEvent, Event, EventBus  # noqa: F401
from .app.bootstrap import AppContext, create_app  # noqa: F401
