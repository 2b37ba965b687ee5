"""GUI-side services: diagnostics (logging, uncaught errors) and UI helpers."""

from .error_handling_service import ErrorHandlingService  # noqa: F401
from .logging_service import LoggingService  # noqa: F401
from .read_toggle_hint import ReadToggleHint  # noqa: F401

__all__ = ["ErrorHandlingService", "LoggingService", "ReadToggleHint"]
