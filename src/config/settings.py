"""Global configuration and constants for the book tracker."""

from __future__ import annotations

import os
from typing import Final

DATA_DIR: Final = os.environ.get("BOOKTRACKER_DATA_DIR", "data")
PREFS_FILENAME: Final = "book_prefs.json"

DEFAULT_LANGUAGE: Final = "English"
# Languages always offered in the creation form; everything else is "custom"
STANDARD_LANGUAGES: Final = frozenset({"English", "Afrikaans"})

DEFAULT_FONT_SCALE: Final = 1.3
FONT_SCALE_OPTIONS: Final = (("Small", 1.0), ("Medium", 1.3), ("Large", 1.6))

READ_TOGGLE_HINT_TAPS: Final = 3
READ_TOGGLE_RESET_S: Final = 1.0  # seconds
READ_TOGGLE_HINT_MESSAGE: Final = "Checkbox marks as Read/Unread. Long press to Delete."
