"""Dedicated launcher module for `python -m gui` or external callers.

Builds the application context through the bootstrap so the preference
store, logging and error hooks are set up the same way for every launch.
"""

from __future__ import annotations

import argparse
import logging
import sys

from config import settings
from gui.app.bootstrap import create_app


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - runtime
    parser = argparse.ArgumentParser(prog="booktracker-gui", description="Personal book tracker")
    parser.add_argument("--data-dir", default=settings.DATA_DIR, help="Preference directory")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    from gui.main_window import MainWindow  # Qt import deferred until a display is needed

    ctx = create_app(data_dir=args.data_dir, headless=False)
    with ctx:
        app = ctx.qt_app
        win = MainWindow(ctx.library, hint=ctx.hint)
        win.show()
        return app.exec()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
