"""Read-toggle hint: a tap counter with an expiring reset timer.

Rapidly toggling a book's read checkbox usually means the user is looking for
the delete gesture. After ``threshold`` taps with less than ``reset_after``
seconds between them a hint message is emitted and the counter starts over.

Each tap supersedes the pending reset timer; a timer that fires after being
superseded is ignored (generation check), so only the newest timer can reset
the counter. The timer factory is injectable. With a QApplication the
bootstrap passes :func:`qt_timer`, so expiry runs on the Qt event loop.
Without one a daemon ``threading.Timer`` is used.
"""

from __future__ import annotations

import threading
from threading import RLock
from typing import Any, Callable, Optional, Protocol

from config import settings
from core.event_bus import AppEvent, EventBus

__all__ = ["ReadToggleHint", "TimerLike", "qt_timer"]


class TimerLike(Protocol):
    def start(self) -> None: ...  # pragma: no cover - structural

    def cancel(self) -> None: ...  # pragma: no cover - structural


def _thread_timer(interval: float, callback: Callable[[], None]) -> TimerLike:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


class _QtResetTimer:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        from PyQt6.QtCore import QTimer  # Qt import deferred until a timer is needed

        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._timer.setInterval(int(interval * 1000))
        self._timer.timeout.connect(callback)  # type: ignore

    def start(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()


def qt_timer(interval: float, callback: Callable[[], None]) -> TimerLike:
    """Single-shot ``QTimer``; create and tap on the GUI thread."""
    return _QtResetTimer(interval, callback)


class ReadToggleHint:
    def __init__(
        self,
        *,
        event_bus: EventBus | None = None,
        threshold: int = settings.READ_TOGGLE_HINT_TAPS,
        reset_after: float = settings.READ_TOGGLE_RESET_S,
        message: str = settings.READ_TOGGLE_HINT_MESSAGE,
        timer_factory: Callable[[float, Callable[[], None]], TimerLike] = _thread_timer,
        on_hint: Callable[[str], Any] | None = None,
    ) -> None:
        self._bus = event_bus
        self._threshold = max(1, threshold)
        self._reset_after = reset_after
        self._message = message
        self._timer_factory = timer_factory
        self._on_hint = on_hint
        self._lock = RLock()
        self._count = 0
        self._generation = 0
        self._timer: Optional[TimerLike] = None

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def tap(self) -> bool:
        """Register one read toggle. Returns True when the hint was emitted."""
        with self._lock:
            self._count += 1
            if self._timer is not None:
                self._timer.cancel()
            fire = self._count >= self._threshold
            if fire:
                self._count = 0
            self._generation += 1
            generation = self._generation
            self._timer = self._timer_factory(self._reset_after, lambda: self._expire(generation))
            self._timer.start()
        if fire:
            self._emit()
        return fire

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return  # superseded by a newer tap
            self._count = 0
            self._timer = None

    def _emit(self) -> None:
        if self._on_hint is not None:
            self._on_hint(self._message)
        if self._bus is not None:
            self._bus.publish(AppEvent.READ_TOGGLE_HINT, self._message)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            self._count = 0
