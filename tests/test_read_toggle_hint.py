import threading
import time

import pytest

from core.event_bus import AppEvent, EventBus
from gui.services.read_toggle_hint import ReadToggleHint, qt_timer


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.callback()


class FakeTimers:
    def __init__(self):
        self.created = []

    def __call__(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.created.append(timer)
        return timer


def test_hint_after_three_quick_taps():
    timers = FakeTimers()
    messages = []
    hint = ReadToggleHint(timer_factory=timers, on_hint=messages.append)
    assert hint.tap() is False
    assert hint.tap() is False
    assert hint.tap() is True
    assert messages == ["Checkbox marks as Read/Unread. Long press to Delete."]
    assert hint.count == 0
    assert timers.created[0].interval == 1.0
    assert timers.created[0].cancelled and timers.created[1].cancelled


def test_timer_expiry_resets_count():
    timers = FakeTimers()
    hint = ReadToggleHint(timer_factory=timers)
    hint.tap()
    hint.tap()
    timers.created[-1].fire()
    assert hint.count == 0
    assert hint.tap() is False


def test_superseded_timer_is_ignored():
    timers = FakeTimers()
    hint = ReadToggleHint(timer_factory=timers)
    hint.tap()
    hint.tap()
    timers.created[0].fire()  # stale: a newer tap restarted the timer
    assert hint.count == 2
    assert hint.tap() is True


def test_hint_published_on_bus():
    bus = EventBus()
    seen = []
    bus.subscribe(AppEvent.READ_TOGGLE_HINT, lambda evt: seen.append(evt.payload))
    hint = ReadToggleHint(event_bus=bus, threshold=2, message="hint", timer_factory=FakeTimers())
    hint.tap()
    hint.tap()
    assert seen == ["hint"]


def test_cancel_resets_and_stops_timer():
    timers = FakeTimers()
    hint = ReadToggleHint(timer_factory=timers)
    hint.tap()
    hint.cancel()
    assert hint.count == 0
    assert timers.created[0].cancelled
    timers.created[0].fire()
    assert hint.count == 0


def test_qt_timer_expires_on_the_event_loop(qtbot):
    pytest.importorskip("PyQt6")
    from PyQt6.QtCore import QCoreApplication

    expired_on = []

    class RecordingHint(ReadToggleHint):
        def _expire(self, generation):
            expired_on.append(threading.current_thread().name)
            super()._expire(generation)

    hint = RecordingHint(reset_after=0.05, timer_factory=qt_timer)
    hint.tap()
    hint.tap()
    time.sleep(0.2)
    assert hint.count == 2  # nothing expires until Qt processes events
    deadline = time.monotonic() + 5
    while hint.count and time.monotonic() < deadline:
        QCoreApplication.processEvents()
        time.sleep(0.01)
    assert hint.count == 0
    assert expired_on == [threading.main_thread().name]
