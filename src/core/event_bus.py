"""Synchronous publish/subscribe bus.

The preference store announces every changed key on it (``preference:<key>``)
and the library service republishes the derived book list as
``AppEvent.VIEW_CHANGED``. No Qt dependency, so the core stays testable
headless.

Handlers run on the publishing thread, outside the bus lock: a handler may
subscribe, unsubscribe or publish again. A handler that raises is logged and
recorded in ``errors`` (the most recent ``DEFAULT_ERROR_CAPACITY`` failures);
the remaining handlers still run.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Deque, Dict, List, Protocol, Tuple

__all__ = [
    "AppEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
    "TraceEntry",
    "preference_event",
]

_log = logging.getLogger(__name__)

_SUMMARY_LEN = 40


class AppEvent(str, Enum):
    STARTUP_COMPLETE = "startup_complete"
    VIEW_CHANGED = "view_changed"  # payload: ordered list of visible books
    READ_TOGGLE_HINT = "read_toggle_hint"  # payload: hint message
    LOG_RECORD_ADDED = "log_record_added"
    UNCAUGHT_EXCEPTION = "uncaught_exception"


def preference_event(key: str) -> str:
    """Event name published by the preference store when ``key`` changes."""
    return f"preference:{key}"


def _event_name(name: str | AppEvent) -> str:
    return name.value if isinstance(name, AppEvent) else name


@dataclass
class Event:
    name: str
    payload: Any
    timestamp: float


class EventHandler(Protocol):
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool = False
    active: bool = True

    def cancel(self) -> None:
        """Stop delivery without touching the bus (lazy removal)."""
        self.active = False


@dataclass(frozen=True)
class TraceEntry:
    name: str
    timestamp: float
    summary: str

    @classmethod
    def of(cls, event: Event) -> "TraceEntry":
        if event.payload is None:
            summary = "-"
        else:
            text = str(event.payload)
            if len(text) > _SUMMARY_LEN:
                text = text[: _SUMMARY_LEN - 3] + "..."
            summary = text
        return cls(event.name, event.timestamp, summary)


class EventBus:
    """Dispatches named events to subscribed handlers.

    Tracing is off by default; when enabled the bus keeps the last
    ``capacity`` published events as :class:`TraceEntry` items.
    """

    DEFAULT_TRACE_CAPACITY = 50
    DEFAULT_ERROR_CAPACITY = 100

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: Deque[Tuple[Event, BaseException]] = deque(
            maxlen=self.DEFAULT_ERROR_CAPACITY
        )
        self._tracing = False
        self._traces: Deque[TraceEntry] = deque(maxlen=self.DEFAULT_TRACE_CAPACITY)

    # Subscriptions ----------------------------------------------------
    def subscribe(
        self, name: str | AppEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        sub = Subscription(event=_event_name(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        sub.cancel()
        self._discard([sub], sub.event)

    def _discard(self, subs: List[Subscription], name: str) -> None:
        with self._lock:
            remaining = [s for s in self._subs.get(name, ()) if all(s is not d for d in subs)]
            if remaining:
                self._subs[name] = remaining
            else:
                self._subs.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()
            self._errors.clear()

    def subscriber_count(self, name: str | AppEvent) -> int:
        with self._lock:
            return len(self._subs.get(_event_name(name), ()))

    # Publishing -------------------------------------------------------
    def publish(self, name: str | AppEvent, payload: Any = None) -> Event:
        evt = Event(name=_event_name(name), payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(evt.name, ()))
            if self._tracing:
                self._traces.append(TraceEntry.of(evt))
        finished_once: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate handler failures
                _log.exception("Handler for %r failed", evt.name)
                with self._lock:
                    self._errors.append((evt, exc))
                continue
            if sub.once:
                sub.cancel()
                finished_once.append(sub)
        if finished_once:
            self._discard(finished_once, evt.name)
        return evt

    @property
    def errors(self) -> List[Tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)

    # Tracing ----------------------------------------------------------
    def enable_tracing(self, enabled: bool = True, *, capacity: int | None = None) -> None:
        with self._lock:
            self._tracing = enabled
            if capacity is not None and capacity != self._traces.maxlen:
                self._traces = deque(self._traces, maxlen=capacity)

    @property
    def tracing_enabled(self) -> bool:
        return self._tracing

    def recent_traces(self) -> List[TraceEntry]:
        with self._lock:
            return list(self._traces)

    def clear_traces(self) -> None:
        with self._lock:
            self._traces.clear()
