"""Capture of uncaught exceptions.

``install`` chains onto ``sys.excepthook`` and ``threading.excepthook`` (the
latter covers the preference writer thread). Each exception is logged, kept
in a bounded history, grouped with identical earlier occurrences and
published as ``AppEvent.UNCAUGHT_EXCEPTION``. Nothing global changes until
``install`` is called.
"""

from __future__ import annotations

import logging
import sys
import threading
import traceback
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from core.event_bus import AppEvent, EventBus

__all__ = ["DedupEntry", "ErrorHandlingService", "ErrorRecord"]

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorRecord:
    exc_type: type
    exc_value: BaseException
    traceback_str: str
    timestamp: float
    iso_time: str
    thread_name: str

    @property
    def dedup_key(self) -> str:
        return f"{self.exc_type.__name__}|{hash(self.traceback_str)}"

    def summary(self, max_len: int = 120) -> str:
        msg = f"{self.exc_type.__name__}: {self.exc_value}"
        return msg if len(msg) <= max_len else msg[: max_len - 3] + "..."


@dataclass
class DedupEntry:
    """Occurrences of one exception type with an identical traceback."""

    key: str
    first: ErrorRecord
    count: int = 1
    last_timestamp: float = 0.0


class ErrorHandlingService:
    def __init__(
        self,
        *,
        capacity: int = 20,
        logger: logging.Logger | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._errors: Deque[ErrorRecord] = deque(maxlen=max(1, capacity))
        self._groups: Dict[str, DedupEntry] = {}  # insertion order = first seen
        self._logger = logger or _log
        self._event_bus = event_bus
        self._prev_sys_hook: Optional[Callable[..., Any]] = None
        self._prev_thread_hook: Optional[Callable[..., Any]] = None

    @property
    def installed(self) -> bool:
        return self._prev_sys_hook is not None

    def install(self) -> None:
        if self.installed:
            return
        self._prev_sys_hook = sys.excepthook
        self._prev_thread_hook = threading.excepthook
        sys.excepthook = self._sys_hook
        threading.excepthook = self._thread_hook

    def uninstall(self) -> None:
        if not self.installed:
            return
        sys.excepthook = self._prev_sys_hook
        threading.excepthook = self._prev_thread_hook
        self._prev_sys_hook = None
        self._prev_thread_hook = None

    def _sys_hook(self, exc_type, exc_value, tb):  # pragma: no cover - delegate
        self.handle_exception(exc_type, exc_value, tb)
        if self._prev_sys_hook is not None:
            self._prev_sys_hook(exc_type, exc_value, tb)

    def _thread_hook(self, args):  # pragma: no cover - delegate
        self.handle_exception(args.exc_type, args.exc_value, args.exc_traceback, thread=args.thread)
        if self._prev_thread_hook is not None:
            self._prev_thread_hook(args)

    def handle_exception(
        self, exc_type, exc_value, tb, *, thread: Optional[threading.Thread] = None
    ) -> ErrorRecord:
        now = datetime.now(timezone.utc)
        record = ErrorRecord(
            exc_type=exc_type,
            exc_value=exc_value,
            traceback_str="".join(traceback.format_exception(exc_type, exc_value, tb)),
            timestamp=now.timestamp(),
            iso_time=now.isoformat(),
            thread_name=(thread or threading.current_thread()).name,
        )
        self._errors.append(record)
        group = self._groups.get(record.dedup_key)
        if group is None:
            self._groups[record.dedup_key] = DedupEntry(
                key=record.dedup_key, first=record, last_timestamp=record.timestamp
            )
        else:
            group.count += 1
            group.last_timestamp = record.timestamp
        self._logger.error("Uncaught exception in %s: %s", record.thread_name, record.summary())
        if self._event_bus is not None:
            self._event_bus.publish(
                AppEvent.UNCAUGHT_EXCEPTION,
                {
                    "type": exc_type.__name__,
                    "message": str(exc_value),
                    "thread": record.thread_name,
                    "iso_time": record.iso_time,
                },
            )
        return record

    def recent_errors(self) -> List[ErrorRecord]:
        return list(self._errors)

    def dedup_entries(self) -> List[DedupEntry]:
        return list(self._groups.values())

    def clear(self) -> None:
        self._errors.clear()
        self._groups.clear()
