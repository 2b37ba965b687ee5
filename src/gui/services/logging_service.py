"""In-process log capture for the diagnostics view.

A handler on the root logger keeps the most recent records (store
``CorruptStateError`` warnings, library info messages, uncaught errors) in a
bounded buffer and announces each one as ``AppEvent.LOG_RECORD_ADDED``.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from threading import RLock
from typing import Deque, List, Optional

from core.event_bus import AppEvent, EventBus

__all__ = ["LogEntry", "LoggingService"]

# Records from the bus itself are kept but not republished on it
_BUS_LOGGER = "core.event_bus"


@dataclass(frozen=True)
class LogEntry:
    level: str
    name: str
    message: str
    created: float
    pathname: str
    lineno: int

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "LogEntry":
        return cls(
            level=record.levelname,
            name=record.name,
            message=record.getMessage(),
            created=record.created,
            pathname=record.pathname,
            lineno=record.lineno,
        )


class _BufferHandler(logging.Handler):
    def __init__(self, owner: "LoggingService", level: int) -> None:
        super().__init__(level)
        self._owner = owner

    def emit(self, record: logging.LogRecord) -> None:
        self._owner._append(LogEntry.from_record(record))


class LoggingService:
    def __init__(
        self, capacity: int = 500, *, event_bus: EventBus | None = None, level: int = logging.INFO
    ) -> None:
        self._lock = RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._handler = _BufferHandler(self, level)
        self._event_bus = event_bus
        self._attached = False

    def attach_root(self) -> None:
        if self._attached:
            return
        root = logging.getLogger()
        root.addHandler(self._handler)
        if root.level == logging.NOTSET or root.level > self._handler.level:
            root.setLevel(self._handler.level)
        self._attached = True

    def detach_root(self) -> None:
        if self._attached:
            logging.getLogger().removeHandler(self._handler)
            self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def _append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
        if self._event_bus is None or entry.name == _BUS_LOGGER:
            return
        self._event_bus.publish(
            AppEvent.LOG_RECORD_ADDED,
            {
                "level": entry.level,
                "name": entry.name,
                "message": entry.message[:120],
                "created": entry.created,
            },
        )

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            entries = list(self._entries)
        return entries if limit is None else entries[-limit:]

    def filter(self, *, level: str | None = None, name_contains: str | None = None) -> List[LogEntry]:
        return [
            e
            for e in self.recent()
            if (not level or e.level == level) and (not name_contains or name_contains in e.name)
        ]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def export_jsonl(
        self,
        path: str | Path,
        *,
        level: str | None = None,
        name_contains: str | None = None,
        append: bool = False,
    ) -> int:
        """Write the matching entries as JSON Lines; returns the line count."""
        entries = self.filter(level=level, name_contains=name_contains)
        with open(path, "a" if append else "w", encoding="utf-8") as fh:
            for entry in entries:
                fh.write(json.dumps(asdict(entry), sort_keys=True) + "\n")
        return len(entries)
