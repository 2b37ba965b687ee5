"""Durable key/value preference store for the book collection and UI settings.

One JSON file (``book_prefs.json``) in the data directory holds every key
listed in :mod:`storage.schema`. The store keeps a decoded in-memory snapshot
that is always readable; writes replace that snapshot atomically and queue the
file update on a single background writer thread.

Design notes:
- Reads never fail. Absent keys yield defaults; corrupt values yield defaults
  and are logged as ``CorruptStateError``. An unreadable file is renamed to
  ``<name>.corrupt.<timestamp>`` before starting from defaults.
- ``write_atomic`` serializes concurrent writers under a re-entrant lock.
  Observers are notified after the lock is released so they may write too.
  A value overwritten by a nested or concurrent write before it was
  delivered is skipped, so observers always end on the stored value.
- Only the newest committed snapshot needs to hit disk; queued stale
  snapshots are skipped by the writer.
- The store is an explicit object created at startup and closed at shutdown;
  there is no module-level instance.
"""

from __future__ import annotations

import json
import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional

from config import settings
from core.event_bus import EventBus, Subscription, preference_event
from domain.errors import CorruptStateError
from domain.models import normalize_language

from . import schema

__all__ = ["PreferenceStore", "Snapshot", "Mutator"]

_log = logging.getLogger(__name__)

Snapshot = Dict[str, Any]
Mutator = Callable[[Snapshot], Mapping[str, Any]]


class PreferenceStore:
    """Observable, atomically updated preference state backed by a JSON file.

    Usage:
        store = PreferenceStore(data_dir)
        store.observe(schema.BOOKS, lambda books: print(len(books)))
        store.write(schema.SHOW_READ, False)
        store.close()
    """

    def __init__(
        self,
        base_dir: str | Path,
        *,
        filename: str = settings.PREFS_FILENAME,
        event_bus: EventBus | None = None,
        async_writes: bool = True,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.base_dir / filename
        self.event_bus = event_bus or EventBus()
        self._lock = RLock()
        self._publish_lock = RLock()  # orders emissions across writers
        self._closed = False
        self._version = 0  # bumped on every committed write
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="prefs-writer")
            if async_writes
            else None
        )
        self._pending: Optional[Future] = None
        self._snapshot: Snapshot = schema.decode_snapshot(self._load_raw())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _load_raw(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            return data
        except (OSError, ValueError) as exc:
            err = CorruptStateError(
                f"Unreadable preference file {self.path}: {exc}", context={"path": str(self.path)}
            )
            _log.warning("%s (starting from defaults)", err)
            self._backup_corrupt()
            return {}

    def _backup_corrupt(self) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        backup = self.path.with_name(f"{self.path.name}.corrupt.{stamp}")
        try:
            os.replace(self.path, backup)
        except OSError:  # pragma: no cover - permission / race
            _log.exception("Could not back up corrupt preference file %s", self.path)

    # ------------------------------------------------------------------
    # Reading / observing
    # ------------------------------------------------------------------
    def read(self, key: str) -> Any:
        """Return the current value of ``key`` (its default when unset)."""
        if key not in schema.FIELDS:
            raise KeyError(key)
        with self._lock:
            return self._snapshot[key]

    def snapshot(self) -> Snapshot:
        with self._lock:
            return dict(self._snapshot)

    def observe(
        self, key: str, handler: Callable[[Any], None], *, emit_current: bool = True
    ) -> Subscription:
        """Call ``handler(value)`` now (optionally) and after every change of ``key``."""
        if key not in schema.FIELDS:
            raise KeyError(key)
        sub = self.event_bus.subscribe(preference_event(key), lambda evt: handler(evt.payload))
        if emit_current:
            handler(self.read(key))
        return sub

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    def write_atomic(self, mutator: Mutator) -> Snapshot:
        """Replace the whole snapshot with ``mutator(current)``.

        The mutator returns a full replacement; keys it leaves out fall back
        to their defaults. Returns the new (normalized) snapshot.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("PreferenceStore is closed")
            previous = self._snapshot
            result = mutator(dict(previous))
            if not isinstance(result, Mapping):
                raise TypeError("mutator must return a mapping")
            filled = schema.default_snapshot()
            filled.update(result)
            raw = schema.encode_snapshot(filled)
            current = schema.decode_snapshot(raw)
            changed = [k for k in schema.FIELDS if current[k] != previous[k]]
            if not changed:
                return dict(current)
            self._snapshot = current
            self._version += 1
            self._schedule_persist(self._version, raw)
        with self._publish_lock:
            for key in changed:
                with self._lock:
                    superseded = self._snapshot[key] != current[key]
                if superseded:
                    continue  # a newer write has published (or will publish) its value
                self.event_bus.publish(preference_event(key), current[key])
        return dict(current)

    def write(self, key: str, value: Any) -> Snapshot:
        return self.write_atomic(lambda snap: {**snap, key: value})

    def write_many(self, values: Mapping[str, Any]) -> Snapshot:
        """Write several keys in one transaction."""
        return self.write_atomic(lambda snap: {**snap, **values})

    def add_custom_language(self, language: str) -> Snapshot:
        language = normalize_language(language)
        if not language:
            return self.snapshot()
        return self.write_atomic(
            lambda snap: {**snap, schema.CUSTOM_LANGUAGES: snap[schema.CUSTOM_LANGUAGES] | {language}}
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _schedule_persist(self, version: int, raw: Dict[str, Any]) -> None:
        if self._executor is None:
            self._persist(version, raw)
            return
        self._pending = self._executor.submit(self._persist, version, raw)

    def _persist(self, version: int, raw: Dict[str, Any]) -> None:
        with self._lock:
            if version < self._version:
                return  # superseded by a newer commit already queued
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(raw, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError:
            _log.exception("Failed to persist preferences to %s", self.path)

    def flush(self, timeout: float | None = None) -> None:
        """Block until every committed snapshot has been written to disk."""
        with self._lock:
            pending = self._pending
        if pending is not None:
            pending.result(timeout=timeout)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        _log.debug("Preference store %s closed", self.path)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "PreferenceStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
