"""Key-value store backing every Day and Task record."""

from __future__ import annotations

import contextlib
import copy
import logging
import threading
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from pile.errors import ParseError, ValidationError
from pile.fileio import read_json, write_json_atomic
from pile.keys import DateKey, validate_date_key
from pile.models import Day

logger = logging.getLogger(__name__)


class Store:
    """
    Flat key -> JSON value map persisted as one JSON object.

    - get() never raises on a missing key, it returns None
    - set()/update()/reset() return after the atomic file write is durable
    - a value of None removes the key
    - path=None keeps everything in memory (one isolated store per instance)

    Thread-safety:
    - one writer at a time, enforced by a per-store lock
    - transaction() holds the lock until its single flush
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._data: dict[str, Any] = {}
        self._staged: dict[str, Any] | None = None
        self.reload()
        logger.info("Store ready path=%s keys=%d", self._path or ":memory:", len(self._data))

    @property
    def path(self) -> Path | None:
        return self._path

    def reload(self) -> None:
        """Re-read the backing file. No-op for in-memory stores."""
        if self._path is None:
            return
        with self._lock:
            self._data = read_json(self._path)

    # ---- low-level helpers ----

    def _commit(self, changes: Mapping[str, Any]) -> None:
        new = dict(self._data)
        for key, value in changes.items():
            if value is None:
                new.pop(key, None)
            else:
                new[key] = copy.deepcopy(value)
        if self._path is not None:
            write_json_atomic(self._path, new)
        self._data = new
        logger.debug("Store commit keys=%s", list(changes))

    # ---- public API ----

    def get(self, key: str) -> Any | None:
        """Return a copy of the value under *key*, or None if unset."""
        with self._lock:
            if self._staged is not None and key in self._staged:
                return copy.deepcopy(self._staged[key])
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        """Persist *value* under *key*, replacing any prior value."""
        self.update({key: value})

    def update(self, changes: Mapping[str, Any]) -> None:
        """Persist several keys in one atomic write."""
        if not changes:
            return
        with self._lock:
            if self._staged is not None:
                self._staged.update(changes)
                return
            self._commit(changes)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[Store]:
        """Stage writes and flush them once on a clean exit.

        On an exception nothing is written. Nested blocks join the
        outermost transaction.
        """
        with self._lock:
            if self._staged is not None:
                yield self
                return
            self._staged = {}
            try:
                yield self
            except BaseException:
                self._staged = None
                raise
            staged, self._staged = self._staged, None
            if staged:
                self._commit(staged)

    def keys(self) -> list[str]:
        """All set keys, in the store's native (insertion) order."""
        with self._lock:
            out = list(self._data)
            if self._staged:
                for key, value in self._staged.items():
                    if value is None:
                        if key in out:
                            out.remove(key)
                    elif key not in self._data:
                        out.append(key)
            return out

    def reset(self) -> None:
        """Remove every entry. Irreversible."""
        with self._lock:
            keys = self.keys()
            self.update({key: None for key in keys})
        logger.info("Store reset removed=%d", len(keys))

    # ---- days ----

    def get_or_create_day(self, key: str) -> Day | None:
        """Return the Day under *key*, creating an empty one for a valid, absent date key.

        An invalid key yields None and nothing is written.
        """
        if not validate_date_key(key):
            logger.debug("get_or_create_day: rejected key %r", key)
            return None
        with self._lock:
            existing = Day.parse(self.get(key))
            if existing is not None:
                return existing
            day = Day(DateKey(key))
            self.set(key, day.to_dict())
        logger.info("Created day %s", key)
        return day

    def get_dates(self) -> list[Day]:
        """Every stored Day, in native key order. Unparsable entries are dropped."""
        days = []
        for key in self.keys():
            if not validate_date_key(key):
                continue
            try:
                day = Day.parse(self.get(key))
            except (ParseError, ValidationError):
                logger.warning("Skipping unparsable day %s", key)
                continue
            if day is not None:
                days.append(day)
        return days
