"""Workbook cache: loaded workbooks kept between tool calls.

Clients tend to issue many small calls against one file.  Keeping the parsed
workbook saves a full re-read each time.  An entry is served only while:

  - it is among the ``max_entries`` most recently used,
  - it is younger than ``ttl_seconds`` (0 disables expiry),
  - the file on disk still has the size and mtime it had when cached.

The store behaves identically with no cache at all.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable, NamedTuple

from excel_bridge.logging import get_logger

log = get_logger(__name__)

Signature = tuple[int, int]


class _Slot(NamedTuple):
    workbook: Any
    signature: Signature | None
    stored_at: float


def file_signature(path: Path) -> Signature | None:
    """``(mtime_ns, size)`` of *path*, or None when it cannot be stat'ed."""
    try:
        stat = path.stat()
    except OSError:
        return None
    return stat.st_mtime_ns, stat.st_size


class WorkbookCache:
    """Path-keyed LRU of workbooks.

    Args:
        max_entries: Workbooks kept before the least recently used is dropped.
        ttl_seconds: Age after which an entry is reloaded (0 = never).
        clock:       Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        max_entries: int = 32,
        ttl_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._slots: OrderedDict[str, _Slot] = OrderedDict()
        self._counters = {"hits": 0, "misses": 0, "evictions": 0}

    @property
    def hits(self) -> int:
        return self._counters["hits"]

    @property
    def misses(self) -> int:
        return self._counters["misses"]

    @property
    def size(self) -> int:
        return len(self._slots)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return _key(path) in self._slots

    def get(self, path: str | Path) -> Any | None:
        """Workbook cached for *path*, or None when absent or stale."""
        key = _key(path)
        slot = self._slots.get(key)
        if slot is not None:
            reason = self._stale_reason(key, slot)
            if reason is None:
                self._slots.move_to_end(key)
                self._counters["hits"] += 1
                return slot.workbook
            del self._slots[key]
            log.debug("workbook_cache_stale", path=key, reason=reason)
        self._counters["misses"] += 1
        return None

    def put(self, path: str | Path, workbook: Any) -> None:
        """Cache *workbook* against the file's current signature."""
        key = _key(path)
        self._slots.pop(key, None)
        while len(self._slots) >= self._max_entries:
            evicted, _ = self._slots.popitem(last=False)
            self._counters["evictions"] += 1
            log.debug("workbook_cache_evicted", path=evicted)
        self._slots[key] = _Slot(workbook, file_signature(Path(key)), self._clock())

    def invalidate(self, path: str | Path) -> bool:
        """Drop *path*.  Returns whether an entry existed."""
        return self._slots.pop(_key(path), None) is not None

    def clear(self) -> None:
        self._slots.clear()

    def stats(self) -> dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "enabled": True,
            "size": self.size,
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl,
            **self._counters,
            "hit_rate": self.hits / lookups if lookups else 0.0,
        }

    def _stale_reason(self, key: str, slot: _Slot) -> str | None:
        if self._ttl > 0 and self._clock() - slot.stored_at > self._ttl:
            return "expired"
        if slot.signature != file_signature(Path(key)):
            return "file_changed"
        return None


def _key(path: str | Path) -> str:
    return str(Path(path).expanduser().resolve())
