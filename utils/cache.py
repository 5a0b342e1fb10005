"""Snapshot-scoped memoization for derived dashboard data.

Aggregates only change when a new snapshot replaces the record list, so
entries are keyed on the snapshot version instead of a wall-clock TTL.
"""

import threading
from typing import Any, Callable, Hashable


class SnapshotMemo:
    """Thread-safe memo whose entries are valid for one snapshot version.

    Storing a value for a newer version drops every entry computed for
    older versions. A maximum of ``maxsize`` entries per version is
    retained; when full, the oldest inserted entry is evicted.

    Usage::

        memo = SnapshotMemo(maxsize=16)
        summary = memo.get_or_compute(version, ("summary", 7),
                                      lambda: summarize(records, 7))
    """

    def __init__(self, maxsize: int = 16) -> None:
        self._maxsize = maxsize
        self._version: Any = None
        self._store: dict[Hashable, Any] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, version: Any, key: Hashable) -> Any | None:
        """Return the value cached for *key* at *version*, or ``None``."""
        with self._lock:
            if version != self._version or key not in self._store:
                self._misses += 1
                return None
            self._hits += 1
            return self._store[key]

    def set(self, version: Any, key: Hashable, value: Any) -> None:
        """Store *value* for *key* at *version*.

        Writes for a version older than the current one are ignored, so a
        slow computation cannot overwrite results from a newer snapshot.
        """
        with self._lock:
            if version != self._version:
                if self._version is not None and _older(version, self._version):
                    return
                self._version = version
                self._store.clear()
            if key not in self._store and len(self._store) >= self._maxsize:
                oldest_key = next(iter(self._store))
                del self._store[oldest_key]
            self._store[key] = value

    def get_or_compute(self, version: Any, key: Hashable,
                       compute: Callable[[], Any]) -> Any:
        """Return the cached value or compute, store and return it."""
        value = self.get(version, key)
        if value is None:
            value = compute()
            self.set(version, key, value)
        return value

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._store.clear()
            self._version = None
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, Any]:
        """Return ``hits``, ``misses``, ``size`` and the current ``version``."""
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._store),
                "version": self._version,
            }


def _older(candidate: Any, current: Any) -> bool:
    try:
        return candidate < current
    except TypeError:
        return False
