from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

"""In-memory load cache shared by the sheet and boundary loaders.

One LoadCache is created by the host (DataLoader creates one when none is
given) and passed to every loader call. Entries never expire; only clear()
empties the cache.

Loads may run in worker threads (see services.orchestrator), so every
operation holds ``_lock`` and ``get_or_load`` serializes loads of the same key
on a per-key lock: two threads asking for the same workbook sheet trigger a
single fetch.
"""

__all__ = [
    "CacheInfo",
    "LoadCache",
    "sheet_cache_key",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def sheet_cache_key(source: str, sheet_name: str | None = None) -> str:
    """Composite key: source path plus optional selector (sheet name)."""
    if sheet_name is None:
        return source
    return f"{source}::{sheet_name}"


@dataclass(frozen=True)
class CacheInfo:
    size: int
    keys: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "keys": list(self.keys)}


class LoadCache:
    """Keyed memoization of normalized load results."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            # per-key locks are kept; a running load still holds its key lock
            self._entries.clear()
        logger.info("cache cleared")

    def info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(size=len(self._entries), keys=list(self._entries))

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or run ``loader`` once and store it.

        Failures are not cached; the next call retries the load.
        """
        with self._lock:
            if key in self._entries:
                logger.debug(f"cache hit: {key}")
                return self._entries[key]
        with self._key_lock(key):
            # Another thread may have finished the same load while we waited.
            with self._lock:
                if key in self._entries:
                    logger.debug(f"cache hit after wait: {key}")
                    return self._entries[key]
            value = loader()
            self.set(key, value)
            return value
