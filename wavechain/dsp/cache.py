"""Bounded FIFO cache.

Insertion-ordered store with a fixed capacity.  When a new key arrives
at capacity the oldest *inserted* entry is dropped; reading an entry or
overwriting an existing key does not move it (FIFO, not LRU).

Keys are any hashable value; the engine uses structural tuples.

BUILD ID: cache_v1.0
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Hashable, Iterator, Optional

logger = logging.getLogger(__name__)


class FIFOCache:
    """Fixed-size cache with first-in, first-out eviction.

    Parameters
    ----------
    maxsize : int
        Maximum number of entries held at any time.
    name : str
        Label used in log messages.
    """

    def __init__(self, maxsize: int, name: str = "cache") -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self.maxsize = maxsize
        self.name = name
        self._entries: Dict[Hashable, Any] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        """Return the entry for ``key`` without touching insertion order."""
        return self._entries.get(key, default)

    def put(self, key: Hashable, value: Any) -> None:
        """Insert ``value``, evicting the oldest entry if at capacity."""
        if key not in self._entries and len(self._entries) >= self.maxsize:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self.evictions += 1
            logger.debug("%s: evicted oldest entry (%d held)", self.name, len(self._entries))
        self._entries[key] = value

    def record(self, hit: bool) -> None:
        """Count a lookup outcome for ``stats()``."""
        if hit:
            self.hits += 1
        else:
            self.misses += 1

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict:
        return {
            'name': self.name,
            'size': len(self._entries),
            'maxsize': self.maxsize,
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
        }

    def keys(self) -> list:
        """Keys in insertion order (oldest first)."""
        return list(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._entries))
