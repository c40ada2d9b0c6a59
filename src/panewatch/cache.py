"""Bounded TTL caches keyed by normalized paths.

PUBLIC API:
  - normalize_path_key: Strip trailing separators, None if nothing is left
  - CacheEntry: Cached value with its write time
  - TTLCache: Fixed-capacity insertion-ordered cache with expiry
"""

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass


def normalize_path_key(value: str | None) -> str | None:
    """Normalize a path for cache keys and comparisons.

    Only trailing "/" and "\\" are stripped; case and drive letters are kept.

    Returns:
        The stripped path, or None for None/empty/separator-only input
    """
    if not value:
        return None
    normalized = value.rstrip("/\\")
    return normalized or None


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass(frozen=True)
class CacheEntry[V]:
    value: V
    at: float  # milliseconds on the cache clock


class TTLCache[V]:
    """Insertion-ordered cache with a TTL and a hard size bound.

    Entries at or past ttl_ms are never served. When full, the oldest
    inserted entry is evicted before a new key goes in; rewriting a key moves
    it to the newest position.

    Args:
        ttl_ms: Entry lifetime in milliseconds
        max_entries: Maximum number of entries held
        clock: Millisecond clock, monotonic by default
    """

    def __init__(self, ttl_ms: float, max_entries: int, clock: Callable[[], float] = _monotonic_ms):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_ms = ttl_ms
        self.max_entries = max_entries
        self.clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get_entry(self, key: str) -> CacheEntry[V] | None:
        """Get a fresh entry, None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.at >= self.ttl_ms:
            return None
        return entry

    def set(self, key: str, value: V) -> None:
        """Write value under key, evicting the oldest entry if full."""
        if key in self._entries:
            del self._entries[key]
        while len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = CacheEntry(value=value, at=self.clock())

    def clear(self) -> None:
        self._entries.clear()
