"""
Process-local TTL cache shared by research collaborators
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple


@dataclass(frozen=True)
class CacheEntry:
    """Cached value with an absolute expiry instant"""
    value: Any
    expires_at: float


class TTLCache:
    """
    Time-bounded key -> value store.

    Entries expire lazily: a read at or after the expiry instant deletes the
    entry and reports a miss. There is no size bound and no background sweep.
    Reads never refresh expiry. Concurrent writers to the same key simply
    overwrite each other.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None, prefix: str = ""):
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self.prefix = prefix

    def _key(self, key: str) -> str:
        """Generate full cache key with prefix"""
        return f"{self.prefix}:{key}" if self.prefix else key

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        """Return (value, found); evicts the entry if it has expired"""
        full_key = self._key(key)
        entry = self._entries.get(full_key)
        if entry is None:
            return None, False
        if self._clock() >= entry.expires_at:
            self._entries.pop(full_key, None)
            return None, False
        return entry.value, True

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value for ttl seconds"""
        if ttl <= 0:
            return
        self._entries[self._key(key)] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(self._key(key), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        _, found = self.get(key)
        return found


# Shared cache for research collaborators in this process
research_cache = TTLCache(prefix="research")
