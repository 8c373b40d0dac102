"""
In-process cache store.
"""

import copy
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .base import CacheStore


class InMemoryCacheStore(CacheStore):
    """
    Thread-safe dictionary cache with TTL expiry.
    
    Values are deep-copied in and out so callers never share state with
    the store.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def has(self, key: str) -> bool:
        with self._lock:
            return self._lookup(key) is not None

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._lookup(key)
        if entry is None:
            return None
        return copy.deepcopy(entry[0])

    def set(self, key: str, value: Any, ttl: int) -> bool:
        expires_at = self._clock() + ttl if ttl and ttl > 0 else None
        with self._lock:
            self._entries[key] = (copy.deepcopy(value), expires_at)
        return True

    def _lookup(self, key: str) -> Optional[Tuple[Any, Optional[float]]]:
        """Return the live entry for the key, evicting it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
