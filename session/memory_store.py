"""
In-process session store.

Sessions live in a bounded cachetools LRUCache. Expiry is tracked per
entry and checked when the entry is read, so an expired session reads
back as absent even though the cache only evicts by recency.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from cachetools import LRUCache

from errors.exceptions import StoreNotInitializedError
from session.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_STORE_SIZE = 10000


@dataclass(frozen=True)
class MemoryStoreEntry:
    """A stored payload and the unix time (seconds) it expires at."""
    expires_at: float
    data: bytes

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return self.expires_at <= now


class MemorySessionStore(SessionStore):
    """
    Memory-backed session store with LRU eviction.

    Suitable for single-process deployments, development and tests. The
    cache is shared by every request, so each access goes through a lock.

    Attributes:
        size: Maximum number of sessions kept before the least recently
            used one is evicted.
    """

    def __init__(self, size: int = DEFAULT_MEMORY_STORE_SIZE):
        if size < 1:
            raise ValueError("size must be a positive integer")
        self.size = size
        self._cache: Optional[LRUCache] = LRUCache(maxsize=size)
        self._lock = threading.Lock()

    def _require_cache(self) -> LRUCache:
        if self._cache is None:
            raise StoreNotInitializedError()
        return self._cache

    async def get(self, key: str) -> bytes:
        with self._lock:
            cache = self._require_cache()
            entry = cache.get(key)
            if entry is None:
                return b""
            if entry.is_expired():
                # Lazy expiry: drop it now that we have seen it.
                cache.pop(key, None)
                return b""
            return entry.data

    async def set(self, key: str, data: bytes, ttl: int) -> None:
        entry = MemoryStoreEntry(expires_at=time.time() + ttl, data=data)
        with self._lock:
            self._require_cache()[key] = entry

    async def destroy(self, key: str) -> None:
        with self._lock:
            self._require_cache().pop(key, None)

    async def close(self) -> None:
        """Drop every session. Later calls raise StoreNotInitializedError."""
        with self._lock:
            self._cache = None
        logger.debug("Memory session store closed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._require_cache())
