from __future__ import annotations

import time
from collections import OrderedDict
from threading import Lock
from typing import Callable, Optional

from redis_memoize.domain.validation import validate_key

DEFAULT_MAX_ITEMS = 1000


class CacheEntry:
    def __init__(self, value: str, ttl: Optional[int] = None, created_at: Optional[float] = None):
        self.value = value
        self.ttl = None if ttl is not None and ttl <= 0 else ttl
        self.created_at = created_at if created_at is not None else time.monotonic()


class MemoryStore:
    """In-process store with per-entry TTL and LRU eviction.

    Expired entries are dropped when they are read or when room is needed
    for a new key.
    """

    def __init__(
        self,
        max_items: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        resolved_max_items = DEFAULT_MAX_ITEMS if max_items is None else max_items
        if resolved_max_items < 1:
            raise ValueError(f"max_items must be >= 1, got {resolved_max_items}")

        self.max_items = resolved_max_items
        self.store: OrderedDict[str, CacheEntry] = OrderedDict()
        self.evictions = 0
        self.lock = Lock()
        self.closed = False
        self._clock = clock or time.monotonic

    def _is_expired(self, entry: CacheEntry) -> bool:
        if entry.ttl is None:
            return False
        return (self._clock() - entry.created_at) >= entry.ttl

    def _check_open(self) -> None:
        if self.closed:
            raise RuntimeError("MemoryStore is closed")

    async def get(self, key: str) -> Optional[str]:
        validate_key(key)
        with self.lock:
            self._check_open()
            entry = self.store.get(key)
            if entry is None:
                return None

            if self._is_expired(entry):
                del self.store[key]
                return None

            self.store.move_to_end(key)
            return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        validate_key(key)
        if not isinstance(value, str):
            raise TypeError("value must be a string")

        with self.lock:
            self._check_open()
            is_new_key = self.store.pop(key, None) is None
            if is_new_key and len(self.store) >= self.max_items:
                self._purge_expired()
                while len(self.store) >= self.max_items:
                    self._evict_lru()

            self.store[key] = CacheEntry(value, ttl_seconds, created_at=self._clock())
            return True

    def _purge_expired(self) -> None:
        expired_keys = [k for k, v in self.store.items() if self._is_expired(v)]
        for k in expired_keys:
            del self.store[k]

    def _evict_lru(self) -> None:
        lru_key = next(iter(self.store))
        del self.store[lru_key]
        self.evictions += 1

    async def close(self) -> None:
        with self.lock:
            self._check_open()
            self.closed = True
            self.store.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self.store)
