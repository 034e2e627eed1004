"""In-memory TTL cache shielding TheSportsDB from redundant calls."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Key/TTL store with lazy eviction on read.

    Adapters run in worker threads, so every access goes through one lock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._storage: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._storage.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._storage[key]
                logger.debug("Cache expired key=%s", key)
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._storage[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def clear(self) -> None:
        with self._lock:
            count = len(self._storage)
            self._storage.clear()
        logger.info("Cache cleared (%d entries)", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)
