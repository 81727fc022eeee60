"""
In-process result caches.

Implements ResultCache with a time-to-live and least-recently-used eviction.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

from retain.domain.constants import CACHE_MAX_ENTRIES, CACHE_TTL_SECONDS
from retain.domain.ports import ResultCache

logger = logging.getLogger(__name__)


class TTLResultCache(ResultCache):
    """
    Keeps each entry for ``ttl_seconds``, holding at most ``max_entries``.

    Expired entries are dropped lazily on lookup; the least recently used entry
    is evicted when the cache is full.
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: {key}")
                return None

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache expired: {key}")
                return None

            self._entries.move_to_end(key)
            logger.debug(f"Cache hit: {key}")
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullResultCache(ResultCache):
    """Never stores anything. Use to disable caching."""

    def get(self, key: Hashable) -> Any | None:
        return None

    def set(self, key: Hashable, value: Any) -> None:
        pass

    def clear(self) -> None:
        pass
