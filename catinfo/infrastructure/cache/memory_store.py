"""Memory tier of the image cache.

A bounded LRU map of decoded images. Two limits are enforced together: the
number of entries and the sum of the entries' cost in bytes. Every public
method takes an internal lock, so the store can be shared between the event
loop and worker threads without external locking. No method performs I/O.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Optional

from catinfo.domain.models.cache import MemoryEntry
from catinfo.domain.models.common import CacheKey, CostBytes

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100
DEFAULT_MAX_COST_BYTES = 50 * 1024 * 1024 # 50 MiB

class MemoryStore:
    """LRU memory cache bounded by entry count and cumulative cost."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_cost_bytes: int = DEFAULT_MAX_COST_BYTES,
    ):
        """Initializes an empty store.

        Args:
            max_entries: Maximum number of entries kept at once.
            max_cost_bytes: Maximum sum of entry costs kept at once.
        """
        if max_entries <= 0 or max_cost_bytes <= 0:
            raise ValueError("MemoryStore limits must be positive")
        self.max_entries = max_entries
        self.max_cost_bytes = max_cost_bytes
        # Ordered from least to most recently used
        self._entries: "OrderedDict[CacheKey, MemoryEntry]" = OrderedDict()
        self._total_cost = 0
        self._lock = threading.Lock()
        logger.info(f"MemoryStore initialized: max_entries={max_entries}, max_cost={max_cost_bytes} bytes")

    def get(self, key: CacheKey) -> Optional[Any]:
        """Returns the cached value and marks it most recently used."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            self._entries.move_to_end(key)
            return entry.value

    def put(self, key: CacheKey, value: Any, cost_bytes: int) -> None:
        """Inserts or replaces an entry, then evicts LRU entries until both limits hold.

        A value whose own cost exceeds the cost limit is not stored; any older
        value under the same key is dropped so the store never serves it.
        """
        cost = CostBytes(max(0, int(cost_bytes)))
        with self._lock:
            previous = self._entries.pop(key, None)
            if previous is not None:
                self._total_cost -= previous.cost_bytes

            if cost > self.max_cost_bytes:
                logger.debug(f"Not caching {key} in memory: cost {cost} exceeds limit {self.max_cost_bytes}")
                return

            self._entries[key] = MemoryEntry(key=key, value=value, cost_bytes=cost)
            self._total_cost += cost
            self._evict_locked()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total_cost = 0

    def _evict_locked(self) -> None:
        """Drops least recently used entries. Caller must hold the lock."""
        while self._entries and (
            len(self._entries) > self.max_entries or self._total_cost > self.max_cost_bytes
        ):
            evicted_key, evicted = self._entries.popitem(last=False)
            self._total_cost -= evicted.cost_bytes
            logger.debug(f"Evicted {evicted_key} from memory cache ({evicted.cost_bytes} bytes)")

    def __contains__(self, key: object) -> bool:
        # Membership test does not refresh recency
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def total_cost(self) -> int:
        with self._lock:
            return self._total_cost
