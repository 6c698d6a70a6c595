"""Concrete implementation of the two-tier ImageCache.

Combines the memory tier (MemoryStore) with the disk tier (PersistentStore)
behind a single API. Lookups go memory first, then disk, promoting disk hits
into memory. Writes land in memory immediately and reach disk through the
store's worker thread. Nothing in here talks to the network.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from PIL import Image

# Domain Layer Imports
from catinfo.domain.interfaces.cache import ImageCache
from catinfo.domain.models.common import CacheKey, CacheStats
from catinfo.domain.models.errors import DecodingError

# Infrastructure Layer Imports
from catinfo.infrastructure.cache.eviction_scheduler import EvictionScheduler
from catinfo.infrastructure.cache.image_codec import decode_image, image_cost
from catinfo.infrastructure.cache.key_codec import derive_key, is_url
from catinfo.infrastructure.cache.memory_store import MemoryStore
from catinfo.infrastructure.cache.persistent_store import PersistentStore

logger = logging.getLogger(__name__)


def default_cost(value: Any, raw_bytes: bytes) -> int:
    """Pixel buffer size for Pillow images, encoded size for anything else."""
    if isinstance(value, Image.Image):
        return image_cost(value)
    return len(raw_bytes)


class ImageCacheCoordinator(ImageCache):
    """Memory + disk image cache with promote-on-hit and write-behind to disk."""

    def __init__(
        self,
        memory_store: MemoryStore,
        persistent_store: PersistentStore,
        scheduler: Optional[EvictionScheduler] = None,
        decoder: Callable[[bytes], Any] = decode_image,
        cost_fn: Callable[[Any, bytes], int] = default_cost,
    ):
        """Initializes the coordinator. Both stores are owned by it from now on.

        Args:
            memory_store: The memory tier.
            persistent_store: The disk tier.
            scheduler: Optional expiry sweeper for the disk tier, started by start().
            decoder: Turns raw bytes into the cached value; raises DecodingError.
            cost_fn: Computes the memory cost of a decoded value.
        """
        self.memory_store = memory_store
        self.persistent_store = persistent_store
        self.scheduler = scheduler
        self._decoder = decoder
        self._cost_fn = cost_fn

    # --- ImageCache Interface Implementation ---

    async def get_image(self, key: CacheKey) -> Optional[Any]:
        """Returns the cached image from memory or disk, or None."""
        value = self.memory_store.get(key)
        if value is not None:
            # Disk timestamp follows memory hits for expiry purposes
            self.persistent_store.submit_touch(key)
            logger.debug(f"Memory cache hit for key: {key}")
            return value

        data = await self.persistent_store.read(key)
        if data is None:
            logger.debug(f"Cache miss for key: {key}")
            return None

        try:
            value = self.decode(data)
        except DecodingError as e:
            logger.warning(f"Discarding undecodable disk entry for key {key}: {e}")
            return None

        logger.debug(f"Disk cache hit for key: {key}. Promoting to memory.")
        self.memory_store.put(key, value, self._cost_fn(value, data))
        return value

    def put_image(self, key: CacheKey, value: Any, raw_bytes: bytes) -> None:
        self.memory_store.put(key, value, self._cost_fn(value, raw_bytes))
        self.persistent_store.submit_write(key, raw_bytes)
        logger.debug(f"Stored image in memory and queued disk write: key={key}")

    def clear(self) -> None:
        self.memory_store.clear()
        self.persistent_store.submit_delete_all()
        logger.info("Cleared memory cache and queued disk cache removal.")

    def make_key(self, url_or_id: str) -> CacheKey:
        if is_url(url_or_id):
            return derive_key(url_or_id)
        return CacheKey(url_or_id)

    def decode(self, raw_bytes: bytes) -> Any:
        return self._decoder(raw_bytes)

    async def stats(self) -> CacheStats:
        disk_entries, disk_bytes = await self.persistent_store.stats()
        return CacheStats(
            memory_entries=len(self.memory_store),
            memory_cost_bytes=self.memory_store.total_cost,
            disk_entries=disk_entries,
            disk_bytes=disk_bytes,
        )

    async def sweep(self) -> int:
        """Runs an expiry sweep now and waits for it."""
        if self.scheduler is None:
            logger.warning("No eviction scheduler configured; nothing to sweep.")
            return 0
        future = self.scheduler.run_once()
        if future is None:
            logger.info("A cache sweep is already running.")
            return 0
        return await asyncio.wrap_future(future)

    # --- Lifecycle ---

    def start(self) -> None:
        """Starts the periodic disk sweep. Safe to call more than once."""
        if self.scheduler is not None:
            self.scheduler.start()

    async def flush(self) -> None:
        """Waits for every queued disk operation to finish."""
        await self.persistent_store.flush()

    def close(self) -> None:
        """Stops the sweeper and drains the disk worker."""
        if self.scheduler is not None:
            self.scheduler.stop()
        self.persistent_store.close()
