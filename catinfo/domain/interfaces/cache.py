"""Interface for the image cache.

Defines the contract for storing, retrieving, and managing cached images
across the memory and disk tiers. Implementations never perform network I/O.
"""

import abc
from typing import Any, Optional

# Import relevant domain models
from ..models.common import CacheKey, CacheStats

class ImageCache(abc.ABC):
    """Abstract Base Class for two-tier image caching."""

    @abc.abstractmethod
    async def get_image(self, key: CacheKey) -> Optional[Any]:
        """Retrieves a decoded image asynchronously.

        Checks the memory tier first, then the disk tier. Disk hits are
        promoted into memory.

        Args:
            key: The cache key to retrieve.

        Returns:
            The decoded image if cached in either tier, otherwise None.
        """
        pass

    @abc.abstractmethod
    def put_image(self, key: CacheKey, value: Any, raw_bytes: bytes) -> None:
        """Stores an image in memory now and on disk in the background.

        Args:
            key: The cache key to store the image under.
            value: The decoded image.
            raw_bytes: The encoded bytes persisted to disk.
        """
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Empties the memory tier and schedules removal of every disk entry."""
        pass

    @abc.abstractmethod
    def make_key(self, url_or_id: str) -> CacheKey:
        """Builds the cache key for a URL or an opaque catalog identifier.

        Args:
            url_or_id: An absolute image URL or a catalog image id.

        Returns:
            The normalized key for URLs, the identifier itself otherwise.
        """
        pass

    @abc.abstractmethod
    def decode(self, raw_bytes: bytes) -> Any:
        """Decodes encoded image bytes into the value stored by the cache.

        Raises:
            DecodingError: If the bytes are not a readable image.
        """
        pass

    async def stats(self) -> CacheStats:
        """Returns entry counts and sizes for both tiers."""
        return CacheStats(memory_entries=0, memory_cost_bytes=0, disk_entries=0, disk_bytes=0)

    async def sweep(self) -> int:
        """Deletes expired disk entries now. Returns the number removed."""
        return 0
