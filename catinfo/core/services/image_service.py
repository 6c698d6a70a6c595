"""Image Service: resolves catalog images through the cache before the network.

Implements the fetch-fallback chain for an image id:
1. the id key in the cache (memory, then disk);
2. one metadata request to learn the image URL;
3. the URL-derived key in the cache;
4. one byte download, stored under both keys.
The id and URL entries are kept independent: a hit on the URL key is not
copied back under the id key.
"""

import logging
from typing import Any, Callable, Coroutine, Optional

# Domain Layer Imports
from catinfo.domain.interfaces.cache import ImageCache
from catinfo.domain.interfaces.catalog_api import CatalogApi
from catinfo.domain.models.breed import BreedImage
from catinfo.domain.models.common import CacheKey, ImageId
from catinfo.domain.models.errors import InvalidInput

# Infrastructure Layer Imports (resilience service injected)
from catinfo.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

class ImageService:
    """Application service composing the image cache with the catalog API."""

    def __init__(
        self,
        cache: ImageCache,
        catalog_api: CatalogApi,
        api_retry_service: Optional[ApiRetryService] = None,
    ):
        """Initializes the ImageService.

        Args:
            cache: The two-tier image cache.
            catalog_api: The network collaborator.
            api_retry_service: Optional retry wrapper for catalog calls.
        """
        self.cache = cache
        self.catalog_api = catalog_api
        self.api_retry_service = api_retry_service

    async def _call(self, func: Callable[..., Coroutine[Any, Any, Any]], *args: Any) -> Any:
        if self.api_retry_service is not None:
            return await self.api_retry_service.execute_with_retry(func, *args)
        return await func(*args)

    async def fetch_image(self, image_id: ImageId) -> Any:
        """Returns the decoded image for a catalog image id.

        Args:
            image_id: The opaque catalog identifier (e.g. a breed's reference image).

        Returns:
            The decoded image.

        Raises:
            InvalidInput: If the id is empty or the catalog returns no URL.
            CatInfoError: Any metadata or download failure, unchanged.
        """
        if not image_id:
            raise InvalidInput("Image id must not be empty")

        id_key = self.cache.make_key(image_id)
        cached = await self.cache.get_image(id_key)
        if cached is not None:
            logger.debug(f"Image {image_id} served from cache by id.")
            return cached

        # Failure here is terminal for this request
        metadata: BreedImage = await self._call(self.catalog_api.fetch_image_metadata, image_id)
        return await self._resolve(id_key, metadata)

    async def fetch_image_for(self, image: BreedImage) -> Any:
        """Returns the decoded image for metadata already at hand (e.g. a search result).

        Skips the metadata request; tries the id key first when the image has an id.
        """
        id_key: Optional[CacheKey] = None
        if image.id:
            id_key = self.cache.make_key(image.id)
            cached = await self.cache.get_image(id_key)
            if cached is not None:
                return cached
        return await self._resolve(id_key, image)

    async def _resolve(self, id_key: Optional[CacheKey], metadata: BreedImage) -> Any:
        if not metadata.url:
            raise InvalidInput(f"Catalog returned no URL for image {metadata.id or id_key}")

        url_key = self.cache.make_key(metadata.url)
        cached = await self.cache.get_image(url_key)
        if cached is not None:
            logger.debug(f"Image {id_key or metadata.url} served from cache by URL key {url_key}.")
            return cached

        raw_bytes: bytes = await self._call(self.catalog_api.fetch_image_bytes, metadata.url)
        decoded = self.cache.decode(raw_bytes)

        if id_key is not None and id_key != url_key:
            self.cache.put_image(id_key, decoded, raw_bytes)
        self.cache.put_image(url_key, decoded, raw_bytes)
        logger.info(f"Downloaded and cached image {metadata.id or metadata.url} ({len(raw_bytes)} bytes).")
        return decoded
