"""Paged image carousel for one breed.

Holds the navigation state (loaded image metadata, current index, page) and
loads images through the ImageService. Every show request is tagged with a
generation number; a completion whose generation is no longer the latest is
discarded instead of replacing the current image. Superseded downloads are
not cancelled, they still warm the cache.
"""

import asyncio
import logging
from typing import Any, List, Optional

from catinfo.core.services.image_service import ImageService
from catinfo.domain.interfaces.catalog_api import CatalogApi
from catinfo.domain.models.breed import BreedImage
from catinfo.domain.models.common import BreedId
from catinfo.domain.models.errors import CatInfoError
from catinfo.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
PREFETCH_THRESHOLD = 3 # Load the next page when this close to the end

class ImageCarousel:
    """Navigation state for browsing a breed's images page by page."""

    def __init__(
        self,
        breed_id: BreedId,
        catalog_api: CatalogApi,
        image_service: ImageService,
        api_retry_service: Optional[ApiRetryService] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.breed_id = breed_id
        self.catalog_api = catalog_api
        self.image_service = image_service
        self.api_retry_service = api_retry_service
        self.page_size = page_size

        self.images: List[BreedImage] = []
        self.current_page = 0
        self.current_index = 0
        self.current_image: Optional[Any] = None
        self._generation = 0
        self._page_lock = asyncio.Lock()

    async def _search(self, page: int) -> List[BreedImage]:
        if self.api_retry_service is not None:
            return await self.api_retry_service.execute_with_retry(
                self.catalog_api.search_breed_images, self.breed_id, page, self.page_size
            )
        return await self.catalog_api.search_breed_images(self.breed_id, page, self.page_size)

    async def load(self, page: int = 0) -> List[BreedImage]:
        """Replaces the loaded images with the given page."""
        async with self._page_lock:
            self.images = await self._search(page)
            self.current_page = page
            self.current_index = 0
            self.current_image = None
        logger.info(f"Loaded {len(self.images)} images for breed {self.breed_id} (page {page}).")
        return self.images

    async def load_more(self) -> int:
        """Appends the next page. Returns the number of images added.

        A failed or empty page load leaves the state unchanged; failures are
        only logged.
        """
        async with self._page_lock:
            next_page = self.current_page + 1
            try:
                fetched = await self._search(next_page)
            except CatInfoError as e:
                logger.warning(f"Failed to load page {next_page} for breed {self.breed_id}: {e}")
                return 0
            if not fetched:
                return 0
            self.current_page = next_page
            self.images.extend(fetched)
        return len(fetched)

    async def show(self, index: int, prefetch: bool = True) -> Optional[Any]:
        """Loads and displays the image at index.

        Args:
            index: Position in the loaded images.
            prefetch: Whether to load the next page when index is near the end.

        Returns:
            The decoded image, or None if the index is out of range or a later
            show() call superseded this one before it completed.

        Raises:
            CatInfoError: If loading the image fails and the request is still current.
        """
        if not 0 <= index < len(self.images):
            return None

        self._generation += 1
        generation = self._generation
        self.current_index = index

        if prefetch and index >= len(self.images) - PREFETCH_THRESHOLD:
            await self.load_more()

        try:
            image = await self.image_service.fetch_image_for(self.images[index])
        except CatInfoError:
            if generation != self._generation:
                logger.debug(f"Ignoring failure of superseded request for index {index}.")
                return None
            raise

        if generation != self._generation:
            logger.debug(f"Discarding stale image for index {index}; a newer request is current.")
            return None
        self.current_image = image
        return image

    async def show_next(self) -> Optional[Any]:
        if not self.can_go_next:
            return None
        return await self.show(self.current_index + 1)

    async def show_previous(self) -> Optional[Any]:
        if not self.can_go_previous:
            return None
        return await self.show(self.current_index - 1)

    @property
    def can_go_next(self) -> bool:
        return self.current_index < len(self.images) - 1

    @property
    def can_go_previous(self) -> bool:
        return self.current_index > 0

    @property
    def page_info(self) -> str:
        if not self.images:
            return "No images available for this breed"
        return f"Image {self.current_index + 1} of {len(self.images)}"
