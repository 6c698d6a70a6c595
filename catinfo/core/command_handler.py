"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates
the work to the appropriate application services (BreedService,
ImageService, ImageCarousel) and to the image cache for maintenance
commands. Every handler reports failures through the UserInterface and
returns False instead of raising.
"""

import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

# Core Services Imports
from catinfo.core.services.breed_service import BreedService
from catinfo.core.services.carousel import ImageCarousel
from catinfo.core.services.image_service import ImageService

# Domain Layer Imports
from catinfo.domain.interfaces.cache import ImageCache
from catinfo.domain.interfaces.catalog_api import CatalogApi
from catinfo.domain.interfaces.user_interface import UserInterface
from catinfo.domain.models.breed import BreedImage
from catinfo.domain.models.common import BreedId, ImageId
from catinfo.domain.models.errors import CatInfoError

# Infrastructure Layer Imports
from catinfo.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

def _image_filename(image: BreedImage, index: int) -> str:
    """File name for a downloaded image, keeping the extension of its URL."""
    suffix = Path(urlsplit(image.url or "").path).suffix or ".png"
    return f"{image.id or f'image_{index}'}{suffix}"

class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        breed_service: BreedService,
        image_service: ImageService,
        cache: ImageCache,
        catalog_api: CatalogApi,
        ui: UserInterface,
        api_retry_service: Optional[ApiRetryService] = None,
    ):
        """Initializes the CommandHandler with required services."""
        self.breed_service = breed_service
        self.image_service = image_service
        self.cache = cache
        self.catalog_api = catalog_api
        self.ui = ui
        self.api_retry_service = api_retry_service

    def _report(self, action: str, error: Exception) -> None:
        if isinstance(error, CatInfoError):
            logger.error(f"{action} failed: {error}")
        else:
            logger.error(f"{action} failed: {error}", exc_info=True)
        self.ui.display_error(f"{action} failed: {error}")

    def _save(self, image: Any, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        image.save(destination)
        logger.info(f"Saved image to {destination}")

    async def handle_breeds(self) -> bool:
        """Handles the 'breeds' command."""
        logger.info("Handling 'breeds' command.")
        try:
            breeds = await self.breed_service.list_breeds()
        except Exception as e:
            self._report("Loading breeds", e)
            return False
        self.ui.display_breeds(breeds)
        return True

    async def handle_breed(self, breed_id: str) -> bool:
        """Handles the 'breed' command: details plus the reference image when it loads."""
        logger.info(f"Handling 'breed' command for: {breed_id}")
        try:
            breed = await self.breed_service.get_breed(BreedId(breed_id))
        except Exception as e:
            self._report(f"Loading breed '{breed_id}'", e)
            return False

        image = None
        try:
            image = await self.breed_service.load_reference_image(breed)
        except CatInfoError as e:
            # The breed details are still worth showing
            logger.warning(f"Reference image for {breed.id} unavailable: {e}")
            self.ui.display_warning(f"Reference image unavailable: {e}")
        self.ui.display_breed(breed, image=image)
        return True

    async def handle_image(self, image_id: str, output: Optional[Path] = None) -> bool:
        """Handles the 'image' command: resolves one image by id, optionally saving it."""
        logger.info(f"Handling 'image' command for: {image_id}")
        try:
            image = await self.image_service.fetch_image(ImageId(image_id))
        except Exception as e:
            self._report(f"Loading image '{image_id}'", e)
            return False

        width, height = image.size
        self.ui.display_info(f"Image {image_id}: {width}x{height} ({image.mode})")
        if output is not None:
            try:
                self._save(image, output)
            except (OSError, ValueError) as e:
                self._report(f"Saving image to {output}", e)
                return False
            self.ui.display_info(f"Saved to {output}")
        return True

    async def handle_images(
        self,
        breed_id: str,
        page: int = 0,
        limit: int = 10,
        save_dir: Optional[Path] = None,
    ) -> bool:
        """Handles the 'images' command: lists one page of a breed's images.

        With save_dir, every image of the page is loaded through the carousel
        (and therefore the cache) and written to that directory.
        """
        logger.info(f"Handling 'images' command for breed {breed_id} (page={page}, limit={limit}).")
        carousel = ImageCarousel(
            BreedId(breed_id),
            catalog_api=self.catalog_api,
            image_service=self.image_service,
            api_retry_service=self.api_retry_service,
            page_size=limit,
        )
        try:
            page_images = list(await carousel.load(page))
        except Exception as e:
            self._report(f"Searching images for '{breed_id}'", e)
            return False

        self.ui.display_images(page_images, title=f"Images of {breed_id} (page {page})", caption=carousel.page_info)
        if save_dir is None or not page_images:
            return True

        saved = 0
        for index, metadata in enumerate(page_images):
            try:
                image = await carousel.show(index, prefetch=False)
                if image is None:
                    continue
                self._save(image, save_dir / _image_filename(metadata, index))
                saved += 1
            except (CatInfoError, OSError, ValueError) as e:
                logger.warning(f"Skipping image {metadata.id or index}: {e}")
                self.ui.display_warning(f"Skipping image {metadata.id or index}: {e}")
        self.ui.display_info(f"Saved {saved} of {len(page_images)} images to {save_dir}")
        return saved == len(page_images)

    async def handle_cache_info(self) -> bool:
        """Handles the 'cache-info' command."""
        try:
            stats = await self.cache.stats()
        except Exception as e:
            self._report("Reading cache statistics", e)
            return False
        self.ui.display_cache_stats(stats)
        return True

    async def handle_clear_cache(self) -> bool:
        """Handles the 'clear-cache' command."""
        logger.info("Handling 'clear-cache' command.")
        try:
            self.cache.clear()
        except Exception as e:
            self._report("Clearing cache", e)
            return False
        self.ui.display_info("Image cache cleared.")
        return True

    async def handle_sweep(self) -> bool:
        """Handles the 'sweep' command: removes expired disk entries now."""
        logger.info("Handling 'sweep' command.")
        try:
            removed = await self.cache.sweep()
        except Exception as e:
            self._report("Sweeping cache", e)
            return False
        self.ui.display_info(f"Removed {removed} expired cache entries.")
        return True
