"""Breed Service: breed list and breed detail use cases."""

import logging
from typing import Any, List, Optional

from catinfo.core.services.image_service import ImageService
from catinfo.domain.interfaces.catalog_api import CatalogApi
from catinfo.domain.models.breed import Breed
from catinfo.domain.models.common import BreedId
from catinfo.domain.models.errors import NotFound
from catinfo.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

class BreedService:
    """Fetches breeds and their reference images."""

    def __init__(
        self,
        catalog_api: CatalogApi,
        image_service: ImageService,
        api_retry_service: Optional[ApiRetryService] = None,
    ):
        self.catalog_api = catalog_api
        self.image_service = image_service
        self.api_retry_service = api_retry_service
        self._breeds: Optional[List[Breed]] = None

    async def list_breeds(self, refresh: bool = False) -> List[Breed]:
        """Returns every breed, fetching the list once per service instance."""
        if self._breeds is None or refresh:
            if self.api_retry_service is not None:
                self._breeds = await self.api_retry_service.execute_with_retry(self.catalog_api.fetch_breeds)
            else:
                self._breeds = await self.catalog_api.fetch_breeds()
            logger.info(f"Loaded {len(self._breeds)} breeds.")
        return self._breeds

    async def get_breed(self, breed_id: BreedId) -> Breed:
        """Finds a breed by id (case-insensitive).

        Raises:
            NotFound: If no breed has this id.
        """
        wanted = breed_id.strip().lower()
        for breed in await self.list_breeds():
            if breed.id.lower() == wanted:
                return breed
        raise NotFound(f"Unknown breed: {breed_id}")

    async def load_reference_image(self, breed: Breed) -> Optional[Any]:
        """Returns the breed's reference image, or None if the breed has none."""
        if not breed.reference_image_id:
            logger.debug(f"Breed {breed.id} has no reference image.")
            return None
        return await self.image_service.fetch_image(breed.reference_image_id)
