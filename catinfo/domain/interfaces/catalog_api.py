"""Interface for the remote breed catalog.

Defines the contract for fetching breed metadata, image metadata and image
bytes. Implementations translate transport and HTTP failures into the error
taxonomy of catinfo.domain.models.errors.
"""

import abc
from typing import List

# Import relevant domain models
from ..models.breed import Breed, BreedImage
from ..models.common import BreedId, ImageId


class CatalogApi(abc.ABC):
    """Abstract Base Class for catalog API interactions."""

    @abc.abstractmethod
    async def fetch_breeds(self) -> List[Breed]:
        """Fetches every breed known to the catalog.

        Raises:
            Unauthorized, NotFound, ServerError, DecodingError, NetworkError
        """
        pass

    @abc.abstractmethod
    async def fetch_image_metadata(self, image_id: ImageId) -> BreedImage:
        """Fetches the metadata (url, dimensions) of a single image.

        Raises:
            InvalidInput: If the identifier cannot be used in a request path.
            Unauthorized, NotFound, ServerError, DecodingError, NetworkError
        """
        pass

    @abc.abstractmethod
    async def fetch_image_bytes(self, url: str) -> bytes:
        """Downloads the encoded bytes of an image.

        Raises:
            InvalidInput: If the URL is malformed.
            Unauthorized, NotFound, ServerError, NetworkError
        """
        pass

    @abc.abstractmethod
    async def search_breed_images(self, breed_id: BreedId, page: int = 0, limit: int = 10) -> List[BreedImage]:
        """Fetches one page of image metadata for a breed.

        Args:
            breed_id: The catalog breed identifier.
            page: Zero-based page index.
            limit: Page size.
        """
        pass
