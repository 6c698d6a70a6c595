"""Concrete implementation of the CatalogApi interface over HTTP.

Talks to TheCatAPI with httpx and translates every failure into the domain
error taxonomy: 401 -> Unauthorized, 404 -> NotFound, other non-2xx ->
ServerError, transport failures -> NetworkError, bad JSON -> DecodingError.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

# Domain Layer Imports
from catinfo.domain.interfaces.catalog_api import CatalogApi
from catinfo.domain.models.breed import Breed, BreedImage
from catinfo.domain.models.common import BreedId, ImageId
from catinfo.domain.models.errors import (
    DecodingError, InvalidInput, NetworkError, NotFound, ServerError, Unauthorized,
)
from catinfo.infrastructure.cache.key_codec import is_url

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.thecatapi.com/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0
API_KEY_HEADER = "x-api-key"

class CatApiClient(CatalogApi):
    """httpx implementation of the CatalogApi interface."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the catalog client.

        Args:
            api_key: Catalog API key. Requests are sent unauthenticated if None,
                which the catalog accepts with a lower quota.
            base_url: Root URL of the catalog API.
            timeout: Per-request timeout in seconds.
            http_client: Optional preconfigured client (used by tests).
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        if not api_key:
            logger.warning("No catalog API key configured; requests will be rate limited by the catalog.")
        logger.info(f"CatApiClient initialized for {self.base_url}")

    def _headers(self) -> Dict[str, str]:
        return {API_KEY_HEADER: self.api_key} if self.api_key else {}

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None, authenticated: bool = True) -> httpx.Response:
        """Performs a GET and maps transport failures and error statuses."""
        try:
            response = await self._client.get(url, params=params, headers=self._headers() if authenticated else None)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidInput(f"Invalid URL {url!r}: {e}") from e
        except httpx.TransportError as e:
            logger.warning(f"Transport error for GET {url}: {type(e).__name__}: {e}")
            raise NetworkError(f"Network error: {e}") from e

        status = response.status_code
        if 200 <= status < 300:
            return response
        logger.debug(f"GET {url} returned HTTP {status}")
        if status == 401:
            raise Unauthorized()
        if status == 404:
            raise NotFound(f"Resource not found: {url}")
        raise ServerError(status)

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._get(f"{self.base_url}{path}", params=params)
        try:
            return response.json()
        except ValueError as e:
            raise DecodingError(f"Failed to parse response from {path}: {e}") from e

    # --- CatalogApi Interface Implementation ---

    async def fetch_breeds(self) -> List[Breed]:
        payload = await self._get_json("/breeds")
        if not isinstance(payload, list):
            raise DecodingError("Expected a list of breeds")
        breeds = [Breed.from_api(item) for item in payload]
        logger.debug(f"Fetched {len(breeds)} breeds.")
        return breeds

    async def fetch_image_metadata(self, image_id: ImageId) -> BreedImage:
        if not image_id or not image_id.strip() or "/" in image_id:
            raise InvalidInput(f"Invalid image id: {image_id!r}")
        payload = await self._get_json(f"/images/{quote(image_id, safe='')}")
        return BreedImage.from_api(payload)

    async def fetch_image_bytes(self, url: str) -> bytes:
        if not url or not is_url(url):
            raise InvalidInput(f"Invalid image URL: {url!r}")
        # Image files are served from a CDN that needs no API key
        response = await self._get(url, authenticated=False)
        logger.debug(f"Downloaded {len(response.content)} bytes from {url}")
        return response.content

    async def search_breed_images(self, breed_id: BreedId, page: int = 0, limit: int = 10) -> List[BreedImage]:
        if not breed_id:
            raise InvalidInput("Breed id must not be empty")
        if page < 0 or limit <= 0:
            raise InvalidInput(f"Invalid paging: page={page}, limit={limit}")
        payload = await self._get_json(
            "/images/search",
            params={"breed_ids": breed_id, "limit": limit, "page": page},
        )
        if not isinstance(payload, list):
            raise DecodingError("Expected a list of images")
        return [BreedImage.from_api(item) for item in payload]

    async def aclose(self) -> None:
        """Closes the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
