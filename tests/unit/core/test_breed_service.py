from unittest.mock import AsyncMock, MagicMock

import pytest

from catinfo.core.services.breed_service import BreedService
from catinfo.core.services.image_service import ImageService
from catinfo.domain.interfaces.catalog_api import CatalogApi
from catinfo.domain.models.breed import Breed
from catinfo.domain.models.errors import NotFound

@pytest.fixture
def mock_catalog_api(breed):
    api = MagicMock(spec=CatalogApi)
    api.fetch_breeds = AsyncMock(return_value=[breed])
    return api

@pytest.fixture
def mock_image_service():
    service = MagicMock(spec=ImageService)
    service.fetch_image = AsyncMock(return_value="decoded-image")
    return service

@pytest.fixture
def breed_service(mock_catalog_api, mock_image_service):
    return BreedService(catalog_api=mock_catalog_api, image_service=mock_image_service)

@pytest.mark.asyncio
async def test_list_breeds_is_fetched_once(breed_service: BreedService, mock_catalog_api: MagicMock, breed):
    assert await breed_service.list_breeds() == [breed]
    assert await breed_service.list_breeds() == [breed]
    mock_catalog_api.fetch_breeds.assert_awaited_once()

@pytest.mark.asyncio
async def test_list_breeds_refresh(breed_service: BreedService, mock_catalog_api: MagicMock):
    await breed_service.list_breeds()
    await breed_service.list_breeds(refresh=True)
    assert mock_catalog_api.fetch_breeds.await_count == 2

@pytest.mark.asyncio
async def test_get_breed_is_case_insensitive(breed_service: BreedService, breed):
    assert await breed_service.get_breed(" ABYS ") == breed

@pytest.mark.asyncio
async def test_get_unknown_breed_raises_not_found(breed_service: BreedService):
    with pytest.raises(NotFound):
        await breed_service.get_breed("nope")

@pytest.mark.asyncio
async def test_load_reference_image(breed_service: BreedService, mock_image_service: MagicMock, breed):
    assert await breed_service.load_reference_image(breed) == "decoded-image"
    mock_image_service.fetch_image.assert_awaited_once_with("0XYvRd7oD")

@pytest.mark.asyncio
async def test_load_reference_image_without_reference(breed_service: BreedService, mock_image_service: MagicMock, breed_payload):
    del breed_payload["reference_image_id"]
    breed = Breed.from_api(breed_payload)

    assert await breed_service.load_reference_image(breed) is None
    mock_image_service.fetch_image.assert_not_awaited()
