import io
from typing import Any, Dict

import pytest
from PIL import Image
from typer.testing import CliRunner

from catinfo.domain.models.breed import Breed
from catinfo.infrastructure.config.settings import clear_test_config

class FakeClock:
    """Controllable POSIX clock for timestamp-sensitive tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

def make_png(width: int = 4, height: int = 3, color=(200, 30, 30)) -> bytes:
    """Encodes a small solid-color PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()

BREED_PAYLOAD: Dict[str, Any] = {
    "id": "abys",
    "name": "Abyssinian",
    "temperament": "Active, Energetic, Independent, Intelligent, Gentle",
    "description": "The Abyssinian is easy to care for, and a joy to have in your home.",
    "origin": "Egypt",
    "weight": {"imperial": "7  -  10", "metric": "3 - 5"},
    "life_span": "14 - 15",
    "wikipedia_url": "https://en.wikipedia.org/wiki/Abyssinian_(cat)",
    "reference_image_id": "0XYvRd7oD",
}

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def png_bytes() -> bytes:
    return make_png()

@pytest.fixture
def png_factory():
    return make_png

@pytest.fixture
def breed_payload() -> Dict[str, Any]:
    return dict(BREED_PAYLOAD, weight=dict(BREED_PAYLOAD["weight"]))

@pytest.fixture
def breed(breed_payload) -> Breed:
    return Breed.from_api(breed_payload)

@pytest.fixture(autouse=True)
def isolate_test_config():
    """Makes sure configuration set by one test never leaks into another."""
    clear_test_config()
    yield
    clear_test_config()
