"""Domain models for the breed catalog.

Mirrors the JSON documents served by the catalog API. Parsing is strict about
required fields and lenient about optional ones; anything malformed surfaces
as a DecodingError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .common import BreedId, ImageId, ImageUrl
from .errors import DecodingError


@dataclass(frozen=True)
class Weight:
    """Weight range of a breed, as display strings."""
    imperial: str
    metric: str


@dataclass(frozen=True)
class BreedImage:
    """Metadata describing one catalog image. Every field may be missing."""
    id: Optional[ImageId] = None
    url: Optional[ImageUrl] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "BreedImage":
        if not isinstance(payload, dict):
            raise DecodingError(f"Expected an image object, got {type(payload).__name__}")
        try:
            return cls(
                id=ImageId(payload["id"]) if payload.get("id") else None,
                url=ImageUrl(payload["url"]) if payload.get("url") else None,
                width=int(payload["width"]) if payload.get("width") is not None else None,
                height=int(payload["height"]) if payload.get("height") is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise DecodingError(f"Failed to parse image metadata: {e}") from e


@dataclass(frozen=True)
class Breed:
    """Entity representing one breed of the catalog."""
    id: BreedId
    name: str
    temperament: str
    description: str
    origin: str
    weight: Weight
    life_span: str
    wikipedia_url: Optional[str] = None
    reference_image_id: Optional[ImageId] = None
    image: Optional[BreedImage] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Breed":
        """Builds a Breed from one element of the /breeds response."""
        if not isinstance(payload, dict):
            raise DecodingError(f"Expected a breed object, got {type(payload).__name__}")
        try:
            weight = payload["weight"]
            image = payload.get("image")
            return cls(
                id=BreedId(payload["id"]),
                name=payload["name"],
                temperament=payload["temperament"],
                description=payload["description"],
                origin=payload["origin"],
                weight=Weight(imperial=weight["imperial"], metric=weight["metric"]),
                life_span=payload["life_span"],
                wikipedia_url=payload.get("wikipedia_url"),
                reference_image_id=ImageId(payload["reference_image_id"]) if payload.get("reference_image_id") else None,
                image=BreedImage.from_api(image) if image else None,
            )
        except (KeyError, TypeError) as e:
            raise DecodingError(f"Failed to parse breed: missing or invalid field {e}") from e
