"""Interface for presenting catalog data to the user.

Defines the contract for displaying breeds, images, cache state, errors,
warnings and informational messages, allowing different UI implementations
(e.g., console, GUI).
"""

import abc
from typing import Any, List, Optional

# Import relevant domain models
from catinfo.domain.models.breed import Breed, BreedImage
from catinfo.domain.models.common import CacheStats

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_breeds(self, breeds: List[Breed], **kwargs: Any) -> None:
        """Displays the breed list.

        Args:
            breeds: Breeds in catalog order.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_breed(self, breed: Breed, image: Optional[Any] = None, **kwargs: Any) -> None:
        """Displays the details of one breed.

        Args:
            breed: The breed to describe.
            image: The decoded reference image, if one could be loaded.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_images(self, images: List[BreedImage], **kwargs: Any) -> None:
        """Displays a page of image metadata.

        Args:
            images: Image metadata in page order.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_cache_stats(self, stats: CacheStats, **kwargs: Any) -> None:
        """Displays entry counts and sizes of both cache tiers."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user.

        Args:
            warning_message: The warning message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass
