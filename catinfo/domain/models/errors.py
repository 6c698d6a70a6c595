"""Error taxonomy shared by the catalog client, the cache and the CLI.

Every failure the application can report derives from CatInfoError.
StorageError never leaves the persistent store; the remaining kinds propagate
to whoever orchestrated the request.
"""

from typing import Optional


class CatInfoError(Exception):
    """Base class for all application errors."""


class InvalidInput(CatInfoError):
    """A URL or identifier could not be used to build a request."""


class Unauthorized(CatInfoError):
    """The catalog rejected the API key (HTTP 401)."""

    def __init__(self, message: str = "Unauthorized - invalid API key"):
        super().__init__(message)


class NotFound(CatInfoError):
    """The requested resource does not exist (HTTP 404)."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ServerError(CatInfoError):
    """The catalog answered with an unexpected status code."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Server error with status code: {status_code}")

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500


class DecodingError(CatInfoError):
    """A response body or image payload could not be decoded."""


class NetworkError(CatInfoError):
    """Transport-level failure (DNS, connection reset, timeout...)."""


class StorageError(CatInfoError):
    """Disk cache I/O failure or corruption. Absorbed by the persistent store."""
