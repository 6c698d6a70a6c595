"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like cache keys, catalog
identifiers and URLs, ensuring consistency and type safety.
"""

from typing import NewType, TypedDict

# === Catalog Context ===

# Using NewType for semantic clarity, although they are strings at runtime.
BreedId = NewType("BreedId", str)              # Catalog breed identifier, e.g. 'abys'
ImageId = NewType("ImageId", str)              # Opaque catalog image identifier
ImageUrl = NewType("ImageUrl", str)            # Absolute URL of an image file

# === Caching Context ===
CacheKey = NewType("CacheKey", str)            # Unique key for a cache entry
CostBytes = NewType("CostBytes", int)          # Approximate in-memory size of a decoded image

# --- Structured Data ---
class CacheStats(TypedDict):
    """Snapshot of both cache tiers, used by the cache-info command."""
    memory_entries: int
    memory_cost_bytes: int
    disk_entries: int
    disk_bytes: int

class BackoffPolicy(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_retries: int
    initial_delay: float
    factor: float
