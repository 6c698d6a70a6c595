"""Domain models for the two cache tiers."""

from dataclasses import dataclass
from typing import Any

from .common import CacheKey, CostBytes


@dataclass
class CacheEntry:
    """A row of the persistent image table."""
    key: CacheKey
    data: bytes
    created_at: float # POSIX seconds, set once at first write
    last_accessed_at: float # POSIX seconds, refreshed on every read and write


@dataclass
class MemoryEntry:
    """A decoded image held by the memory tier."""
    key: CacheKey
    value: Any
    cost_bytes: CostBytes
