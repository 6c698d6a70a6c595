"""Derives stable cache keys from image URLs.

The derivation is a plain character substitution so keys stay readable in the
SQLite table. Two URLs that differ only in the substituted characters map to
the same key; such URLs are treated as the same cache entry.
"""

from urllib.parse import urlsplit

from catinfo.domain.models.common import CacheKey

# Characters replaced by REPLACEMENT_CHAR, in no particular order
SUBSTITUTED_CHARS = "/:.?&="
REPLACEMENT_CHAR = "_"

_TRANSLATION_TABLE = str.maketrans({char: REPLACEMENT_CHAR for char in SUBSTITUTED_CHARS})


def derive_key(url: str) -> CacheKey:
    """Normalizes a URL into a cache key.

    Example:
        >>> derive_key("https://a.b/c?d=1")
        'https___a_b_c_d_1'
    """
    return CacheKey(url.translate(_TRANSLATION_TABLE))


def is_url(value: str) -> bool:
    """Returns True when the value looks like an absolute URL (scheme and host)."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)
