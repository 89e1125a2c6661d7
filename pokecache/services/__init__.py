"""Service layer for the catalog cache."""

from .cache import CacheStore, CacheStoreError, InvalidKeyError

__all__ = [
    "CacheStore",
    "CacheStoreError",
    "InvalidKeyError",
]
