"""
Response caching: stores and the gateway that fingerprints requests.
"""

from .base import CacheStore
from .gateway import DEFAULT_CACHE_TTL, CacheGateway
from .memory_store import InMemoryCacheStore
from .sqlite_store import SqliteCacheStore

__all__ = [
    "CacheStore",
    "CacheGateway",
    "DEFAULT_CACHE_TTL",
    "InMemoryCacheStore",
    "SqliteCacheStore",
]
