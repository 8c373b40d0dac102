"""
Cache gateway: request fingerprinting and best-effort response caching.
"""

import hashlib
import logging
from typing import Any, Dict, Optional

from ..core.canonical import digest
from ..core.envelope import ResponseEnvelope
from .base import CacheStore


logger = logging.getLogger(__name__)

# Default time-to-live for cached responses (1 hour)
DEFAULT_CACHE_TTL = 60 * 60


class CacheGateway:
    """
    Reads and writes response envelopes to a pluggable cache store.
    
    The cache is best-effort: a failing store never fails the surrounding
    request. Failures are logged at warning level and counted in
    `error_count` instead of being raised.
    """

    def __init__(self, store: Optional[CacheStore] = None):
        """
        Initialize the gateway.
        
        Args:
            store: Cache store; None disables caching
        """
        self.store = store
        self.error_count = 0

    @property
    def enabled(self) -> bool:
        return self.store is not None

    @staticmethod
    def fingerprint(
        method: str,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Compute the cache key of a request.
        
        Method and URL are concatenated with digests of the canonical forms
        of data and headers, and the whole is hashed with SHA-512, so equal
        requests map to the same key whatever the key order of their maps.
        
        Args:
            method: HTTP method
            url: Request URL joined to the base URI in effect
            data: Request payload
            headers: Sanitized request headers
            
        Returns:
            Hex-encoded SHA-512 digest (128 characters)
            
        Raises:
            TypeError: If data or headers hold non-string keys
        """
        key_input = (
            f"{method}{url}"
            f"{digest(data or {}, 'md5')}"
            f"{digest(headers or {}, 'md5')}"
        )
        return hashlib.sha512(key_input.encode("utf-8")).hexdigest()

    def try_get(self, key: str) -> Optional[ResponseEnvelope]:
        """
        Restore the envelope cached under the key.
        
        Returns:
            A fresh envelope flagged as a cache hit, or None if caching is
            disabled, the key is unseen, or the store failed
        """
        if self.store is None:
            return None

        try:
            if not self.store.has(key):
                return None
            entry = self.store.get(key)
            if entry is None:
                return None
            return ResponseEnvelope.from_cache_entry(entry)
        except Exception as e:
            self.error_count += 1
            logger.warning(f"Cache read failed for {key[:16]}: {e}")
            return None

    def put(self, key: str, envelope: ResponseEnvelope, ttl: int = DEFAULT_CACHE_TTL) -> bool:
        """
        Write the envelope under the key.
        
        Returns:
            True if stored, False if caching is disabled or the store failed
        """
        if self.store is None:
            return False

        try:
            stored = self.store.set(key, envelope.to_cache_entry(), ttl)
        except Exception as e:
            self.error_count += 1
            logger.warning(f"Cache write failed for {key[:16]}: {e}")
            return False

        if stored is False:
            self.error_count += 1
            logger.warning(f"Cache store refused entry {key[:16]}")
            return False
        return True
