"""
Cache store interface used by the cache gateway.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheStore(ABC):
    """
    Abstract base class for cache stores.
    
    Stores keep JSON-safe values under string keys and expire them after a
    time-to-live in seconds.
    """

    @abstractmethod
    def has(self, key: str) -> bool:
        """
        Check whether an unexpired value exists for the key.
        
        Args:
            key: Cache key
            
        Returns:
            True if present, False otherwise
        """
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Get the value stored under the key.
        
        Args:
            key: Cache key
            
        Returns:
            The stored value, or None if absent or expired
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        Store a value.
        
        Args:
            key: Cache key
            value: JSON-safe value
            ttl: Time-to-live in seconds (0 or less never expires)
            
        Returns:
            True if stored
        """
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
