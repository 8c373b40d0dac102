"""
Configuration loading for the HTTP relay.
"""

from .config_loader import ConnectorConfig, RelayConfig, build_cache_store

__all__ = ["ConnectorConfig", "RelayConfig", "build_cache_store"]
