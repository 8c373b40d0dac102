"""
Configuration loader for the HTTP relay.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..cache import CacheStore, InMemoryCacheStore, SqliteCacheStore
from ..cache.gateway import DEFAULT_CACHE_TTL
from ..core.exceptions import ConfigurationError
from ..core.status_policy import DEFAULT_STATUS_CODES


logger = logging.getLogger(__name__)


@dataclass
class ConnectorConfig:
    """
    Settings of a single connector.
    
    Attributes:
        base_uri: Base URI requests are relative to
        timeout_seconds: Transport timeout in seconds
        cache_ttl_seconds: Time-to-live of cached responses
        valid_status_codes: Status codes treated as non-fatal
        user_agent: User-Agent sent when the caller sets none
    """
    base_uri: Optional[str] = None
    timeout_seconds: float = 2.0
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL
    valid_status_codes: List[int] = field(
        default_factory=lambda: sorted(DEFAULT_STATUS_CODES)
    )
    user_agent: Optional[str] = None

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ConnectorConfig":
        """Build a connector config from a mapping, ignoring unknown keys."""
        values = values or {}
        config = cls(
            base_uri=values.get("base_uri"),
            timeout_seconds=float(values.get("timeout_seconds", 2.0)),
            cache_ttl_seconds=int(values.get("cache_ttl_seconds", DEFAULT_CACHE_TTL)),
            user_agent=values.get("user_agent"),
        )
        if "valid_status_codes" in values:
            codes = [int(code) for code in values["valid_status_codes"] or []]
            if not codes:
                raise ConfigurationError(
                    "connector.valid_status_codes must list at least one status code"
                )
            config.valid_status_codes = codes
        return config


class RelayConfig:
    """
    Configuration for the relay.
    
    Loads a YAML file with `connector`, `cache` and `endpoints` sections and
    applies environment variable overrides.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.
        
        Args:
            config_path: Path to YAML config file (optional)
        """
        self.config_path = Path(config_path) if config_path else None
        self.config = self._load_config() if self.config_path else self._default_config()
        self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        
        logger.info(f"Loading config from: {self.config_path}")
        
        with open(self.config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
        
        if config is not None and not isinstance(config, dict):
            raise ConfigurationError(
                f"Config file {self.config_path} must contain a mapping"
            )
        return config or {}

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "connector": {
                "base_uri": None,
                "timeout_seconds": 2.0,
                "cache_ttl_seconds": DEFAULT_CACHE_TTL,
            },
            "cache": {
                "type": "memory",
            },
            "endpoints": [],
        }

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        connector = self.config.setdefault("connector", {}) or {}
        self.config["connector"] = connector

        base_uri = os.environ.get("HTTPRELAY_BASE_URI")
        if base_uri:
            connector["base_uri"] = base_uri

        timeout = os.environ.get("HTTPRELAY_TIMEOUT_SECONDS")
        if timeout:
            connector["timeout_seconds"] = float(timeout)

        cache_ttl = os.environ.get("HTTPRELAY_CACHE_TTL_SECONDS")
        if cache_ttl:
            connector["cache_ttl_seconds"] = int(cache_ttl)

        cache_path = os.environ.get("HTTPRELAY_CACHE_PATH")
        if cache_path:
            cache = self.config.setdefault("cache", {}) or {}
            self.config["cache"] = cache
            cache["type"] = "sqlite"
            cache["path"] = cache_path

    def get_connector_config(self) -> ConnectorConfig:
        """Get connector configuration."""
        return ConnectorConfig.from_dict(self.config.get("connector", {}))

    def get_cache_config(self) -> Dict[str, Any]:
        """Get cache configuration."""
        return self.config.get("cache") or {}

    def get_endpoints(self) -> Dict[str, Dict[str, Any]]:
        """
        Get the endpoint table keyed by endpoint name.
        
        The YAML may list endpoints or map names to them; in the mapping
        form an entry without a `name` key takes its mapping key.
        """
        endpoints = self.config.get("endpoints") or []
        table: Dict[str, Dict[str, Any]] = {}

        if isinstance(endpoints, dict):
            for name, entry in endpoints.items():
                entry = dict(entry or {})
                entry.setdefault("name", name)
                table[name] = entry
        elif isinstance(endpoints, list):
            for entry in endpoints:
                if not isinstance(entry, dict) or not entry.get("name"):
                    raise ConfigurationError(
                        f"Endpoint ({entry!r}) is not defined correctly, "
                        f"the config key (name) is not defined"
                    )
                table[entry["name"]] = dict(entry)
        else:
            raise ConfigurationError("endpoints must be a list or a mapping")

        return table

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        keys = key.split(".")
        value = self.config
        
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        
        return value if value is not None else default


def build_cache_store(config: RelayConfig) -> Optional[CacheStore]:
    """
    Build the cache store named by the `cache` section.
    
    Supported types: memory (default), sqlite (needs `path`), none.
    """
    cache_config = config.get_cache_config()
    cache_type = str(cache_config.get("type", "memory")).lower()

    if cache_type in ("none", "disabled", "off"):
        return None
    if cache_type == "memory":
        return InMemoryCacheStore()
    if cache_type == "sqlite":
        path = cache_config.get("path")
        if not path:
            raise ConfigurationError("cache.path is required for the sqlite cache")
        return SqliteCacheStore(Path(path))

    raise ConfigurationError(f"Unknown cache type: {cache_type}")
