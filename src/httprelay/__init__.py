"""
Outbound HTTP connector with status validation, response caching and a
reverse-proxy forwarder.
"""

import logging

from .core import (
    AlreadyConsumedError,
    ConfigurationError,
    DecodingError,
    EndpointConfig,
    HttpExecutionError,
    HttpRelayError,
    InboundRequest,
    NotFoundError,
    Representation,
    RequestSpec,
    ResponseEnvelope,
    StatusPolicy,
    TransportError,
)
from .cache import CacheGateway, InMemoryCacheStore, SqliteCacheStore
from .connectors import HttpConnector, ProxyConnector

__version__ = "0.1.0"

# Records are dropped unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AlreadyConsumedError",
    "CacheGateway",
    "ConfigurationError",
    "DecodingError",
    "EndpointConfig",
    "HttpConnector",
    "HttpExecutionError",
    "HttpRelayError",
    "InMemoryCacheStore",
    "InboundRequest",
    "NotFoundError",
    "ProxyConnector",
    "Representation",
    "RequestSpec",
    "ResponseEnvelope",
    "SqliteCacheStore",
    "StatusPolicy",
    "TransportError",
]
