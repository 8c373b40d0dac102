"""
Core abstractions and data types for the HTTP relay.
"""

from .connector import Executor
from .envelope import ResponseEnvelope
from .exceptions import (
    HttpRelayError,
    ConfigurationError,
    NotFoundError,
    TransportError,
    HttpExecutionError,
    DecodingError,
    AlreadyConsumedError,
)
from .models import (
    EndpointConfig,
    InboundRequest,
    Representation,
    RequestSpec,
)
from .status_policy import DEFAULT_STATUS_CODES, PROXY_STATUS_CODES, StatusPolicy

__all__ = [
    "Executor",
    "ResponseEnvelope",
    # Exceptions
    "HttpRelayError",
    "ConfigurationError",
    "NotFoundError",
    "TransportError",
    "HttpExecutionError",
    "DecodingError",
    "AlreadyConsumedError",
    # Models
    "EndpointConfig",
    "InboundRequest",
    "Representation",
    "RequestSpec",
    # Status policy
    "DEFAULT_STATUS_CODES",
    "PROXY_STATUS_CODES",
    "StatusPolicy",
]
