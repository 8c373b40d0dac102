"""
Transports that carry requests to upstream services.
"""

from .base import Transport, TransportResponse, join_url
from .requests_transport import RequestsTransport, flatten_form
from .static_transport import SentRequest, StaticTransport

__all__ = [
    "Transport",
    "TransportResponse",
    "join_url",
    "RequestsTransport",
    "flatten_form",
    "SentRequest",
    "StaticTransport",
]
