"""
Connectors executing and forwarding requests to upstream services.
"""

from .http import HttpConnector, sanitize_headers
from .proxy import ProxyConnector

__all__ = [
    "HttpConnector",
    "ProxyConnector",
    "sanitize_headers",
]
