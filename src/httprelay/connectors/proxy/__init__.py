"""
Proxy connector forwarding to named endpoints.
"""

from .proxy_connector import REQUEST_IDENTIFIER, SESSION_IDENTIFIER, ProxyConnector

__all__ = ["ProxyConnector", "REQUEST_IDENTIFIER", "SESSION_IDENTIFIER"]
