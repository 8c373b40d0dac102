"""
Plain HTTP connector.
"""

from .http_connector import HttpConnector, sanitize_headers

__all__ = ["HttpConnector", "sanitize_headers"]
