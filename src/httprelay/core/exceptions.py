"""
Custom exceptions for the HTTP relay package.
"""

from typing import Iterable, Optional


class HttpRelayError(Exception):
    """Base exception for all httprelay errors."""
    pass


class ConfigurationError(HttpRelayError):
    """
    Error in connector or proxy configuration.
    
    Raised when:
    - The valid status code allow-list is set to empty
    - The endpoint table is empty or an entry misses a mandatory key
    - An endpoint is resolved before the table was populated
    """
    pass


class NotFoundError(ConfigurationError):
    """Raised when an endpoint name is not present in the endpoint table."""
    
    def __init__(self, message: str, endpoint: str = None):
        super().__init__(message)
        self.endpoint = endpoint


class TransportError(HttpRelayError):
    """
    Error raised by a transport while sending a request.
    
    Carries the upstream status code (0 for network level failures) and,
    when the upstream answered, the response so it can still be inspected.
    """
    
    def __init__(self, message: str, status_code: int = 0, response=None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class HttpExecutionError(HttpRelayError):
    """
    Fatal outcome of an execute() call.
    
    Raised when the upstream status is not in the allow-list, or when the
    transport failed without any recoverable response.
    """
    
    def __init__(
        self,
        message: str,
        status_code: int = 0,
        valid_status_codes: Optional[Iterable[int]] = None,
        envelope=None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.valid_status_codes = sorted(valid_status_codes or [])
        self.envelope = envelope


class DecodingError(HttpRelayError):
    """Raised when a response body cannot be decoded into a representation."""
    pass


class AlreadyConsumedError(HttpRelayError):
    """Raised when the body of a response envelope is read a second time."""
    pass
