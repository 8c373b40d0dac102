"""
Transport interface for sending HTTP requests upstream.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class TransportResponse:
    """
    Raw response returned by a transport.
    
    Attributes:
        status_code: HTTP status code
        headers: Response headers (each value a list of strings)
        body: Raw response body
        reason_phrase: HTTP reason phrase
    """
    status_code: int
    headers: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""
    reason_phrase: str = ""


class Transport(ABC):
    """
    Abstract base class for transports.
    
    A transport performs exactly one blocking HTTP exchange per send() call.
    HTTP error statuses (4xx/5xx) are raised as TransportError with the
    response attached; network failures are raised as TransportError with
    status code 0 and no response.
    """

    @abstractmethod
    def send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        base_uri: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """
        Send a request upstream.
        
        Args:
            method: HTTP method
            url: URL relative to base_uri (or absolute when base_uri is None)
            headers: Request headers
            body: Form fields to send form-encoded
            json_body: Payload to send JSON-encoded
            base_uri: Base URI the url is relative to
            timeout: Timeout in seconds
            
        Returns:
            TransportResponse for a successful (non-error) status
            
        Raises:
            TransportError: On HTTP error statuses or network failures
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return the transport name/identifier."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass


def join_url(base_uri: Optional[str], url: str) -> str:
    """
    Join a base URI and a relative URL.
    
    Absolute URLs are returned unchanged.
    
    Example:
        >>> join_url("https://api.example.com/v1/", "/users")
        'https://api.example.com/v1/users'
    """
    if not base_uri or url.startswith(("http://", "https://")):
        return url
    if not url:
        return base_uri
    return f"{base_uri.rstrip('/')}/{url.lstrip('/')}"
