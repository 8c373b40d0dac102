"""
Static transport for tests and dry runs.

Serves canned responses without any network access. Responses are looked up
by (method, path); the path is the URL with the base URI removed and any
query string dropped.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from ..core.exceptions import TransportError
from .base import Transport, TransportResponse


logger = logging.getLogger(__name__)


@dataclass
class SentRequest:
    """A request recorded by the StaticTransport."""
    method: str
    url: str
    base_uri: Optional[str]
    headers: Dict[str, Any]
    body: Optional[Dict[str, Any]]
    json_body: Optional[Any]
    timeout: Optional[float]


class StaticTransport(Transport):
    """
    Deterministic transport serving canned responses.
    
    Features:
    - Responses registered per (method, path)
    - 4xx/5xx responses raised as TransportError, like a real transport
    - Network failure simulation
    - Request history for assertions
    """

    def __init__(
        self,
        responses: Optional[Dict[Tuple[str, str], TransportResponse]] = None,
        fail_on_send: bool = False,
    ):
        """
        Initialize the static transport.
        
        Args:
            responses: Canned responses keyed by (method, path)
            fail_on_send: If True, every send raises a network TransportError
        """
        self.responses: Dict[Tuple[str, str], TransportResponse] = {}
        for (method, path), response in (responses or {}).items():
            self.responses[(method.upper(), path)] = response
        self.fail_on_send = fail_on_send
        self.request_history: List[SentRequest] = []

    def add_response(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        body: Union[bytes, str, Dict[str, Any], List[Any], None] = None,
        headers: Optional[Dict[str, List[str]]] = None,
        reason_phrase: str = "",
    ) -> TransportResponse:
        """
        Register a canned response.
        
        Dict and list bodies are JSON-encoded and get a JSON content type.
        """
        headers = dict(headers or {})
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode("utf-8")
            headers.setdefault("Content-Type", ["application/json"])
        elif isinstance(body, str):
            body = body.encode("utf-8")

        response = TransportResponse(
            status_code=status_code,
            headers=headers,
            body=body or b"",
            reason_phrase=reason_phrase,
        )
        self.responses[(method.upper(), path)] = response
        return response

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
        """Serve the canned response registered for the request."""
        self.request_history.append(SentRequest(
            method=method.upper(),
            url=url,
            base_uri=base_uri,
            headers=dict(headers or {}),
            body=body,
            json_body=json_body,
            timeout=timeout,
        ))

        if self.fail_on_send:
            raise TransportError(f"Simulated network failure for {url}", status_code=0)

        path = urlsplit(url).path or "/"
        response = self.responses.get((method.upper(), path))
        if response is None:
            logger.debug(f"No canned response for {method.upper()} {path}")
            response = TransportResponse(status_code=404, reason_phrase="Not Found")

        # Fresh copy so callers never share a response object
        response = TransportResponse(
            status_code=response.status_code,
            headers={name: list(values) for name, values in response.headers.items()},
            body=response.body,
            reason_phrase=response.reason_phrase,
        )

        if response.status_code >= 400:
            raise TransportError(
                f"HTTP error: {response.status_code} for url {url}",
                status_code=response.status_code,
                response=response,
            )
        return response

    def get_name(self) -> str:
        """Return transport name."""
        return "static"

    def reset(self) -> None:
        """Clear the request history."""
        self.request_history.clear()
