"""
HTTP transport built on requests.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests

from ..core.exceptions import TransportError
from .base import Transport, TransportResponse, join_url


logger = logging.getLogger(__name__)


def flatten_form(data: Mapping[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """
    Flatten a form payload into bracketed key/value pairs.

    Nested mappings and lists become `parent[child]` and `parent[0]` keys,
    booleans become "1"/"0" and None values are skipped.

    Example:
        >>> flatten_form({"user": {"name": "luke", "tags": ["a"]}, "ok": True})
        [('user[name]', 'luke'), ('user[tags][0]', 'a'), ('ok', '1')]
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            pairs.extend(flatten_form(value, name))
        elif isinstance(value, (list, tuple)):
            pairs.extend(flatten_form(dict(enumerate(value)), name))
        elif isinstance(value, bool):
            pairs.append((name, "1" if value else "0"))
        else:
            pairs.append((name, str(value)))
    return pairs


class RequestsTransport(Transport):
    """
    Transport that sends requests over a requests.Session.
    
    Supports:
    - Any HTTP method
    - Form-encoded and JSON bodies
    - Per-call timeout (default 2 seconds)
    """

    def __init__(
        self,
        timeout: float = 2.0,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the transport.
        
        Args:
            timeout: Default request timeout in seconds
            user_agent: User-Agent header sent when the caller sets none
            session: Session to use (a new one is created when omitted)
        """
        self.timeout = timeout
        self.user_agent = user_agent or "HttpRelay/1.0"
        self.session = session or requests.Session()

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
        Send the request and convert the outcome.
        
        Raises:
            TransportError: For 4xx/5xx statuses (response attached) and for
                connection errors and timeouts (status code 0)
        """
        full_url = join_url(base_uri, url)
        request_headers = self._prepare_headers(headers)

        kwargs: Dict[str, Any] = {
            "headers": request_headers,
            "timeout": timeout if timeout is not None else self.timeout,
        }
        if json_body is not None:
            kwargs["json"] = json_body
        elif body is not None:
            kwargs["data"] = flatten_form(body)

        try:
            response = self.session.request(method.upper(), full_url, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request {method.upper()} {full_url} failed: {e}")
            raise TransportError(f"Request failed: {e}", status_code=0) from e

        transport_response = TransportResponse(
            status_code=response.status_code,
            headers=self._collect_headers(response),
            body=response.content or b"",
            reason_phrase=response.reason or "",
        )

        if response.status_code >= 400:
            kind = "Client" if response.status_code < 500 else "Server"
            raise TransportError(
                f"{kind} error: {response.status_code} {response.reason} for url {full_url}",
                status_code=response.status_code,
                response=transport_response,
            )

        return transport_response

    def _prepare_headers(self, headers: Optional[Dict[str, Any]]) -> Dict[str, str]:
        """Flatten header values to strings, dropping None values."""
        prepared: Dict[str, str] = {}
        for name, value in (headers or {}).items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                values = [str(v) for v in value if v is not None]
                if not values:
                    continue
                prepared[name] = ", ".join(values)
            else:
                prepared[name] = str(value)

        if not any(name.lower() == "user-agent" for name in prepared):
            prepared["User-Agent"] = self.user_agent
        return prepared

    @staticmethod
    def _collect_headers(response: requests.Response) -> Dict[str, List[str]]:
        """Response headers as lists of values."""
        raw_headers = getattr(getattr(response, "raw", None), "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            return {name: raw_headers.getlist(name) for name in raw_headers.keys()}
        return {name: [value] for name, value in response.headers.items()}

    def get_name(self) -> str:
        """Return the transport name."""
        return "requests"

    def close(self) -> None:
        """Close the session."""
        if self.session:
            self.session.close()
