"""
HTTP connector executing requests with status validation and caching.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional, Union

from ...cache import CacheGateway, CacheStore
from ...cache.gateway import DEFAULT_CACHE_TTL
from ...config.config_loader import ConnectorConfig
from ...core.connector import Executor
from ...core.envelope import ResponseEnvelope
from ...core.exceptions import DecodingError, HttpExecutionError, TransportError
from ...core.logging import log_with_context
from ...core.models import BODY_METHODS, Representation
from ...core.status_policy import StatusPolicy
from ...transport import RequestsTransport, Transport, TransportResponse, join_url


logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def sanitize_headers(headers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Collapse single-element header value lists to their scalar value.

    Multi-element lists pass through unchanged.

    Example:
        >>> sanitize_headers({"x": ["v"], "y": ["v1", "v2"]})
        {'x': 'v', 'y': ['v1', 'v2']}
    """
    if not headers:
        return {}

    sanitized = {}
    for name, value in headers.items():
        if isinstance(value, (list, tuple)) and len(value) == 1:
            value = value[0]
        sanitized[name] = value
    return sanitized


def _header_value(headers: Dict[str, Any], name: str) -> Any:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for header, value in headers.items():
        if header.lower() == wanted:
            return value
    return None


class HttpConnector(Executor):
    """
    Connector executing requests against an upstream service.

    Each execute() call:
    1. Sanitizes the headers and strips the base URI from the URL
    2. Returns the cached envelope on a cache hit, without any transport call
    3. Otherwise sends the request (JSON body when content-type is exactly
       application/json, form fields otherwise, no body for GET and other
       bodiless methods)
    4. Caches the response the transport returned, whatever its status;
       upstream errors raised by the transport are only cached when allowed
    5. Classifies the outcome against the status allow-list; an upstream
       error whose status is allowed is a tolerated error and counts as
       success

    Fatal outcomes raise HttpExecutionError carrying the upstream status and
    the unaccepted envelope, if any.
    """

    def __init__(
        self,
        name: str = "http",
        base_uri: Optional[str] = None,
        transport: Optional[Transport] = None,
        cache_store: Optional[CacheStore] = None,
        valid_status_codes: Optional[Iterable[int]] = None,
        timeout: float = 2.0,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        logger: Optional[logging.Logger] = logger,
        is_proxy: bool = False,
    ):
        """
        Initialize the HTTP connector.

        Args:
            name: Connector name
            base_uri: Base URI requests are relative to
            transport: Transport to send requests with (requests by default)
            cache_store: Cache store; None disables caching
            valid_status_codes: Status allow-list (default 200, 201, 202, 204)
            timeout: Transport timeout in seconds
            cache_ttl: Time-to-live of cached responses in seconds
            logger: Logger to report to; None drops all messages
            is_proxy: Whether this connector forwards proxied calls
        """
        self.name = name
        self.base_uri = base_uri
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.logger = logger
        self.is_proxy = is_proxy
        self.transport = transport or RequestsTransport(timeout=timeout)
        self.cache = CacheGateway(cache_store)
        self.status_policy = StatusPolicy(valid_status_codes)

    @classmethod
    def from_config(
        cls,
        config: ConnectorConfig,
        cache_store: Optional[CacheStore] = None,
        transport: Optional[Transport] = None,
        name: str = "http",
        **kwargs: Any,
    ) -> "HttpConnector":
        """Build a connector from a ConnectorConfig."""
        if transport is None:
            transport = RequestsTransport(
                timeout=config.timeout_seconds,
                user_agent=config.user_agent,
            )
        return cls(
            name=name,
            base_uri=config.base_uri,
            transport=transport,
            cache_store=cache_store,
            valid_status_codes=config.valid_status_codes,
            timeout=config.timeout_seconds,
            cache_ttl=config.cache_ttl_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def valid_status_codes(self):
        return self.status_policy.valid_status_codes

    def set_valid_status_codes(self, codes: Iterable[int]) -> "HttpConnector":
        """
        Replace the status allow-list.

        Raises:
            ConfigurationError: If codes is empty
        """
        self.status_policy.set_valid_status_codes(codes)
        return self

    def set_base_uri(self, base_uri: Optional[str]) -> "HttpConnector":
        self.base_uri = base_uri
        return self

    def set_timeout(self, timeout: float) -> None:
        self.timeout = timeout

    def set_cache_ttl(self, cache_ttl: int) -> None:
        self.cache_ttl = cache_ttl

    def set_cache_store(self, cache_store: Optional[CacheStore]) -> None:
        self.cache = CacheGateway(cache_store)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(
        self,
        method: str,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        base_uri: Optional[str] = None,
    ) -> ResponseEnvelope:
        """
        Execute a request.

        Args:
            method: HTTP method
            url: URL relative to the base URI; a literal base URI prefix is
                stripped
            data: Request payload
            headers: Request headers (scalar or list values)
            base_uri: Base URI for this call only, overriding self.base_uri

        Returns:
            ResponseEnvelope of an accepted (or cached) response

        Raises:
            HttpExecutionError: If the status is not in the allow-list, or the
                transport failed without a recoverable response
        """
        method = method.upper()
        base_uri = base_uri if base_uri is not None else self.base_uri
        data = dict(data or {})
        headers = sanitize_headers(headers)

        # Prevent a doubled base URI when callers pass fully-qualified URLs
        if base_uri:
            url = url.replace(base_uri, "")

        cache_key = self.cache.fingerprint(method, join_url(base_uri, url), data, headers)

        cached = self.cache.try_get(cache_key)
        if cached is not None:
            self._log(
                logging.DEBUG,
                f"Cache hit for {method} {url} (status {cached.status_code})",
                status_code=cached.status_code,
                cache_hit=True,
            )
            return cached

        send_kwargs: Dict[str, Any] = {}
        if method in BODY_METHODS:
            if _header_value(headers, "content-type") == JSON_CONTENT_TYPE:
                send_kwargs["json_body"] = data
            else:
                send_kwargs["body"] = data

        self._log(
            logging.DEBUG,
            f"Start {self.name} request: method({method}), url({url}), base_uri({base_uri})",
        )

        response: Optional[TransportResponse] = None
        try:
            response = self.transport.send(
                method,
                url,
                headers=headers,
                base_uri=base_uri,
                timeout=self.timeout,
                **send_kwargs,
            )
            status_code = response.status_code
        except TransportError as e:
            status_code = e.status_code
            response = e.response
            if not self.status_policy.is_acceptable(status_code):
                envelope = self._to_envelope(response) if response is not None else None
                message = (
                    f"Transport exception {e} - {status_code}, expect only one of "
                    f"these ({self.status_policy.describe()})"
                )
                self._log(logging.ERROR, message, status_code=status_code)
                raise HttpExecutionError(
                    message,
                    status_code=status_code,
                    valid_status_codes=self.valid_status_codes,
                    envelope=envelope,
                ) from e
            self._log(
                logging.INFO,
                f"Tolerated upstream status {status_code} for {method} {url}",
                status_code=status_code,
            )

        if response is None:
            response = TransportResponse(status_code=status_code)
        envelope = self._to_envelope(response)
        self.cache.put(cache_key, envelope, self.cache_ttl)

        if not self.status_policy.is_acceptable(status_code):
            # The upstream answered with a status outside the allow-list, which
            # can be a configuration issue or a misbehaving upstream
            message = (
                f"HTTP exception, got a {status_code} status, expect only one of "
                f"these ({self.status_policy.describe()})"
            )
            self._log(logging.ERROR, message, status_code=status_code)
            raise HttpExecutionError(
                message,
                status_code=status_code,
                valid_status_codes=self.valid_status_codes,
                envelope=envelope,
            )

        return envelope

    def execute_request(self, request, base_uri: Optional[str] = None) -> ResponseEnvelope:
        """Execute a RequestSpec."""
        return self.execute(
            request.method,
            request.url,
            request.data,
            request.headers,
            base_uri=base_uri,
        )

    @staticmethod
    def _to_envelope(response: TransportResponse) -> ResponseEnvelope:
        return ResponseEnvelope(
            status_code=response.status_code,
            headers={name: list(values) for name, values in response.headers.items()},
            body=response.body or b"",
            reason_phrase=response.reason_phrase,
        )

    # ------------------------------------------------------------------
    # Representations
    # ------------------------------------------------------------------

    def get_response(
        self,
        envelope: Optional[ResponseEnvelope],
        representation: Union[Representation, str] = Representation.JSON,
    ) -> Any:
        """
        Read a representation from an envelope.

        `original` returns the envelope itself without reading the body;
        `json` decodes the body; `xml`, `html` and `text` return the body
        as a string. The body can only be read once per envelope.

        Returns:
            The representation, or None if there is no envelope, the body is
            empty, or decoding failed

        Raises:
            AlreadyConsumedError: If the envelope's body was read before
        """
        if envelope is None:
            return None

        try:
            representation = Representation(representation)
        except ValueError:
            self._log(
                logging.WARNING,
                f"Unknown representation {representation!r}, falling back to json",
            )
            representation = Representation.JSON

        if representation is Representation.ORIGINAL:
            return envelope if envelope.body else None

        body = envelope.read_body()
        if not body:
            return None

        try:
            text = self._decode_text(body, envelope.charset)
            if representation is Representation.JSON:
                return self._decode_json(text)
            return text
        except DecodingError as e:
            self._log(logging.DEBUG, f"Could not decode response body as {representation.value}: {e}")
            return None

    @staticmethod
    def _decode_text(body: bytes, charset: Optional[str]) -> str:
        try:
            return body.decode(charset or "utf-8")
        except (UnicodeDecodeError, LookupError) as e:
            raise DecodingError(f"Invalid body encoding: {e}") from e

    @staticmethod
    def _decode_json(text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError as e:
            raise DecodingError(f"Invalid JSON: {e}") from e

    # ------------------------------------------------------------------

    def _log(self, level: int, message: str, **extra: Any) -> None:
        log_with_context(self.logger, level, message, **extra)

    def get_name(self) -> str:
        """Return the connector name."""
        return self.name

    def close(self) -> None:
        """Close the transport. The cache store belongs to whoever created it."""
        self.transport.close()
