"""
Proxy connector forwarding inbound requests to named upstream endpoints.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from ...cache import CacheStore
from ...config.config_loader import RelayConfig
from ...core.connector import Executor
from ...core.exceptions import ConfigurationError, NotFoundError
from ...core.logging import CorrelationContext, log_with_context
from ...core.models import EndpointConfig, InboundRequest, Representation
from ...core.status_policy import PROXY_STATUS_CODES
from ...transport import Transport
from ..http.http_connector import HttpConnector


logger = logging.getLogger(__name__)

REQUEST_IDENTIFIER = "bizhost-request-identifier"
SESSION_IDENTIFIER = "bizhost-session-identifier"

EndpointEntry = Union[EndpointConfig, Mapping[str, Any]]


class ProxyConnector:
    """
    Forwards inbound requests to upstream endpoints resolved by name.

    The proxy does not hold a base URI of its own: each call resolves the
    endpoint and hands its base URI to the executor for that call only, so
    one proxy can serve concurrent requests to different endpoints.

    Per call the proxy:
    - Records proxy metadata on the inbound request's attribute bag
    - Drops the inbound `host` header
    - Injects the request and session correlation headers taken from the
      inbound request's fields
    - Returns the upstream body in the requested representation
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        endpoints: Optional[Union[Mapping[str, EndpointEntry], Iterable[EndpointEntry]]] = None,
        logger: Optional[logging.Logger] = logger,
    ):
        """
        Initialize the proxy connector.

        Args:
            executor: Executor to forward with; by default an HttpConnector
                allowing the proxy status codes (2xx plus pass-through 4xx/501)
            endpoints: Endpoint table (see set_endpoints)
            logger: Logger to report to; None drops all messages
        """
        if executor is None:
            executor = HttpConnector(
                name="proxy",
                valid_status_codes=PROXY_STATUS_CODES,
                is_proxy=True,
            )
        self.executor = executor
        self.logger = logger
        self._endpoints: Optional[Dict[str, EndpointConfig]] = None

        if endpoints is not None:
            self.set_endpoints(endpoints)

    @classmethod
    def from_config(
        cls,
        config: RelayConfig,
        cache_store: Optional[CacheStore] = None,
        transport: Optional[Transport] = None,
    ) -> "ProxyConnector":
        """
        Build a proxy from a RelayConfig.

        The allow-list defaults to the proxy status codes unless the config
        lists its own.
        """
        connector_config = config.get_connector_config()
        if "valid_status_codes" not in (config.config.get("connector") or {}):
            connector_config.valid_status_codes = sorted(PROXY_STATUS_CODES)

        executor = HttpConnector.from_config(
            connector_config,
            cache_store=cache_store,
            transport=transport,
            name="proxy",
            is_proxy=True,
        )
        return cls(executor=executor, endpoints=config.get_endpoints())

    # ------------------------------------------------------------------
    # Endpoint table
    # ------------------------------------------------------------------

    def set_endpoints(
        self,
        endpoints: Union[Mapping[str, EndpointEntry], Iterable[EndpointEntry]],
    ) -> Dict[str, EndpointConfig]:
        """
        Replace the endpoint table.

        Accepts a mapping of name to entry, or a list of entries keyed by
        their `name`. Every entry must define name, endpoint, auth,
        auth_type, auth_user, auth_pass and proxy.

        Raises:
            ConfigurationError: If the table is empty or an entry is malformed
        """
        if not endpoints:
            raise ConfigurationError("Endpoints variable is empty.")

        if isinstance(endpoints, Mapping):
            items = list(endpoints.items())
        else:
            items = [(None, entry) for entry in endpoints]

        table: Dict[str, EndpointConfig] = {}
        for key, entry in items:
            if not isinstance(entry, EndpointConfig):
                entry = EndpointConfig.from_dict(entry)
            table[key if key is not None else entry.name] = entry

        self._endpoints = table
        self._log(logging.DEBUG, f"Loaded {len(table)} proxy endpoints")
        return table

    @property
    def endpoints(self) -> Dict[str, EndpointConfig]:
        return dict(self._endpoints or {})

    def resolve_endpoint(self, name: Optional[str]) -> EndpointConfig:
        """
        Look up an endpoint by name.

        Raises:
            ConfigurationError: If the endpoint table was never populated
            NotFoundError: If the name is missing from the table
        """
        if not self._endpoints:
            raise ConfigurationError(
                "There are no endpoint configurations set, please define the endpoints first."
            )
        if name is None:
            raise NotFoundError("Endpoint is null", endpoint=name)
        if name not in self._endpoints:
            raise NotFoundError(
                f"Endpoint ({name}) is not defined in the config.", endpoint=name
            )
        return self._endpoints[name]

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    def redirect(
        self,
        request: InboundRequest,
        endpoint: str,
        path: str,
        representation: Union[Representation, str] = Representation.JSON,
    ) -> Any:
        """
        Forward the inbound request to an endpoint.

        Method, fields and headers come from the inbound request.

        Args:
            request: The inbound request
            endpoint: Endpoint name
            path: Path on the upstream endpoint
            representation: Representation to return

        Returns:
            The upstream body in the requested representation

        Raises:
            NotFoundError: If the endpoint is unknown
            HttpExecutionError: If the upstream outcome is fatal
        """
        config = self.resolve_endpoint(endpoint)
        self._record_proxy(request, config, path, representation)

        headers = dict(request.headers)
        headers.pop("host", None)
        self._inject_correlation_headers(request, headers)

        return self._forward(
            request, config, request.method, path, request.all(), headers, representation
        )

    def call(
        self,
        request: Optional[InboundRequest],
        method: str,
        endpoint: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        representation: Union[Representation, str] = Representation.JSON,
    ) -> Any:
        """
        Call an endpoint on behalf of the inbound request.

        Method, path and payload are given by the caller. Caller headers are
        merged over the inbound headers; the json representation forces a
        JSON request body.

        Returns:
            The upstream body in the requested representation

        Raises:
            NotFoundError: If the endpoint is unknown
            HttpExecutionError: If the upstream outcome is fatal
        """
        request = request if request is not None else InboundRequest()
        config = self.resolve_endpoint(endpoint)
        self._record_proxy(request, config, path, representation)

        merged = dict(request.headers)
        merged.update({name.lower(): value for name, value in (headers or {}).items()})
        merged.pop("host", None)

        if _representation_name(representation) == Representation.JSON.value:
            merged["content-type"] = "application/json"
        self._inject_correlation_headers(request, merged)

        return self._forward(request, config, method, path, data or {}, merged, representation)

    def _forward(
        self,
        request: InboundRequest,
        config: EndpointConfig,
        method: str,
        path: str,
        data: Dict[str, Any],
        headers: Dict[str, Any],
        representation: Union[Representation, str],
    ) -> Any:
        with CorrelationContext(
            request_identifier=request.get(REQUEST_IDENTIFIER),
            session_identifier=request.get(SESSION_IDENTIFIER),
            endpoint=config.name,
        ):
            self._log(
                logging.DEBUG,
                f"Forwarding {method.upper()} {path} to {config.endpoint}",
            )
            envelope = self.executor.execute(
                method, path, data, headers, base_uri=config.endpoint
            )
            return self.executor.get_response(envelope, representation)

    @staticmethod
    def _record_proxy(
        request: InboundRequest,
        config: EndpointConfig,
        path: str,
        representation: Union[Representation, str],
    ) -> None:
        request.attributes["proxy"] = {
            "host": config.endpoint,
            "path": path,
            "response_type": _representation_name(representation),
        }

    @staticmethod
    def _inject_correlation_headers(request: InboundRequest, headers: Dict[str, Any]) -> None:
        headers[REQUEST_IDENTIFIER] = [request.get(REQUEST_IDENTIFIER)]
        headers[SESSION_IDENTIFIER] = [request.get(SESSION_IDENTIFIER)]

    def _log(self, level: int, message: str) -> None:
        log_with_context(self.logger, level, message)

    def close(self) -> None:
        self.executor.close()


def _representation_name(representation: Union[Representation, str]) -> str:
    if isinstance(representation, Representation):
        return representation.value
    return str(representation)
