"""
Core data models for the HTTP relay.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .exceptions import ConfigurationError


HeaderValue = Union[str, List[str], None]


class Representation(str, Enum):
    """Representation a caller can request from a response envelope."""
    ORIGINAL = "original"
    JSON = "json"
    XML = "xml"
    HTML = "html"
    TEXT = "text"


# Methods that send `data` as a request body; all others send none.
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Keys every endpoint table entry must define.
ENDPOINT_REQUIRED_KEYS = (
    "name",
    "endpoint",
    "auth",
    "auth_type",
    "auth_user",
    "auth_pass",
    "proxy",
)


@dataclass
class RequestSpec:
    """
    A request to be executed by a connector.
    
    Attributes:
        method: HTTP method (GET, POST, etc.)
        url: URL relative to the connector's base URI
        data: Ordered request payload (form fields or JSON body)
        headers: Request headers; values may be scalars or lists
    """
    method: str
    url: str
    data: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, HeaderValue] = field(default_factory=dict)


@dataclass
class EndpointConfig:
    """
    Configuration of a named upstream endpoint used by the proxy.
    
    Attributes:
        name: Endpoint name used for lookups
        endpoint: Base URI of the upstream service
        auth: Whether the upstream requires authentication
        auth_type: Authentication scheme name (passed through, not computed)
        auth_user: Authentication user
        auth_pass: Authentication secret
        proxy: Whether calls to this endpoint are proxied
    """
    name: str
    endpoint: str
    auth: Any
    auth_type: Any
    auth_user: Any
    auth_pass: Any
    proxy: Any

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> "EndpointConfig":
        """
        Build an endpoint config, rejecting entries that miss a mandatory key.
        
        A key whose value is None counts as missing.
        
        Raises:
            ConfigurationError: If the entry is not a mapping or misses a key
        """
        if not isinstance(entry, Mapping):
            raise ConfigurationError(
                f"Endpoint ({entry!r}) is not defined correctly, expected a mapping"
            )
        for key in ENDPOINT_REQUIRED_KEYS:
            if entry.get(key) is None:
                raise ConfigurationError(
                    f"Endpoint ({entry.get('name', entry)}) is not defined correctly, "
                    f"the config key ({key}) is not defined"
                )
        return cls(**{key: entry[key] for key in ENDPOINT_REQUIRED_KEYS})


@dataclass
class InboundRequest:
    """
    The inbound web request a proxy call is made on behalf of.
    
    Header names are stored lower-cased. `fields` holds the merged query and
    form fields; `attributes` is a mutable bag for proxy metadata.
    
    Attributes:
        method: HTTP method of the inbound call
        path: Path of the inbound call
        headers: Inbound headers (values may be scalars or lists)
        fields: Query and form fields
        attributes: Mutable attribute bag for downstream observability
    """
    method: str = "GET"
    path: str = "/"
    headers: Dict[str, HeaderValue] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        """Get a query or form field value."""
        return self.fields.get(name, default)

    def all(self) -> Dict[str, Any]:
        """Return a copy of all query and form fields."""
        return dict(self.fields)
