"""
Unit tests for ProxyConnector.
"""

from types import MappingProxyType

import pytest

from httprelay.cache import InMemoryCacheStore
from httprelay.connectors import HttpConnector, ProxyConnector
from httprelay.connectors.proxy import REQUEST_IDENTIFIER, SESSION_IDENTIFIER
from httprelay.core.exceptions import (
    ConfigurationError,
    HttpExecutionError,
    NotFoundError,
)
from httprelay.core.models import EndpointConfig, InboundRequest, Representation
from httprelay.core.status_policy import PROXY_STATUS_CODES
from httprelay.transport import StaticTransport


@pytest.fixture
def transport():
    """Create a static transport with upstream responses."""
    transport = StaticTransport()
    transport.add_response("GET", "/users/1", 200, {"id": 1, "name": "Luke"})
    transport.add_response("POST", "/orders", 201, {"order": 9})
    transport.add_response("GET", "/forbidden", 403, {"error": "forbidden"})
    transport.add_response("GET", "/broken", 500, "boom")
    transport.add_response(
        "GET", "/feed", 200, "<feed/>",
        headers={"Content-Type": ["application/xml"]},
    )
    return transport


@pytest.fixture
def proxy(transport, endpoint_table):
    """Create a proxy on the static transport."""
    executor = HttpConnector(
        name="proxy",
        transport=transport,
        cache_store=InMemoryCacheStore(),
        valid_status_codes=PROXY_STATUS_CODES,
        is_proxy=True,
    )
    return ProxyConnector(executor=executor, endpoints=endpoint_table)


@pytest.fixture
def inbound():
    """Create an inbound request with correlation fields and a host header."""
    return InboundRequest(
        method="GET",
        path="/api/users/1",
        headers={"Host": ["gateway.example.com"], "Accept": ["application/json"]},
        fields={REQUEST_IDENTIFIER: "req-123", SESSION_IDENTIFIER: "sess-456"},
    )


class TestEndpointTable:
    """Tests for endpoint table handling."""
    
    def test_set_endpoints_mapping(self, endpoint_table):
        """Test a mapping table is accepted and keyed by name."""
        proxy = ProxyConnector(executor=HttpConnector(transport=StaticTransport()))
        
        table = proxy.set_endpoints(endpoint_table)
        
        assert set(table) == {"users", "orders"}
        assert isinstance(table["users"], EndpointConfig)
        assert table["orders"].auth_type == "basic"
    
    def test_set_endpoints_list(self, endpoint_table):
        """Test a list table is keyed by entry name."""
        proxy = ProxyConnector(executor=HttpConnector(transport=StaticTransport()))
        
        proxy.set_endpoints(list(endpoint_table.values()))
        
        assert proxy.resolve_endpoint("orders").endpoint == "https://orders.internal"
    
    def test_set_endpoints_read_only_mappings(self, endpoint_table):
        """Test read-only mapping entries are accepted."""
        proxy = ProxyConnector(executor=HttpConnector(transport=StaticTransport()))
        
        proxy.set_endpoints(
            MappingProxyType({name: MappingProxyType(entry) for name, entry in endpoint_table.items()})
        )
        
        assert proxy.resolve_endpoint("users").endpoint == "https://users.internal"
    
    @pytest.mark.parametrize("empty", [{}, []])
    def test_empty_table_rejected(self, proxy, empty):
        """Test an empty table always fails, even after a valid one."""
        with pytest.raises(ConfigurationError):
            proxy.set_endpoints(empty)
        
        assert proxy.resolve_endpoint("users").name == "users"
    
    @pytest.mark.parametrize("missing", [
        "name", "endpoint", "auth", "auth_type", "auth_user", "auth_pass", "proxy",
    ])
    def test_entry_missing_key_rejected(self, endpoint_table, missing):
        """Test every mandatory key is enforced at load time."""
        del endpoint_table["users"][missing]
        proxy = ProxyConnector(executor=HttpConnector(transport=StaticTransport()))
        
        with pytest.raises(ConfigurationError) as exc_info:
            proxy.set_endpoints(endpoint_table)
        
        assert missing in str(exc_info.value)
    
    def test_entry_with_none_value_rejected(self, endpoint_table):
        """Test a None value counts as a missing key."""
        endpoint_table["users"]["auth_pass"] = None
        
        with pytest.raises(ConfigurationError):
            ProxyConnector(
                executor=HttpConnector(transport=StaticTransport()),
                endpoints=endpoint_table,
            )
    
    def test_resolve_unknown_endpoint(self, proxy):
        """Test an unknown name raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            proxy.resolve_endpoint("inventory")
        
        assert exc_info.value.endpoint == "inventory"
    
    def test_resolve_none(self, proxy):
        """Test a missing name raises NotFoundError."""
        with pytest.raises(NotFoundError):
            proxy.resolve_endpoint(None)
    
    def test_resolve_without_table(self):
        """Test resolving before the table is populated is a configuration error."""
        proxy = ProxyConnector(executor=HttpConnector(transport=StaticTransport()))
        
        with pytest.raises(ConfigurationError) as exc_info:
            proxy.resolve_endpoint("users")
        
        assert not isinstance(exc_info.value, NotFoundError)
    
    def test_default_executor_uses_proxy_codes(self):
        """Test the default executor allows the proxy status codes."""
        proxy = ProxyConnector()
        
        assert proxy.executor.valid_status_codes == PROXY_STATUS_CODES
        assert proxy.executor.is_proxy is True


class TestRedirect:
    """Tests for ProxyConnector.redirect."""
    
    def test_redirect_forwards_request(self, proxy, transport, inbound):
        """Test redirect forwards method, path and headers to the endpoint."""
        result = proxy.redirect(inbound, "users", "/users/1")
        
        assert result == {"id": 1, "name": "Luke"}
        
        sent = transport.request_history[0]
        assert sent.method == "GET"
        assert sent.url == "/users/1"
        assert sent.base_uri == "https://users.internal"
        assert "host" not in sent.headers
        assert sent.headers["accept"] == "application/json"
        assert sent.headers[REQUEST_IDENTIFIER] == "req-123"
        assert sent.headers[SESSION_IDENTIFIER] == "sess-456"
    
    def test_redirect_records_proxy_metadata(self, proxy, inbound):
        """Test proxy metadata is added to the inbound attribute bag."""
        proxy.redirect(inbound, "users", "/users/1", "json")
        
        assert inbound.attributes["proxy"] == {
            "host": "https://users.internal",
            "path": "/users/1",
            "response_type": "json",
        }
    
    def test_redirect_forwards_inbound_fields(self, proxy, transport):
        """Test the inbound fields become the request body."""
        inbound = InboundRequest(
            method="POST",
            path="/api/orders",
            fields={"sku": "X-1", REQUEST_IDENTIFIER: "r1"},
        )
        
        result = proxy.redirect(inbound, "orders", "/orders")
        
        assert result == {"order": 9}
        sent = transport.request_history[0]
        assert sent.method == "POST"
        assert sent.body == {"sku": "X-1", REQUEST_IDENTIFIER: "r1"}
        assert sent.headers[SESSION_IDENTIFIER] is None
    
    def test_redirect_passes_through_tolerated_error(self, proxy, inbound):
        """Test an upstream 403 is returned to the caller, not raised."""
        result = proxy.redirect(inbound, "users", "/forbidden")
        
        assert result == {"error": "forbidden"}
    
    def test_redirect_server_error_raises(self, proxy, inbound):
        """Test an upstream 500 is fatal for the proxy."""
        with pytest.raises(HttpExecutionError) as exc_info:
            proxy.redirect(inbound, "users", "/broken")
        
        assert exc_info.value.status_code == 500
    
    def test_redirect_xml_representation(self, proxy, inbound):
        """Test a string representation is returned as text."""
        assert proxy.redirect(inbound, "users", "/feed", Representation.XML) == "<feed/>"
    
    def test_redirect_unknown_endpoint(self, proxy, transport, inbound):
        """Test an unknown endpoint fails before any transport call."""
        with pytest.raises(NotFoundError):
            proxy.redirect(inbound, "inventory", "/items")
        
        assert transport.request_history == []


class TestCall:
    """Tests for ProxyConnector.call."""
    
    def test_call_unknown_endpoint_makes_no_transport_call(self, failing_transport, endpoint_table, inbound):
        """Test call() to an unknown endpoint raises NotFoundError without dispatching."""
        proxy = ProxyConnector(
            executor=HttpConnector(transport=failing_transport),
            endpoints=endpoint_table,
        )
        
        with pytest.raises(NotFoundError):
            proxy.call(inbound, "GET", "inventory", "/items")
    
    def test_call_json_forces_content_type(self, proxy, transport, inbound):
        """Test the json representation sends a JSON body."""
        result = proxy.call(inbound, "POST", "orders", "/orders", {"sku": "X-1"})
        
        assert result == {"order": 9}
        sent = transport.request_history[0]
        assert sent.headers["content-type"] == "application/json"
        assert sent.json_body == {"sku": "X-1"}
        assert sent.base_uri == "https://orders.internal"
    
    def test_call_text_keeps_form_encoding(self, proxy, transport, inbound):
        """Test a non-json representation leaves the content type alone."""
        proxy.call(inbound, "POST", "orders", "/orders", {"sku": "X-1"}, representation="text")
        
        sent = transport.request_history[0]
        assert "content-type" not in sent.headers
        assert sent.body == {"sku": "X-1"}
    
    def test_call_caller_headers_take_precedence(self, proxy, transport, inbound):
        """Test caller headers override inbound headers with the same name."""
        proxy.call(
            inbound, "GET", "users", "/users/1",
            headers={"Accept": "text/plain", "X-Extra": "1"},
        )
        
        sent = transport.request_history[0]
        assert sent.headers["accept"] == "text/plain"
        assert sent.headers["x-extra"] == "1"
        assert "host" not in sent.headers
        assert sent.headers[REQUEST_IDENTIFIER] == "req-123"
    
    def test_call_caller_cannot_set_host(self, proxy, transport, inbound):
        """Test a host header is dropped even when supplied by the caller."""
        proxy.call(inbound, "GET", "users", "/users/1", headers={"Host": "evil"})
        
        assert "host" not in transport.request_history[0].headers
    
    def test_call_without_inbound_request(self, proxy, transport):
        """Test call works without an inbound request."""
        result = proxy.call(None, "GET", "users", "/users/1")
        
        assert result == {"id": 1, "name": "Luke"}
        assert transport.request_history[0].headers[REQUEST_IDENTIFIER] is None
    
    def test_calls_to_different_endpoints_do_not_share_base_uri(self, proxy, transport, inbound):
        """Test each call uses its own endpoint base URI."""
        proxy.call(inbound, "GET", "users", "/users/1")
        proxy.call(inbound, "POST", "orders", "/orders", {"sku": "X"})
        
        assert [r.base_uri for r in transport.request_history] == [
            "https://users.internal",
            "https://orders.internal",
        ]
        assert proxy.executor.base_uri is None
    
    def test_repeat_call_served_from_cache(self, proxy, transport, inbound):
        """Test an identical proxied call is a cache hit."""
        proxy.call(inbound, "GET", "users", "/users/1")
        result = proxy.call(inbound, "GET", "users", "/users/1")
        
        assert result == {"id": 1, "name": "Luke"}
        assert len(transport.request_history) == 1
