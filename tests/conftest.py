"""
Shared test fixtures and configuration for pytest.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


logger = logging.getLogger(__name__)


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require network access)")


# ============================================================================
# Fixtures
# ============================================================================

BASE_URI = "https://api.example.com"


@pytest.fixture
def base_uri() -> str:
    """Base URI used by connector fixtures."""
    return BASE_URI


@pytest.fixture
def static_transport():
    """Fixture providing a static transport with a few canned responses."""
    from httprelay.transport import StaticTransport
    
    transport = StaticTransport()
    transport.add_response("GET", "/users", 200, {"id": 1})
    transport.add_response("POST", "/users", 201, {"id": 2, "created": True})
    transport.add_response("GET", "/missing", 404, {"error": "not found"})
    transport.add_response("GET", "/broken", 500, "upstream exploded")
    transport.add_response(
        "GET", "/page", 200, "<html><body>ok</body></html>",
        headers={"Content-Type": ["text/html; charset=utf-8"]},
    )
    yield transport
    transport.reset()


@pytest.fixture
def failing_transport():
    """Fixture providing a transport that fails the test if it is ever used."""
    from httprelay.transport import Transport
    
    class FailingTransport(Transport):
        def send(self, method, url, headers=None, body=None, json_body=None,
                 base_uri=None, timeout=None):
            pytest.fail(f"Transport must not be called ({method} {url})")
        
        def get_name(self):
            return "failing"
    
    return FailingTransport()


@pytest.fixture
def memory_cache():
    """Fixture providing an in-memory cache store."""
    from httprelay.cache import InMemoryCacheStore
    
    store = InMemoryCacheStore()
    yield store
    store.clear()


@pytest.fixture
def connector(static_transport, memory_cache):
    """Fixture providing a connector on the static transport with caching."""
    from httprelay.connectors import HttpConnector
    
    connector = HttpConnector(
        base_uri=BASE_URI,
        transport=static_transport,
        cache_store=memory_cache,
    )
    yield connector
    connector.close()


@pytest.fixture
def endpoint_table():
    """Fixture providing a valid endpoint table."""
    return {
        "users": {
            "name": "users",
            "endpoint": "https://users.internal",
            "auth": False,
            "auth_type": "none",
            "auth_user": "",
            "auth_pass": "",
            "proxy": True,
        },
        "orders": {
            "name": "orders",
            "endpoint": "https://orders.internal",
            "auth": True,
            "auth_type": "basic",
            "auth_user": "svc",
            "auth_pass": "secret",
            "proxy": True,
        },
    }
