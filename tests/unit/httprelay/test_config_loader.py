"""
Unit tests for the relay configuration loader.
"""

import pytest

from httprelay.cache import InMemoryCacheStore, SqliteCacheStore
from httprelay.config import ConnectorConfig, RelayConfig, build_cache_store
from httprelay.connectors import HttpConnector, ProxyConnector
from httprelay.core.exceptions import ConfigurationError
from httprelay.core.status_policy import PROXY_STATUS_CODES


CONFIG_YAML = """
connector:
  base_uri: https://api.example.com
  timeout_seconds: 5
  cache_ttl_seconds: 60
  valid_status_codes: [200, 404]
cache:
  type: memory
endpoints:
  - name: users
    endpoint: https://users.internal
    auth: false
    auth_type: none
    auth_user: ""
    auth_pass: ""
    proxy: true
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove relay environment overrides."""
    for name in (
        "HTTPRELAY_BASE_URI",
        "HTTPRELAY_TIMEOUT_SECONDS",
        "HTTPRELAY_CACHE_TTL_SECONDS",
        "HTTPRELAY_CACHE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    """Write a config file."""
    path = tmp_path / "relay.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestConnectorConfig:
    """Tests for ConnectorConfig."""
    
    def test_defaults(self):
        """Test default connector settings."""
        config = ConnectorConfig()
        
        assert config.base_uri is None
        assert config.timeout_seconds == 2.0
        assert config.cache_ttl_seconds == 3600
        assert config.valid_status_codes == [200, 201, 202, 204]
    
    def test_from_dict_rejects_empty_codes(self):
        """Test an empty allow-list in config is rejected."""
        with pytest.raises(ConfigurationError):
            ConnectorConfig.from_dict({"valid_status_codes": []})


class TestRelayConfig:
    """Tests for RelayConfig."""
    
    def test_default_config(self):
        """Test defaults without a file."""
        config = RelayConfig()
        
        assert config.get_connector_config().timeout_seconds == 2.0
        assert config.get_cache_config() == {"type": "memory"}
        assert config.get_endpoints() == {}
    
    def test_load_file(self, config_file):
        """Test loading values from YAML."""
        config = RelayConfig(config_file)
        connector = config.get_connector_config()
        
        assert connector.base_uri == "https://api.example.com"
        assert connector.timeout_seconds == 5.0
        assert connector.cache_ttl_seconds == 60
        assert connector.valid_status_codes == [200, 404]
        assert config.get("connector.timeout_seconds") == 5
        assert config.get("connector.missing", "x") == "x"
    
    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            RelayConfig(tmp_path / "absent.yaml")
    
    def test_non_mapping_file(self, tmp_path):
        """Test a YAML file without a mapping is rejected."""
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        
        with pytest.raises(ConfigurationError):
            RelayConfig(path)
    
    def test_env_overrides(self, config_file, monkeypatch, tmp_path):
        """Test environment variables override file values."""
        monkeypatch.setenv("HTTPRELAY_BASE_URI", "https://env.example.com")
        monkeypatch.setenv("HTTPRELAY_TIMEOUT_SECONDS", "7.5")
        monkeypatch.setenv("HTTPRELAY_CACHE_TTL_SECONDS", "30")
        monkeypatch.setenv("HTTPRELAY_CACHE_PATH", str(tmp_path / "cache.db"))
        
        config = RelayConfig(config_file)
        connector = config.get_connector_config()
        
        assert connector.base_uri == "https://env.example.com"
        assert connector.timeout_seconds == 7.5
        assert connector.cache_ttl_seconds == 30
        assert config.get_cache_config()["type"] == "sqlite"
    
    def test_endpoints_list(self, config_file):
        """Test a list of endpoints is keyed by name."""
        endpoints = RelayConfig(config_file).get_endpoints()
        
        assert list(endpoints) == ["users"]
        assert endpoints["users"]["endpoint"] == "https://users.internal"
    
    def test_endpoints_mapping(self, tmp_path):
        """Test a mapping of endpoints takes names from keys."""
        path = tmp_path / "relay.yaml"
        path.write_text(
            "endpoints:\n"
            "  orders:\n"
            "    endpoint: https://orders.internal\n",
            encoding="utf-8",
        )
        
        endpoints = RelayConfig(path).get_endpoints()
        
        assert endpoints["orders"]["name"] == "orders"
    
    def test_endpoint_without_name_rejected(self, tmp_path):
        """Test a listed endpoint without a name is rejected."""
        path = tmp_path / "relay.yaml"
        path.write_text("endpoints:\n  - endpoint: https://x\n", encoding="utf-8")
        
        with pytest.raises(ConfigurationError):
            RelayConfig(path).get_endpoints()


class TestBuilders:
    """Tests for building components from config."""
    
    def test_build_memory_cache(self):
        """Test the default cache is in memory."""
        assert isinstance(build_cache_store(RelayConfig()), InMemoryCacheStore)
    
    def test_build_sqlite_cache(self, monkeypatch, tmp_path):
        """Test the sqlite cache is built from the env path."""
        monkeypatch.setenv("HTTPRELAY_CACHE_PATH", str(tmp_path / "cache.db"))
        
        store = build_cache_store(RelayConfig())
        try:
            assert isinstance(store, SqliteCacheStore)
        finally:
            store.close()
    
    def test_build_no_cache(self, tmp_path):
        """Test caching can be disabled."""
        path = tmp_path / "relay.yaml"
        path.write_text("cache:\n  type: none\n", encoding="utf-8")
        
        assert build_cache_store(RelayConfig(path)) is None
    
    def test_build_unknown_cache(self, tmp_path):
        """Test an unknown cache type is rejected."""
        path = tmp_path / "relay.yaml"
        path.write_text("cache:\n  type: redis\n", encoding="utf-8")
        
        with pytest.raises(ConfigurationError):
            build_cache_store(RelayConfig(path))
    
    def test_connector_from_config(self, config_file):
        """Test a connector picks up the connector section."""
        connector = HttpConnector.from_config(RelayConfig(config_file).get_connector_config())
        
        assert connector.base_uri == "https://api.example.com"
        assert connector.timeout == 5.0
        assert connector.cache_ttl == 60
        assert connector.valid_status_codes == {200, 404}
    
    def test_proxy_from_config_keeps_listed_codes(self, config_file):
        """Test a proxy uses the configured allow-list when one is listed."""
        proxy = ProxyConnector.from_config(RelayConfig(config_file))
        
        assert proxy.executor.valid_status_codes == {200, 404}
        assert proxy.resolve_endpoint("users").endpoint == "https://users.internal"
    
    def test_proxy_from_config_defaults_to_proxy_codes(self, tmp_path):
        """Test a proxy without listed codes allows the proxy status codes."""
        path = tmp_path / "relay.yaml"
        path.write_text(
            "endpoints:\n"
            "  - {name: users, endpoint: 'https://u', auth: false, auth_type: none,"
            " auth_user: '', auth_pass: '', proxy: true}\n",
            encoding="utf-8",
        )
        
        proxy = ProxyConnector.from_config(RelayConfig(path))
        
        assert proxy.executor.valid_status_codes == PROXY_STATUS_CODES
        assert proxy.executor.is_proxy is True
