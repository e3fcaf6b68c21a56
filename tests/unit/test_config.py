"""Tests for geosearch configuration loading."""

import yaml

from geosearch.config import (
    DEVELOPMENT_BASE_URL,
    PRODUCTION_BASE_URL,
    GatewayConfig,
    GeoSearchConfig,
)


class TestGatewayConfig:
    """Test base URL resolution."""

    def test_development_default(self):
        assert GatewayConfig().resolve_base_url() == DEVELOPMENT_BASE_URL

    def test_production_default(self):
        config = GatewayConfig(environment="production")
        assert config.resolve_base_url() == PRODUCTION_BASE_URL

    def test_explicit_url_wins(self, monkeypatch):
        """Should prefer an explicit URL over the environment variable."""
        monkeypatch.setenv("GEOSEARCH_API", "http://env.example/api/v1")
        config = GatewayConfig(
            base_url="http://explicit.example/api/v1/",
            base_url_env="GEOSEARCH_API",
        )
        assert config.resolve_base_url() == "http://explicit.example/api/v1"

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv("GEOSEARCH_API", "http://env.example/api/v1")
        config = GatewayConfig(base_url_env="GEOSEARCH_API", environment="production")
        assert config.resolve_base_url() == "http://env.example/api/v1"

    def test_env_var_unset_falls_back(self, monkeypatch):
        monkeypatch.delenv("GEOSEARCH_API", raising=False)
        config = GatewayConfig(base_url_env="GEOSEARCH_API", environment="production")
        assert config.resolve_base_url() == PRODUCTION_BASE_URL


class TestGeoSearchConfig:
    """Test composite config loading."""

    def test_defaults(self):
        """Should carry the standard timings."""
        config = GeoSearchConfig()
        assert config.autocomplete.debounce_ms == 300
        assert config.autocomplete.debounce_seconds == 0.3
        assert config.autocomplete.min_query_length == 2
        assert config.autocomplete.blur_grace_ms == 200
        assert config.map.half_width_degrees == 0.045
        assert config.text.page_size == 20
        assert config.gateway.timeout_seconds is None
        assert config.submissions.user_id == "anonymous"
        assert config.submissions.session_id

    def test_from_dict(self):
        config = GeoSearchConfig.from_dict(
            {
                "gateway": {"environment": "production", "timeout_seconds": 5},
                "autocomplete": {"debounce_ms": 150},
                "map": {"half_width_degrees": 0.1},
                "submissions": {"user_id": "user-9", "session_id": "abc"},
            }
        )
        assert config.gateway.environment == "production"
        assert config.gateway.timeout_seconds == 5
        assert config.autocomplete.debounce_ms == 150
        assert config.autocomplete.blur_grace_ms == 200
        assert config.map.half_width_degrees == 0.1
        assert config.text.page_size == 20
        assert config.submissions.user_id == "user-9"
        assert config.submissions.session_id == "abc"

    def test_missing_file_gives_defaults(self, tmp_path):
        config = GeoSearchConfig.from_yaml(tmp_path / "missing.yaml")
        assert config.gateway.resolve_base_url() == DEVELOPMENT_BASE_URL

    def test_yaml_round_trip(self, tmp_path):
        """Should load back what to_dict wrote under the geosearch key."""
        original = GeoSearchConfig.from_dict(
            {
                "gateway": {"base_url": "http://127.0.0.1:3001/api/v1"},
                "text": {"page_size": 50},
                "submissions": {"session_id": "fixed"},
            }
        )
        path = tmp_path / "geosearch.yaml"
        path.write_text(yaml.safe_dump({"geosearch": original.to_dict()}))

        loaded = GeoSearchConfig.from_yaml(path)

        assert loaded.to_dict() == original.to_dict()

    def test_empty_section(self, tmp_path):
        """Should tolerate an empty geosearch section."""
        path = tmp_path / "geosearch.yaml"
        path.write_text("geosearch:\n")
        config = GeoSearchConfig.from_yaml(path)
        assert config.text.page_size == 20
