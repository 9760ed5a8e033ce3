#!/usr/bin/env python3
"""
Tests for configuration loading, error formatting, list options and prompts.
"""

import json

import pytest

from src.honeycomb.collections import apply_collection_options
from src.honeycomb.config import (
    DEFAULT_API_ENDPOINT,
    ConfigError,
    is_honeycomb_configured,
    load_cache_config,
    load_config,
    validate_honeycomb_config,
)
from src.honeycomb.error_enhancement import enhance_api_error, handle_tool_error, suggestions_for_status
from src.honeycomb.errors import HoneycombAPIError, ToolInputError
from src.honeycomb.prompts import instrumentation_guidance_prompt
from src.telemetry.config import _exporter_options, get_telemetry_status, is_telemetry_enabled


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("HONEYCOMB_API_KEY", raising=False)
    monkeypatch.delenv("HONEYCOMB_ENVIRONMENT", raising=False)
    monkeypatch.delenv("HONEYCOMB_API_ENDPOINT", raising=False)


class TestLoadConfig:
    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("HONEYCOMB_API_KEY", "env-key")
        monkeypatch.setenv("HONEYCOMB_ENVIRONMENT", "prod")
        monkeypatch.delenv("HONEYCOMB_API_ENDPOINT", raising=False)

        config = load_config()

        assert len(config.environments) == 1
        env = config.environments[0]
        assert env.name == "prod"
        assert env.api_key == "env-key"
        assert env.base_url == DEFAULT_API_ENDPOINT.rstrip("/")

    def test_config_file(self, tmp_path, no_api_key):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"environments": [
            {"name": "prod", "apiKey": "k1"},
            {"name": "dev", "apiKey": "k2", "baseUrl": "https://api.eu1.honeycomb.io/"},
        ]}))

        config = load_config(path)

        assert list(config.by_name()) == ["prod", "dev"]
        assert config.by_name()["dev"].base_url == "https://api.eu1.honeycomb.io"

    def test_duplicate_environment_names(self, tmp_path, no_api_key):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"environments": [
            {"name": "prod", "apiKey": "k1"},
            {"name": "prod", "apiKey": "k2"},
        ]}))
        with pytest.raises(ConfigError, match="Duplicate environment name"):
            load_config(path)

    def test_missing_file(self, tmp_path, no_api_key):
        with pytest.raises(ConfigError, match="Could not load config"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path, no_api_key):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(path)

    def test_missing_api_key_field(self, tmp_path, no_api_key):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"environments": [{"name": "prod"}]}))
        with pytest.raises(ConfigError, match="Invalid config format"):
            load_config(path)

    def test_validate_reports_missing_configuration(self, tmp_path, monkeypatch, no_api_key):
        monkeypatch.setenv("HONEYCOMB_CONFIG_PATH", str(tmp_path / "missing.json"))
        message = validate_honeycomb_config()
        assert message.startswith("Error: Honeycomb API not configured.")
        assert not is_honeycomb_configured()

    def test_configured_with_api_key(self, monkeypatch):
        monkeypatch.setenv("HONEYCOMB_API_KEY", "env-key")
        assert validate_honeycomb_config() is None
        assert is_honeycomb_configured()


class TestCacheConfig:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("HONEYCOMB_CACHE_ENABLED", "HONEYCOMB_CACHE_MAX_SIZE", "HONEYCOMB_CACHE_DEFAULT_TTL",
                     "HONEYCOMB_CACHE_DATASET_TTL", "HONEYCOMB_CACHE_AUTH_TTL"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        config = load_cache_config()
        assert config.enabled
        assert config.max_size == 1000
        assert config.ttl_for("dataset") == 900
        assert config.ttl_for("auth") == 3600
        assert config.ttl_for("unknown") == 300

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("HONEYCOMB_CACHE_ENABLED", "false")
        monkeypatch.setenv("HONEYCOMB_CACHE_MAX_SIZE", "50")
        monkeypatch.setenv("HONEYCOMB_CACHE_DATASET_TTL", "60")

        config = load_cache_config()

        assert not config.enabled
        assert config.max_size == 50
        assert config.ttl_for("dataset") == 60

    @pytest.mark.parametrize("value", ["soon", "0"])
    def test_invalid_ttl(self, monkeypatch, value):
        monkeypatch.setenv("HONEYCOMB_CACHE_AUTH_TTL", value)
        with pytest.raises(ConfigError, match="Invalid cache configuration"):
            load_cache_config()


class TestErrorEnhancement:
    def test_status_suggestions(self):
        assert suggestions_for_status(401)
        assert suggestions_for_status(503) == ["Honeycomb returned a server error; try again shortly"]
        assert suggestions_for_status(None) == []
        assert suggestions_for_status(418) == []

    def test_pattern_hints(self):
        hints = enhance_api_error('unknown column: "http.status"')
        assert any("'http.status'" in hint for hint in hints)
        assert enhance_api_error("everything is fine") == []

    def test_input_error_text(self):
        text = handle_tool_error(ToolInputError.missing("dataset"), "list_columns")
        assert text.startswith("Failed to execute tool 'list_columns': Missing required parameter: dataset\n")
        assert "Please verify:" in text

    def test_api_error_gets_status_suggestions(self):
        error = HoneycombAPIError("invalid API key", status_code=401)
        text = handle_tool_error(error, "list_datasets", environment="prod")
        assert text.startswith("Failed to execute tool 'list_datasets': Honeycomb API error (401): invalid API key")
        assert "Verify the API key configured for this environment is valid" in text

    def test_unexpected_error(self):
        text = handle_tool_error(RuntimeError(), "run_query")
        assert text.startswith("Failed to execute tool 'run_query': RuntimeError")


class TestCollectionOptions:
    ITEMS = [
        {"name": "checkout", "team": {"slug": "payments"}, "size": 3},
        {"name": "Auth", "team": {"slug": "identity"}, "size": None},
        {"name": "billing", "team": {"slug": "payments"}, "size": 10},
    ]

    def test_no_options_returns_items(self):
        assert apply_collection_options(self.ITEMS, ["name"]) is self.ITEMS

    def test_search_default_and_dotted_fields(self):
        page = apply_collection_options(self.ITEMS, ["name"], search="AUTH")
        assert [item["name"] for item in page["data"]] == ["Auth"]

        page = apply_collection_options(self.ITEMS, ["name"], search="pay", search_fields="team.slug")
        assert page["metadata"]["total"] == 2

    def test_sort_handles_none_and_case(self):
        page = apply_collection_options(self.ITEMS, ["name"], sort_by="name")
        assert [item["name"] for item in page["data"]] == ["Auth", "billing", "checkout"]

        page = apply_collection_options(self.ITEMS, ["name"], sort_by="size", sort_order="desc")
        assert [item["size"] for item in page["data"]] == [10, 3, None]

    def test_paging(self):
        page = apply_collection_options(self.ITEMS, ["name"], page=2, limit=2)
        assert [item["name"] for item in page["data"]] == ["billing"]
        assert page["metadata"] == {"total": 3, "page": 2, "pages": 2, "limit": 2}


class TestPrompts:
    def test_instrumentation_prompt(self):
        text = instrumentation_guidance_prompt("python", "app/handlers.py")
        assert text.startswith("I need help instrumenting python for app/handlers.py with OpenTelemetry")
        assert "OpenTelemetry instrumentation for Honeycomb" in text

    def test_instrumentation_prompt_defaults(self):
        assert instrumentation_guidance_prompt().startswith("I need help instrumenting your code with")


class TestTelemetryConfig:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_INSECURE",
                     "HONEYCOMB_OTEL_API_KEY", "HONEYCOMB_OTEL_DATASET"):
            monkeypatch.delenv(name, raising=False)

    def test_local_collector_by_default(self):
        assert _exporter_options() == ("http://localhost:4317", True, None)

    def test_direct_honeycomb_export(self, monkeypatch):
        monkeypatch.setenv("HONEYCOMB_OTEL_API_KEY", "ingest-key")
        monkeypatch.setenv("HONEYCOMB_OTEL_DATASET", "mcp-metrics")

        endpoint, insecure, headers = _exporter_options()

        assert endpoint == "api.honeycomb.io:443"
        assert insecure is False
        assert headers == {"x-honeycomb-team": "ingest-key", "x-honeycomb-dataset": "mcp-metrics"}

    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("OTEL_TELEMETRY_ENABLED", raising=False)
        assert not is_telemetry_enabled()
        assert get_telemetry_status()["enabled"] is False
