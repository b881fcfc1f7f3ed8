"""Tests for the config loader module."""

import pytest
import yaml

from responses_bridge.config_loader import (
    load_config,
    resolve_env_path,
    resolve_log_level,
    resolve_server_bind,
    substitute_env_vars,
)
from responses_bridge.core import ConfigurationError, build_upstream


def _write_config(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for loading configuration from YAML files."""

    def test_loads_simple_config(self, tmp_path):
        """Test loading a simple configuration."""
        config_path = _write_config(tmp_path / "config.yaml", {
            "upstream": {"base_url": "http://upstream.local/v1", "api_key": "test-key"},
        })

        result = load_config(str(config_path))

        assert result["upstream"]["base_url"] == "http://upstream.local/v1"
        assert result["upstream"]["api_key"] == "test-key"

    def test_raises_error_for_missing_config(self):
        """Test that error is raised for missing config file."""
        with pytest.raises(RuntimeError, match="Config file not found"):
            load_config("/nonexistent/path/config.yaml")

    def test_empty_file_gives_empty_config(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("", encoding="utf-8")

        assert load_config(str(config_path)) == {}

    def test_uses_path_from_environment(self, tmp_path, monkeypatch):
        config_path = _write_config(tmp_path / "config.yaml", {"bridge_settings": {"log_level": "DEBUG"}})
        monkeypatch.setenv("RESPONSES_BRIDGE_CONFIG", str(config_path))

        assert load_config()["bridge_settings"]["log_level"] == "DEBUG"

    def test_substitutes_environment_variables(self, tmp_path, monkeypatch):
        """Test that ${VAR} placeholders are substituted."""
        monkeypatch.setenv("TEST_ANTHROPIC_KEY", "my-secret-key")
        config_path = _write_config(tmp_path / "config.yaml", {
            "upstream": {"base_url": "http://upstream.local/v1", "api_key": "${TEST_ANTHROPIC_KEY}"},
        })

        result = load_config(str(config_path))

        assert result["upstream"]["api_key"] == "my-secret-key"

    def test_env_file_next_to_config_wins(self, tmp_path, monkeypatch):
        """Test that the paired .env file overrides the process environment."""
        monkeypatch.setenv("TEST_ANTHROPIC_KEY", "from-process")
        config_path = _write_config(tmp_path / "config_local.yaml", {
            "upstream": {"api_key": "${TEST_ANTHROPIC_KEY}"},
        })
        (tmp_path / ".env_local").write_text("TEST_ANTHROPIC_KEY=from-dotenv\n", encoding="utf-8")

        result = load_config(str(config_path))

        assert result["upstream"]["api_key"] == "from-dotenv"

    def test_substitution_can_be_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_ANTHROPIC_KEY", "secret")
        config_path = _write_config(tmp_path / "config.yaml", {"upstream": {"api_key": "${TEST_ANTHROPIC_KEY}"}})

        result = load_config(str(config_path), substitute_env=False)

        assert result["upstream"]["api_key"] == "${TEST_ANTHROPIC_KEY}"


class TestSubstituteEnvVars:
    """Tests for placeholder substitution."""

    def test_substitutes_nested_structures(self, monkeypatch):
        monkeypatch.setenv("BRIDGE_TEST_HOST", "example.com")

        result = substitute_env_vars({
            "a": ["http://${BRIDGE_TEST_HOST}/v1", 3],
            "b": {"c": "$BRIDGE_TEST_HOST"},
            "d": None,
        })

        assert result == {"a": ["http://example.com/v1", 3], "b": {"c": "example.com"}, "d": None}

    def test_unset_variable_keeps_placeholder(self, monkeypatch, caplog):
        monkeypatch.delenv("BRIDGE_TEST_MISSING", raising=False)

        with caplog.at_level("WARNING", logger="responses-bridge"):
            result = substitute_env_vars("${BRIDGE_TEST_MISSING}")

        assert result == "${BRIDGE_TEST_MISSING}"
        assert "BRIDGE_TEST_MISSING" in caplog.text

    def test_explicit_values_take_priority(self, monkeypatch):
        monkeypatch.setenv("BRIDGE_TEST_KEY", "process")

        assert substitute_env_vars("${BRIDGE_TEST_KEY}", {"BRIDGE_TEST_KEY": "explicit"}) == "explicit"


class TestResolvers:
    """Tests for server bind, log level and env file resolution."""

    def test_server_bind_defaults(self, monkeypatch):
        monkeypatch.delenv("RESPONSES_BRIDGE_HOST", raising=False)
        monkeypatch.delenv("RESPONSES_BRIDGE_PORT", raising=False)

        assert resolve_server_bind({}) == ("127.0.0.1", 8000)

    def test_server_bind_from_config(self, monkeypatch):
        monkeypatch.delenv("RESPONSES_BRIDGE_HOST", raising=False)
        monkeypatch.delenv("RESPONSES_BRIDGE_PORT", raising=False)
        config = {"bridge_settings": {"server": {"host": "0.0.0.0", "port": 9100}}}

        assert resolve_server_bind(config) == ("0.0.0.0", 9100)

    def test_environment_overrides_server_bind(self, monkeypatch):
        monkeypatch.setenv("RESPONSES_BRIDGE_HOST", "10.0.0.1")
        monkeypatch.setenv("RESPONSES_BRIDGE_PORT", "7000")
        config = {"bridge_settings": {"server": {"host": "0.0.0.0", "port": 9100}}}

        assert resolve_server_bind(config) == ("10.0.0.1", 7000)

    def test_invalid_port_falls_back(self, monkeypatch):
        monkeypatch.setenv("RESPONSES_BRIDGE_PORT", "not-a-port")

        assert resolve_server_bind({})[1] == 8000

    def test_log_level(self):
        assert resolve_log_level({}) == "INFO"
        assert resolve_log_level({"bridge_settings": {"log_level": "debug"}}) == "debug"

    def test_env_path_pairs_with_config_name(self, tmp_path):
        assert resolve_env_path(tmp_path / "config_default.yaml") == tmp_path / ".env_default"
        assert resolve_env_path(tmp_path / "bridge.yaml") == tmp_path / ".env"


class TestBuildUpstream:
    """Tests for building the upstream from config."""

    def test_builds_from_section(self):
        upstream = build_upstream({
            "upstream": {
                "base_url": "http://upstream.local/v1/",
                "api_key": "k",
                "anthropic_version": "2024-01-01",
                "timeout": "30",
                "default_model": "claude-test",
            },
        })

        assert upstream.messages_url == "http://upstream.local/v1/messages"
        assert upstream.api_key == "k"
        assert upstream.anthropic_version == "2024-01-01"
        assert upstream.timeout == 30.0
        assert upstream.default_model == "claude-test"

    def test_defaults(self):
        upstream = build_upstream({"upstream": {"base_url": "http://upstream.local/v1"}})

        assert upstream.api_key == ""
        assert upstream.anthropic_version == "2023-06-01"
        assert upstream.timeout == 600
        assert upstream.default_model is None

    def test_invalid_timeout_uses_default(self):
        upstream = build_upstream({"upstream": {"base_url": "http://u/v1", "timeout": "soon"}})

        assert upstream.timeout == 600

    @pytest.mark.parametrize("config", [{}, {"upstream": "nope"}, {"upstream": {"api_key": "k"}}])
    def test_missing_settings_raise(self, config):
        with pytest.raises(ConfigurationError):
            build_upstream(config)

    def test_headers(self):
        upstream = build_upstream({"upstream": {"base_url": "http://u/v1", "api_key": "secret"}})

        assert upstream.build_headers() == {
            "content-type": "application/json",
            "anthropic-version": "2023-06-01",
            "accept": "application/json",
            "x-api-key": "secret",
        }
        assert upstream.build_headers(stream=True)["accept"] == "text/event-stream"

    def test_headers_without_key(self):
        upstream = build_upstream({"upstream": {"base_url": "http://u/v1"}})

        assert "x-api-key" not in upstream.build_headers()
