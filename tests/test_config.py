"""Tests for configuration models and the JSON/env loader."""

import json

import pytest
from pydantic import ValidationError

from tether.config import AgentConfig, ProviderKind, config_path, load_config, save_config


class TestProviderKind:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("anthropic", ProviderKind.ANTHROPIC),
            ("OpenAI", ProviderKind.OPENAI),
            ("gpt", ProviderKind.OPENAI),
            ("Gemini", ProviderKind.GOOGLE),
            ("google", ProviderKind.GOOGLE),
            ("something-else", ProviderKind.ANTHROPIC),
            (None, ProviderKind.ANTHROPIC),
        ],
    )
    def test_parse(self, raw, expected):
        assert ProviderKind.parse(raw) is expected

    def test_metadata(self):
        assert ProviderKind.ANTHROPIC.default_model() == "claude-sonnet-4-20250514"
        assert ProviderKind.OPENAI.default_model() == "gpt-4o"
        assert ProviderKind.GOOGLE.api_key_env_var() == "GEMINI_API_KEY"
        assert "Claude" in ProviderKind.ANTHROPIC.display_name()

    def test_validate_api_key(self):
        assert ProviderKind.ANTHROPIC.validate_api_key("sk-ant-abc")
        assert not ProviderKind.ANTHROPIC.validate_api_key("sk-abc")
        assert ProviderKind.OPENAI.validate_api_key("sk-abc")
        assert not ProviderKind.GOOGLE.validate_api_key("short")
        assert not ProviderKind.OPENAI.validate_api_key("   ")


class TestAgentConfig:
    def test_defaults(self):
        c = AgentConfig()
        assert c.provider is ProviderKind.ANTHROPIC
        assert c.max_tokens == 16384
        assert c.max_tool_rounds == 25
        assert c.tool_timeout == 30.0
        assert c.retry.max_retries == 3
        assert not c.is_configured()

    def test_resolved_model(self):
        assert AgentConfig(provider="openai").resolved_model == "gpt-4o"
        assert AgentConfig(model="claude-opus-4").resolved_model == "claude-opus-4"

    def test_provider_alias_accepted(self):
        assert AgentConfig(provider="gemini").provider is ProviderKind.GOOGLE

    def test_blank_key_not_configured(self):
        assert not AgentConfig(api_key="   ").is_configured()
        assert AgentConfig(api_key="sk-ant-x").is_configured()

    def test_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            AgentConfig(max_tool_rounds=0)
        with pytest.raises(ValidationError):
            AgentConfig(temperature=5.0)


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        c = load_config(tmp_path / "nope.json", env={})
        assert c == AgentConfig()

    def test_reads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"provider": "openai", "api_key": "sk-1", "max_tokens": 2048}))
        c = load_config(path, env={})
        assert c.provider is ProviderKind.OPENAI
        assert c.api_key == "sk-1"
        assert c.max_tokens == 2048

    def test_malformed_file_logs_and_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        c = load_config(path, env={})
        assert c == AgentConfig()
        assert "Could not read config" in caplog.text

    def test_invalid_values_fall_back_to_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_tokens": -1}))
        assert load_config(path, env={}) == AgentConfig()
        assert "Invalid config" in caplog.text

    def test_env_overrides(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"provider": "anthropic", "api_key": "from-file"}))
        env = {"TETHER_PROVIDER": "gemini", "TETHER_MODEL": "gemini-2.5-pro", "TETHER_API_KEY": "from-env"}
        c = load_config(path, env=env)
        assert c.provider is ProviderKind.GOOGLE
        assert c.model == "gemini-2.5-pro"
        assert c.api_key == "from-env"

    def test_vendor_key_fills_empty_key(self, tmp_path):
        c = load_config(tmp_path / "none.json", env={"TETHER_PROVIDER": "openai", "OPENAI_API_KEY": "sk-vendor"})
        assert c.api_key == "sk-vendor"

    def test_vendor_key_does_not_override_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"api_key": "sk-ant-file"}))
        c = load_config(path, env={"ANTHROPIC_API_KEY": "sk-ant-env"})
        assert c.api_key == "sk-ant-file"

    def test_config_path_env(self, tmp_path):
        target = tmp_path / "custom.json"
        assert config_path({"TETHER_CONFIG": str(target)}) == target

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        original = AgentConfig(provider="openai", api_key="sk-x", temperature=0.7, max_tool_rounds=10)
        assert save_config(original, path) == path
        assert load_config(path, env={}) == original
