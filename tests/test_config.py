"""Tests for configuration loading, validation and saving."""

import json
import stat

import pytest

from nlcmd.config import AppConfig, ProviderConfig, load_config, save_config, validate_model_override
from nlcmd.exceptions import ConfigurationError, InvalidModelError


def write_config(path, data):
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_file_returns_none(self, tmp_path):
        """No file means setup is needed."""
        assert load_config(tmp_path / "absent") is None

    def test_empty_object_returns_none(self, tmp_path):
        """An empty JSON object also means setup is needed."""
        assert load_config(write_config(tmp_path / "cfg", {})) is None

    def test_valid_config(self, tmp_path):
        """camelCase keys from the file map onto the model."""
        path = write_config(tmp_path / "cfg", {
            "defaultModel": "openai/gpt-4o",
            "models": ["openai/gpt-4o", "ollama/llama3.2"],
            "scriptsDir": "~/my-scripts",
            "providers": {
                "openai": {"apiKey": "sk-test", "baseURL": "https://example.com/v1"},
                "ollama": {},
            },
        })

        config = load_config(path)

        assert config.default_model == "openai/gpt-4o"
        assert config.models == ["openai/gpt-4o", "ollama/llama3.2"]
        assert config.providers["openai"].api_key == "sk-test"
        assert config.providers["openai"].base_url == "https://example.com/v1"
        assert config.scripts_path.name == "my-scripts"
        assert "~" not in str(config.scripts_path)

    def test_scripts_dir_defaults(self, tmp_path):
        """scriptsDir is optional."""
        path = write_config(tmp_path / "cfg", {"defaultModel": "openai/gpt-4o", "models": ["openai/gpt-4o"]})
        assert load_config(path).scripts_dir

    def test_invalid_json(self, tmp_path):
        """Malformed JSON raises ConfigurationError."""
        path = write_config(tmp_path / "cfg", "{not json")
        with pytest.raises(ConfigurationError, match="invalid JSON"):
            load_config(path)

    def test_unknown_provider_is_reported(self, tmp_path):
        """Providers outside the supported list are rejected with an issue list."""
        path = write_config(tmp_path / "cfg", {
            "defaultModel": "acme/model",
            "models": ["acme/model"],
            "providers": {"acme": {"apiKey": "x"}},
        })

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert any("acme" in issue for issue in exc_info.value.issues)

    def test_missing_required_fields(self, tmp_path):
        """defaultModel and models are required."""
        path = write_config(tmp_path / "cfg", {"providers": {}})
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        locations = " ".join(exc_info.value.issues)
        assert "defaultModel" in locations
        assert "models" in locations

    def test_bad_base_url(self, tmp_path):
        """baseURL must be an http(s) URL."""
        path = write_config(tmp_path / "cfg", {
            "defaultModel": "openai/gpt-4o",
            "models": ["openai/gpt-4o"],
            "providers": {"openai": {"baseURL": "not-a-url"}},
        })
        with pytest.raises(ConfigurationError):
            load_config(path)


class TestSaveConfig:
    """Tests for save_config()."""

    def test_writes_aliases_and_restricts_permissions(self, tmp_path, config):
        """The saved file uses the camelCase keys and is owner-only."""
        path = save_config(config, tmp_path / "nested" / "cfg")

        data = json.loads(path.read_text())
        assert data["defaultModel"] == "openai/gpt-4o"
        assert data["providers"]["openai"] == {"apiKey": "sk-openai"}
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert load_config(path) == config


class TestModelLookup:
    """Tests for AppConfig provider lookups and overrides."""

    def test_api_key_and_base_url(self):
        config = AppConfig(
            default_model="groq/llama-3.1-8b-instant",
            models=["groq/llama-3.1-8b-instant"],
            providers={"groq": ProviderConfig(api_key="gk", base_url="https://proxy.local/v1")},
        )
        assert config.api_key_for("groq/llama-3.1-8b-instant") == "gk"
        assert config.base_url_for("groq/llama-3.1-8b-instant") == "https://proxy.local/v1"
        assert config.api_key_for("openai/gpt-4o") is None

    def test_override_accepts_configured_provider(self, config):
        assert validate_model_override("anthropic/claude-3-7-sonnet-20250219", config)

    def test_override_accepts_ollama_without_config(self, config):
        """ollama needs no provider entry."""
        assert validate_model_override("ollama/llama3.2", config) == "ollama/llama3.2"

    def test_override_rejects_bad_format(self, config):
        with pytest.raises(InvalidModelError, match="provider/modelName"):
            validate_model_override("gpt-4o", config)

    def test_override_rejects_unconfigured_provider(self, config):
        with pytest.raises(InvalidModelError, match="mistral"):
            validate_model_override("mistral/mistral-large-latest", config)
