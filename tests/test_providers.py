"""Tests for provider resolution and chat client construction."""

import pytest

from nlcmd.exceptions import ConfigurationError, InvalidModelError
from nlcmd.providers import (
    PROVIDER_BASE_URLS,
    build_chat_model,
    resolve_api_key,
    split_model,
)


class TestSplitModel:
    """Tests for split_model()."""

    def test_simple(self):
        assert split_model("openai/gpt-4o") == ("openai", "gpt-4o")

    def test_keeps_nested_model_names(self):
        """Only the first slash separates the provider."""
        assert split_model("openrouter/anthropic/claude-3.5-sonnet") == (
            "openrouter",
            "anthropic/claude-3.5-sonnet",
        )

    @pytest.mark.parametrize("model", ["gpt-4o", "openai/", "/gpt-4o", ""])
    def test_malformed(self, model):
        with pytest.raises(InvalidModelError):
            split_model(model)


class TestResolveApiKey:
    """Tests for resolve_api_key()."""

    def test_configured_key_wins(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert resolve_api_key("openai", "from-config") == "from-config"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "from-env")
        assert resolve_api_key("groq", None) == "from-env"


class TestBuildChatModel:
    """Tests for build_chat_model()."""

    def test_uses_provider_endpoint(self):
        llm = build_chat_model("deepseek/deepseek-chat", api_key="dk")
        assert llm.model_name == "deepseek-chat"
        assert llm.openai_api_base == PROVIDER_BASE_URLS["deepseek"]
        assert llm.temperature == 0

    def test_custom_base_url(self):
        llm = build_chat_model("openai/gpt-4o", api_key="sk", base_url="https://proxy.local/v1")
        assert llm.openai_api_base == "https://proxy.local/v1"

    def test_missing_key(self, monkeypatch):
        """Hosted providers need a key from config or environment."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            build_chat_model("anthropic/claude-3-5-haiku-20241022")

    def test_ollama_needs_no_key(self, monkeypatch):
        monkeypatch.delenv("OLLAMA_API_KEY", raising=False)
        llm = build_chat_model("ollama/llama3.2")
        assert llm.openai_api_base == "http://localhost:11434/v1"

    def test_unknown_provider(self):
        with pytest.raises(InvalidModelError, match="Unsupported provider"):
            build_chat_model("acme/model", api_key="x")
