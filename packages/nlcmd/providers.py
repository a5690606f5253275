"""LLM provider registry.

Every supported provider exposes an OpenAI-compatible chat endpoint, so a
single ChatOpenAI client covers all of them; only the base URL and the
credential differ.
"""

import os

from langchain_openai import ChatOpenAI

from .exceptions import ConfigurationError, InvalidModelError

# Providers that run locally and need no API key
KEYLESS_PROVIDERS = {"ollama"}

PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com/v1/",
    "google": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "deepseek": "https://api.deepseek.com/v1",
    "groq": "https://api.groq.com/openai/v1",
    "mistral": "https://api.mistral.ai/v1",
    "xai": "https://api.x.ai/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "ollama": "http://localhost:11434/v1",
}

VALID_PROVIDERS = list(PROVIDER_BASE_URLS)

# Models offered during setup. Ollama models are entered by hand.
PROVIDER_MODELS = {
    "openai": ["gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-4.1-mini", "o3-mini"],
    "anthropic": [
        "claude-3-7-sonnet-20250219",
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
    ],
    "google": ["gemini-2.0-flash-001", "gemini-1.5-pro", "gemini-1.5-flash"],
    "deepseek": ["deepseek-chat"],
    "groq": ["llama-3.3-70b-versatile", "llama-3.1-8b-instant"],
    "mistral": ["mistral-large-latest", "mistral-small-latest"],
    "xai": ["grok-2-1212", "grok-beta"],
    "openrouter": ["anthropic/claude-3.5-sonnet", "openai/gpt-4o-mini"],
}


def split_model(model: str) -> tuple[str, str]:
    """Split 'provider/modelName' into its two halves.

    Only the first slash separates the provider, so OpenRouter style
    names such as 'openrouter/anthropic/claude-3.5-sonnet' stay intact.

    Raises:
        InvalidModelError: If either half is missing
    """
    provider, _, model_name = (model or "").partition("/")
    if not provider or not model_name:
        raise InvalidModelError(
            f'Model "{model}" does not follow the required format "provider/modelName".',
            model=model,
        )
    return provider, model_name


def api_key_env_var(provider: str) -> str:
    return f"{provider.upper()}_API_KEY"


def resolve_api_key(provider: str, configured: str | None) -> str | None:
    """Configured key first, then the <PROVIDER>_API_KEY environment variable."""
    return configured or os.getenv(api_key_env_var(provider))


def resolve_base_url(provider: str, configured: str | None) -> str | None:
    return configured or PROVIDER_BASE_URLS.get(provider)


def build_chat_model(
    model: str,
    api_key: str | None = None,
    base_url: str | None = None,
    temperature: float = 0,
) -> ChatOpenAI:
    """Create the LangChain chat client for a 'provider/modelName' identifier.

    Raises:
        InvalidModelError: If the identifier is malformed or the provider unknown
        ConfigurationError: If the provider needs an API key and none is available
    """
    provider, model_name = split_model(model)
    if provider not in PROVIDER_BASE_URLS and not base_url:
        raise InvalidModelError(f"Unsupported provider: {provider}", model=model)

    key = resolve_api_key(provider, api_key)
    if not key:
        if provider not in KEYLESS_PROVIDERS:
            raise ConfigurationError(
                f"API key for {provider} not found. Add providers.{provider}.apiKey "
                f"to your config or set {api_key_env_var(provider)}."
            )
        # Local servers ignore the key but the client insists on one
        key = "not-needed"

    return ChatOpenAI(
        model=model_name,
        openai_api_key=key,
        openai_api_base=resolve_base_url(provider, base_url),
        temperature=temperature,
    )
