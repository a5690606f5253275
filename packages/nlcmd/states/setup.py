"""SETUP: create or modify the configuration file interactively."""

import logging

from questionary import Choice

from .. import display
from ..config import DEFAULT_SCRIPTS_DIR, AppConfig, ProviderConfig
from ..context import Context, State, Transition
from ..exceptions import ConfigurationError, PromptCancelled
from ..machine import Services
from ..providers import KEYLESS_PROVIDERS, PROVIDER_BASE_URLS, PROVIDER_MODELS, api_key_env_var

logger = logging.getLogger(__name__)

OLLAMA = "ollama"


def setup_choices(current: AppConfig | None) -> list[Choice]:
    """Checkbox entries for every known model plus a single entry for ollama."""
    selected = set(current.models) if current else set()
    has_ollama = any(model.startswith(f"{OLLAMA}/") for model in selected)

    choices = []
    for provider, models in PROVIDER_MODELS.items():
        for model in models:
            value = f"{provider}/{model}"
            choices.append(Choice(value, value=value, checked=value in selected))
    choices.append(Choice(OLLAMA, value=OLLAMA, checked=has_ollama))
    return choices


def _ask_ollama_models(services: Services, current: AppConfig | None) -> list[str]:
    existing = [
        model.partition("/")[2]
        for model in (current.models if current else [])
        if model.startswith(f"{OLLAMA}/")
    ]
    display.nl()
    display.info("Step 1.1: Configure Ollama models")
    answer = services.prompter.text(
        "Enter the ollama models you want to use (comma-separated):",
        default=", ".join(existing),
        instruction=None if existing else "e.g. llama3.2, mistral, phi3",
    )
    models = []
    for name in answer.split(","):
        name = name.strip()
        if name:
            models.append(name if name.startswith(f"{OLLAMA}/") else f"{OLLAMA}/{name}")
    return models


def _ask_provider(services: Services, provider: str, existing: ProviderConfig | None) -> ProviderConfig:
    display.info(f"\nConfiguring {provider}...")
    prompter = services.prompter

    api_key = None
    if provider not in KEYLESS_PROVIDERS:
        hint = " (leave blank to keep the current key)" if existing and existing.api_key else ""
        api_key = prompter.password(f"API Key{hint}:") or (existing.api_key if existing else None)
        if not api_key:
            display.warning(
                f"No API key entered. Set {api_key_env_var(provider)} before using {provider} models."
            )

    default_url = existing.base_url if existing and existing.base_url else ""
    if provider in KEYLESS_PROVIDERS and not default_url:
        default_url = PROVIDER_BASE_URLS[provider]
    base_url = prompter.text("Base URL (optional):", default=default_url) or None
    if base_url and not base_url.startswith(("http://", "https://")):
        display.warning(f"Ignoring invalid base URL: {base_url}")
        base_url = None

    return ProviderConfig(api_key=api_key, base_url=base_url)


def handle_setup(context: Context, services: Services) -> Transition:
    current = context.config
    display.clear_screen()
    if current:
        display.header("nlcmd - Modify Configuration")
        display.info("Modify your existing nlcmd configuration.")
    else:
        display.header("nlcmd - First Time Setup")
        display.info("Set up your nlcmd configuration.")

    try:
        display.nl()
        display.info("Step 1: Select the models you want to use")
        selected = services.prompter.checkbox(
            "Select the models you want to use (space to select, enter to confirm):",
            setup_choices(current),
        )

        models = [model for model in selected if model != OLLAMA]
        if OLLAMA in selected:
            models = _ask_ollama_models(services, current) + models

        if not models:
            display.error("No models were selected. Setup cancelled.")
            return Transition(State.EXIT)

        display.nl()
        display.info("Step 2: Configure providers")
        providers = {}
        for model in models:
            provider = model.partition("/")[0]
            if provider not in providers:
                existing = current.providers.get(provider) if current else None
                providers[provider] = _ask_provider(services, provider, existing)

        default_model = models[0]
        if len(models) > 1:
            display.nl()
            display.info("Step 3: Choose your default model")
            previous = current.default_model if current else None
            default_model = services.prompter.select(
                "Select your default model:",
                models,
                default=previous if previous in models else None,
            )
    except PromptCancelled:
        display.warning("Setup cancelled.")
        return Transition(State.EXIT)

    config = AppConfig(
        default_model=default_model,
        models=models,
        scripts_dir=current.scripts_dir if current else str(DEFAULT_SCRIPTS_DIR),
        providers=providers,
    )

    display.nl()
    display.info("Step 4: Saving configuration...")
    try:
        path = services.save_config(config)
    except ConfigurationError as e:
        logger.error("Saving configuration failed: %s", e)
        display.error(str(e))
        return Transition(State.EXIT)
    display.success(f"Configuration saved to {path}")

    changes = {
        "config": config,
        "model": config.default_model,
        "has_multiple_models": len(config.models) > 1,
    }

    display.nl()
    display.success("Setup complete!")
    if context.current_command.request:
        display.info("Proceeding with your request...")
        return Transition(State.USER_REQUEST, changes)
    display.info("Starting nlcmd...")
    return Transition(State.NEW, changes)
