"""CHANGE_MODEL: regenerate the current request with another configured model."""

import logging

from questionary import Choice, Separator

from .. import display
from ..context import Context, State, Transition
from ..exceptions import PromptCancelled
from ..machine import Services

logger = logging.getLogger(__name__)


def model_choices(models: list[str], current: str) -> list:
    """Models grouped under one separator per provider, current model marked."""
    grouped: dict[str, list[str]] = {}
    for model in models:
        grouped.setdefault(model.partition("/")[0], []).append(model)

    choices: list = []
    for provider, provider_models in grouped.items():
        choices.append(Separator(f"── {provider.upper()} ──"))
        for model in provider_models:
            title = f"{model} (current)" if model == current else model
            choices.append(Choice(title=title, value=model))
    return choices


def handle_change_model(context: Context, services: Services) -> Transition:
    display.clear_screen()
    try:
        selected = services.prompter.select(
            "Select a model to re-run the command generation:",
            model_choices(context.config.models, context.model),
            default=context.model if context.model in context.config.models else None,
        )
    except PromptCancelled:
        return Transition(State.EXIT)

    if selected == context.model:
        display.warning("Already using this model.")
        return Transition(State.USER_RESPONSE)

    logger.info("Switching model %s -> %s", context.model, selected)
    display.warning(f"\nSwitching to model: {selected}")
    changes = context.update_current(execution_results=None)
    changes.update(model=selected, model_changed=True)
    return Transition(State.USER_REQUEST, changes)
