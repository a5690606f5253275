"""SCRIPT_SELECTION: pick a saved script to refine."""

import logging

from .. import display
from ..context import Context, Exchange, State, Transition
from ..exceptions import PromptCancelled, ScriptStoreError
from ..machine import Services
from ..prompt import get_refinement_prompt

logger = logging.getLogger(__name__)

DEFAULT_REFINEMENT = "Add more features"


def handle_script_selection(context: Context, services: Services) -> Transition:
    scripts_dir = context.config.scripts_path
    scripts = services.scripts.list_available(scripts_dir)
    if not scripts:
        display.warning("No scripts found. Please create a script first.")
        return Transition(State.NEW)

    display.header("nlcmd")
    display.success("Select a script to refine")

    try:
        selected = services.prompter.select("Choose a script to refine:", scripts)
        content = services.scripts.load(selected, scripts_dir)

        display.header("Selected Script: " + selected)
        display.display_script_code(content)

        instruction = services.prompter.text(
            "How would you like to refine this script?",
            default=DEFAULT_REFINEMENT,
        )
    except PromptCancelled:
        return Transition(State.EXIT)
    except ScriptStoreError as e:
        logger.error("Failed to load script: %s", e)
        display.error(f"Failed to load script: {e}")
        return Transition(State.EXIT)

    exchange = Exchange(
        request=get_refinement_prompt(instruction or DEFAULT_REFINEMENT, existing_script=content),
        existing_script=content,
    )
    return Transition(
        State.USER_REQUEST,
        {
            "current_command": exchange,
            "script_name": selected,
            "script_mode": True,
        },
    )
