"""NEW: choose what to generate and describe it."""

from questionary import Choice

from .. import display
from ..context import Context, Exchange, State, Transition
from ..exceptions import PromptCancelled
from ..machine import Services

COMMAND, SCRIPT, REFINE = "command", "script", "refine"

HINTS = {
    COMMAND: 'Example: "find all large files", "backup my documents"',
    SCRIPT: 'Example: "web scraper for news sites", "image processing tool"',
}


def handle_new(context: Context, services: Services) -> Transition:
    choices = [
        Choice("Generate a command", value=COMMAND),
        Choice("Generate a script", value=SCRIPT),
    ]
    if context.config and services.scripts.list_available(context.config.scripts_path):
        choices.append(Choice("Refine an existing script", value=REFINE))

    display.header("nlcmd")
    display.nl()
    display.success("Natural language to shell commands and scripts")

    try:
        action = services.prompter.select("What would you like to do?", choices)
        if action == REFINE:
            return Transition(State.SCRIPT_SELECTION)

        display.clear_screen()
        request = services.prompter.text(
            f"Describe the {action} you want to {'create' if action == SCRIPT else 'generate'}:",
            instruction=HINTS[action],
        )
    except PromptCancelled:
        return Transition(State.EXIT)

    if not request:
        display.warning("\nNo input provided. Exiting.")
        return Transition(State.EXIT)

    return Transition(
        State.USER_REQUEST,
        {"current_command": Exchange(request=request), "script_mode": action == SCRIPT},
    )
