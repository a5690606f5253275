"""USER_RESPONSE: show the generated result and wait for a single-key decision."""

from .. import display
from ..context import Context, ExchangeType, State, Transition
from ..exceptions import PromptCancelled
from ..machine import Services
from ..models import CommandResult

EXIT_KEYS = ("ctrl+c",)


def available_keys(context: Context) -> set[str]:
    """Keys the review menu reacts to in the current context."""
    keys = {"return", "c", "r", *EXIT_KEYS}
    if context.script_mode:
        keys.add("w")
    else:
        keys.add("s")
        if context.command_response and context.command_response.breakdown:
            keys.add("b")
    if context.has_multiple_models:
        keys.add("m")
    if context.debug:
        keys.add("d")
    return keys


def display_breakdown(response: CommandResult) -> None:
    if response.explanation:
        display.info("\nExplanation:")
        display.text(response.explanation)
        display.nl()

    if response.breakdown:
        display.info("\nCommand Breakdown:")
        for index, step in enumerate(response.breakdown, 1):
            display.warning(f"\nStep {index}:")
            display.text(f"{display.BOLD}Command: {step.command}{display.RESET}")
            if step.description:
                display.text("Description:")
                for line in step.description.split("\n"):
                    display.text(f"  {line.strip()}")
        display.nl()

    display.detail("\nPress any key to return...")


def _display_details(context: Context) -> None:
    current = context.current_command
    response = context.response

    if context.script_response:
        display.info("\nScript name: " + (context.script_name or ""))
        display.info("\nScript generated successfully!")
        display.info("\nScript explanation:")
        if response.explanation:
            display.text(response.explanation)
        display.info("\nRequired dependencies:")
        dependencies = context.script_response.dependency_list()
        if dependencies:
            for dep in dependencies:
                display.text(f"- {dep}")
        else:
            display.text("No external dependencies required")
        display.nl()

    if response.changelog and current.type != ExchangeType.PROMPT:
        display.warning("\nChangelog:")
        display.warning(response.changelog)
        display.nl()

    results = current.execution_results
    if results is not None and results.output:
        display.header("Last Output:")
        display.nl()
        if results.error:
            display.error(results.output)
        else:
            display.text(results.output)


def _display_options(context: Context, keys: set[str]) -> None:
    item = context.item_type
    results = context.current_command.execution_results
    with_output = " (with the output)" if results is not None and results.output else ""

    command = context.command_response
    if command is not None:
        if command.destructive:
            display.warning("This command may modify or delete existing files.")
        if command.caution:
            display.warning("Caution: " + command.caution)

    display.nl()
    display.info(f"  • Press Enter to execute the {item}")
    display.info(f"  • Press 'c' to copy the {item} and exit")
    if "s" in keys:
        display.info("  • Press 's' to convert this to a script instead")
    display.info(f"  • Press 'r' to refine/modify the {item}{with_output}")
    if "b" in keys:
        display.info("  • Press 'b' to see detailed command breakdown")
    if "w" in keys:
        display.info("  • Press 'w' to save the script without running it")
    if "m" in keys:
        display.info("  • Press 'm' to re-run with a different model")
    if "d" in keys:
        display.info("  • Press 'd' to display raw response data")


def handle_user_response(context: Context, services: Services) -> Transition:
    _display_details(context)
    keys = available_keys(context)

    while True:
        _display_options(context, keys)
        try:
            key = services.prompter.read_key(keys)
        except PromptCancelled:
            key = "ctrl+c"

        if key != "b":
            break

        # Breakdown sub-view runs its own key capture, then the menu is redrawn
        display.clear_screen()
        display_breakdown(context.command_response)
        try:
            services.prompter.wait_for_key()
        except PromptCancelled:
            pass

    if key == "return":
        return Transition(State.EXECUTE_COMMAND)
    if key == "c":
        item = context.item_type.capitalize()
        if services.copy_to_clipboard(context.response.content.strip()):
            display.success(f"\n{item} copied to clipboard")
        else:
            display.warning(f"\nFailed to copy {context.item_type} to clipboard")
        return Transition(State.EXIT)
    if key == "r":
        return Transition(State.REFINE)
    if key == "s":
        display.info("\nConverting to script mode...")
        return Transition(State.USER_REQUEST, {"script_mode": True})
    if key == "w":
        return Transition(State.SAVE_SCRIPT)
    if key == "m":
        return Transition(State.CHANGE_MODEL)
    if key == "d":
        return Transition(State.DEBUG)

    display.warning("\nProcess terminated")
    return Transition(State.EXIT)
