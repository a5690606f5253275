"""EXECUTE_COMMAND: run the command or saved script and offer a refinement round."""

import logging

from .. import display
from ..context import Context, Exchange, ExchangeType, State, Transition
from ..exceptions import PromptCancelled, ScriptStoreError
from ..machine import Services
from ..models import ScriptResult

logger = logging.getLogger(__name__)


def format_parameter(name: str, value: str) -> str:
    """Render one script parameter as --name="value" for the shell."""
    escaped = value
    for char in ("\\", '"', "$", "`"):
        escaped = escaped.replace(char, "\\" + char)
    return f'--{name}="{escaped}"'


def save_script(context: Context, services: Services, script: ScriptResult) -> None:
    """Persist the current script, reporting problems as warnings."""
    try:
        saved = services.scripts.save(
            context.script_name,
            script.content,
            script.dependency_list(),
            context.config.scripts_path,
            install=not context.skip_dependency_install,
        )
    except ScriptStoreError as e:
        logger.error("Saving %s failed: %s", context.script_name, e)
        display.warning(str(e))
        return

    if saved.install_error:
        display.error(f"Error installing dependencies: {saved.install_error}")
        display.warning(
            "You can install them manually with 'pip install -r requirements.txt' "
            "in the script directory."
        )
    elif saved.dependencies and not saved.installed:
        display.warning(
            "\nDependencies were not installed. You can install them manually with "
            "'pip install -r requirements.txt' in the script directory."
        )
    display.success(f"\nScript created successfully at {saved.path}")


def collect_parameters(script: ScriptResult, services: Services) -> list[str]:
    """Ask for the script's command line parameters.

    Raises:
        PromptCancelled: If the user aborts any of the prompts
    """
    prompter = services.prompter
    if not script.parameters:
        extra = prompter.text("Enter command line parameters (e.g. --foo=bar --baz=qux):")
        return [extra] if extra else []

    display.info("\nScript parameters:")
    for param in script.parameters:
        required = " (required)" if param.required else ""
        display.text(f"- {param.name}: {param.description}{required}")

    args = []
    for param in script.parameters:
        required = " (required)" if param.required else ""
        value = prompter.text(
            f"{param.name}{required}",
            default=param.default_value or "",
            instruction=param.description or None,
        )
        if value:
            args.append(format_parameter(param.name, value))

    extra = prompter.text(
        "Additional parameters (e.g., --foo=bar --baz=qux)",
        instruction="Enter any additional parameters in command-line format",
    )
    if extra:
        args.append(extra)
    return args


def build_invocation(context: Context, services: Services) -> str:
    script = context.script_response
    if script is None:
        return context.response.content.strip()

    display.header("Script: " + (context.script_name or ""))
    save_script(context, services, script)
    command = services.scripts.invocation(context.script_name, context.config.scripts_path)

    if script.has_parameters:
        try:
            args = collect_parameters(script, services)
        except PromptCancelled:
            display.warning("Failed to get parameters: cancelled")
            display.warning("Executing script without parameters")
            args = []
        if args:
            command = " ".join([command, *args])
    return command


def handle_execute_command(context: Context, services: Services) -> Transition:
    command = build_invocation(context, services)

    display.success("\nExecuting...")
    outcome = services.executor.execute(command)
    if outcome.error:
        display.error("\nCommand finished with errors.")
    else:
        display.success("\nCommand completed.")
    if not outcome.output:
        display.detail("No output returned from command")

    try:
        request = services.prompter.text(
            "Refine (or press Enter to exit):",
            default="fix the errors" if outcome.error else "",
        )
    except PromptCancelled:
        return Transition(State.EXIT)

    if not request:
        display.detail(f"Done! To execute the {context.item_type} manually, run: {command}")
        display.nl()
        return Transition(State.EXIT)

    refinement = Exchange(
        request=request,
        type=ExchangeType.REFINEMENT,
        execution_results=outcome,
    )
    return Transition(State.USER_REQUEST, context.begin_exchange(refinement))
