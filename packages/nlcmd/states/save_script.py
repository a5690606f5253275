"""SAVE_SCRIPT: write the script to disk without running it."""

from .. import display
from ..context import Context, State, Transition
from ..machine import Services
from .execute_command import save_script


def handle_save_script(context: Context, services: Services) -> Transition:
    script = context.script_response

    display.header("Script: " + (context.script_name or ""))
    display.display_script_code(script.content)

    save_script(context, services, script)

    run_command = services.scripts.invocation(context.script_name, context.config.scripts_path)
    display.info("\nTo run the script, use this command:")
    display.success(f"  {run_command}")
    if services.copy_to_clipboard(run_command):
        display.info("\nThe command has been copied to your clipboard.")

    return Transition(State.EXIT)
