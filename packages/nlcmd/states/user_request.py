"""USER_REQUEST: generate a command or script for the current exchange."""

import logging
import re
import secrets

from .. import display
from ..context import Context, State, Transition
from ..exceptions import GenerationError, PromptCancelled
from ..generation import build_messages, schema_for
from ..machine import Services
from ..models import CommandResult

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_NAME = "generated-script"


def normalize_script_name(suggested: str) -> str:
    """Kebab-case the suggested name and add an 8 hex character suffix.

    "Disk Usage Report" becomes e.g. "disk-usage-report-3f9a01bc".
    """
    name = re.sub(r"[^a-z0-9]+", "-", (suggested or "").lower()).strip("-")
    return f"{name or DEFAULT_SCRIPT_NAME}-{secrets.token_hex(4)}"


def handle_user_request(context: Context, services: Services) -> Transition:
    display.thinking(context.model)

    try:
        result = services.generator.generate(
            context.model,
            schema_for(context),
            build_messages(context),
            config=context.config,
        )
    except GenerationError as e:
        logger.error("Error generating %s with %s: %s", context.item_type, context.model, e)
        display.error(f"Error generating {context.item_type}: {e}")
        return Transition(State.EXIT)

    changes = context.update_current(response=result)
    if context.script_mode and not context.script_name:
        changes["script_name"] = normalize_script_name(getattr(result, "script_name", ""))

    if isinstance(result, CommandResult) and result.should_be_script:
        display.nl()
        display.warning("This request might be better implemented as a script rather than a command.")
        try:
            switch = services.prompter.confirm("Would you like to create a script instead?", default=True)
        except PromptCancelled:
            switch = False
        if switch:
            display.info("\nSwitching to script mode...")
            return Transition(State.USER_REQUEST, {"script_mode": True})

    if result.clarification_needed.strip() and not context.current_command.refused_clarification:
        return Transition(State.REQUEST_CLARIFICATION, changes)
    return Transition(State.USER_RESPONSE, changes)
