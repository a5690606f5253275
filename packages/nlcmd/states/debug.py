"""DEBUG: dump the raw structured result of the current exchange."""

import json

from .. import display
from ..context import Context, State, Transition
from ..exceptions import PromptCancelled
from ..machine import Services


def handle_debug(context: Context, services: Services) -> Transition:
    current = context.current_command
    display.header("Raw response data")
    payload = current.response.model_dump(by_alias=True) if current.response else None
    display.text(json.dumps(payload, indent=2))
    display.detail(f"\nExchange type: {current.type.value}, model: {context.model}")
    display.detail("\nPress any key to return...")
    try:
        services.prompter.wait_for_key()
    except PromptCancelled:
        pass
    return Transition(State.USER_RESPONSE)
