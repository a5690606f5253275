"""REQUEST_CLARIFICATION: ask the user the model's follow-up question."""

from .. import display
from ..context import Context, Exchange, ExchangeType, State, Transition
from ..exceptions import PromptCancelled
from ..machine import Services


def handle_request_clarification(context: Context, services: Services) -> Transition:
    current = context.current_command
    response = context.response

    if response.changelog and current.type != ExchangeType.PROMPT:
        display.warning("\nChangelog:")
        display.detail(response.changelog)
        display.nl()

    display.header(f"{context.item_type.capitalize()} needs clarification")
    display.info(response.clarification_needed)
    display.nl()

    try:
        answer = services.prompter.text(
            "Please provide additional information:",
            instruction="(Press Enter with no text to skip)",
        )
    except PromptCancelled:
        answer = ""

    if not answer:
        return Transition(State.USER_RESPONSE, context.update_current(refused_clarification=True))

    return Transition(
        State.USER_REQUEST,
        context.begin_exchange(Exchange(request=answer, type=ExchangeType.CLARIFICATION)),
    )
