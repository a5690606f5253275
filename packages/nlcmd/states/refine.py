"""REFINE: collect a refinement instruction for the current result."""

from .. import display
from ..context import Context, Exchange, ExchangeType, State, Transition
from ..exceptions import PromptCancelled
from ..machine import Services

EXAMPLES = {
    "script": 'Examples: "add error handling", "make it support CSV files"',
    "command": 'Examples: "add verbose output", "sort results by date instead"',
}


def handle_refine(context: Context, services: Services) -> Transition:
    results = context.current_command.execution_results

    if results is not None and results.output:
        display.detail("Your last output will be used as context for refinement")
        display.nl()
        if results.error:
            display.error(results.output)
        else:
            display.text(results.output)
        display.nl()

    try:
        request = services.prompter.text(
            f"How would you like to refine the {context.item_type}?",
            instruction=EXAMPLES[context.item_type],
        )
    except PromptCancelled:
        return Transition(State.USER_RESPONSE)

    if not request:
        return Transition(State.USER_RESPONSE)

    refinement = Exchange(
        request=request,
        type=ExchangeType.REFINEMENT,
        execution_results=results,
    )
    return Transition(State.USER_REQUEST, context.begin_exchange(refinement))
