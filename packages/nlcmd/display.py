"""Terminal output helpers."""

import sys

from .context import Context, Exchange, ExchangeType

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[1;31m"
GREEN = "\033[1;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[1;34m"
CYAN = "\033[1;36m"
GREY = "\033[1;90m"


def success(message: str) -> None:
    print(f"{GREEN}{message}{RESET}")


def info(message: str) -> None:
    print(f"{CYAN}{message}{RESET}")


def warning(message: str) -> None:
    print(f"{YELLOW}{message}{RESET}")


def header(message: str) -> None:
    print()
    print(f"{GREY}{message}{RESET}")


def detail(message: str) -> None:
    print(f"{DIM}{message}{RESET}")


def text(message: str = "") -> None:
    print(message)


def error(message: str) -> None:
    print(f"{RED}{message}{RESET}", file=sys.stderr)


def nl() -> None:
    print()


def clear_screen() -> None:
    if sys.stdout.isatty():
        sys.stdout.write("\033c")
        sys.stdout.flush()


def thinking(model: str) -> None:
    print(f"{DIM}(thinking [{model}]...){RESET}", flush=True)


def display_script_code(script: str) -> None:
    """Display script code with line numbers."""
    lines = script.split("\n")
    width = len(str(len(lines)))
    print()
    for i, line in enumerate(lines, 1):
        print(f"{DIM}{i:>{width}}│{RESET} {line}")
    print()


def _branch(label: str, color: str, value: str) -> None:
    print(f"{DIM}└─ {RESET}{color}{label}{RESET}{DIM}{value}{RESET}")


def _display_exchange_response(exchange: Exchange, script_mode: bool) -> None:
    response = exchange.response
    if response is None:
        return
    if response.content:
        shown = f"[{response.explanation or 'Script'}]" if script_mode else response.content
        _branch("Response: ", GREEN, shown)
    if response.changelog:
        _branch("Changelog: ", YELLOW, response.changelog)
    if response.clarification_needed:
        _branch("LLM Question: ", BLUE, response.clarification_needed)


def _user_label(exchange: Exchange) -> str:
    if exchange.type == ExchangeType.CLARIFICATION:
        return "User Answer: "
    return "User Refinement: "


def render_conversation(context: Context) -> None:
    """Print the model, the prompt and history, and the latest response."""
    header("nlcmd")
    info(f"Model: {context.model}")

    original = context.original_command
    original_request = original.request
    if original.existing_script:
        original_request = f"Refining script: {context.script_name}: {original.request}"

    if not context.command_history:
        header("Prompt: ")
        text(original_request)
    else:
        header("History:")
        text("Initial Prompt: " + original_request)
        _display_exchange_response(original, context.script_mode)
        for exchange in context.command_history[1:]:
            if not exchange.request:
                continue
            text(_user_label(exchange) + exchange.request)
            _display_exchange_response(exchange, context.script_mode)
        if context.current_command.request:
            text(_user_label(context.current_command) + context.current_command.request)

    header("LLM Response")
    response = context.response
    if response is not None and response.content:
        if context.script_mode:
            display_script_code(response.content)
        else:
            text(f"{BOLD}{response.content.strip()}{RESET}")
