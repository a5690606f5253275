"""State machine runner.

Each state has one handler, ``handler(context, services) -> Transition``.
The runner renders the conversation, calls the handler for the current
state, merges the returned changes into a new Context and repeats until
the EXIT state is reached.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from . import display
from .clipboard import copy_to_clipboard
from .config import AppConfig, save_config
from .context import Context, State, Transition
from .executor import CommandExecutor
from .generation import Generator
from .prompts import Prompter
from .scripts import ScriptStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Collaborators the state handlers talk to."""
    generator: Any = field(default_factory=Generator)
    prompter: Any = field(default_factory=Prompter)
    executor: Any = field(default_factory=CommandExecutor)
    scripts: Any = field(default_factory=ScriptStore)
    copy_to_clipboard: Callable[[str], bool] = copy_to_clipboard
    save_config: Callable[[AppConfig], Path] = save_config


Handler = Callable[[Context, Services], Transition]


def _name(state: Any) -> str:
    return getattr(state, "value", str(state))


class StateMachine:
    """Drives a conversation from an initial state to EXIT.

    Args:
        handlers: One handler per non-terminal state
        services: Collaborators passed to every handler
        render: Clear the screen and redraw the conversation before each step
    """

    def __init__(
        self,
        handlers: Mapping[State, Handler],
        services: Optional[Services] = None,
        render: bool = True,
    ):
        missing = [state.value for state in State if state != State.EXIT and state not in handlers]
        if missing:
            raise ValueError(f"No handler registered for: {', '.join(missing)}")
        if State.EXIT in handlers:
            raise ValueError("EXIT is terminal and cannot have a handler")
        self.handlers = dict(handlers)
        self.services = services or Services()
        self.render = render
        self.visited: list[State] = []

    def run(self, context: Context, initial_state: State = State.USER_REQUEST) -> Context:
        """Run until EXIT and return the final context."""
        state = initial_state
        while state != State.EXIT:
            handler = self.handlers.get(state)
            if handler is None:
                logger.error("Unknown state: %s", _name(state))
                display.error(f"Unknown state: {_name(state)}")
                break

            if self.render:
                display.clear_screen()
                if context.current_command.request:
                    display.render_conversation(context)

            self.visited.append(state)
            transition = handler(context, self.services)
            logger.info("%s -> %s", _name(state), _name(transition.next_state))
            context = context.merge(transition.changes)
            state = transition.next_state

        return context
