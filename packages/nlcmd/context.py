"""Conversation state threaded through the state machine.

Every value here is immutable. Handlers never modify a Context in place;
they return a Transition whose changes the runner merges into a fresh
snapshot with dataclasses.replace().
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from .config import AppConfig
from .models import CommandResult, GeneratedResult, ScriptResult

# Executed output kept for the next refinement round
MAX_OUTPUT_LENGTH = 1000


class State(str, Enum):
    """States of the conversation state machine."""
    NEW = "NEW"
    USER_REQUEST = "USER_REQUEST"
    REQUEST_CLARIFICATION = "REQUEST_CLARIFICATION"
    USER_RESPONSE = "USER_RESPONSE"
    EXECUTE_COMMAND = "EXECUTE_COMMAND"
    REFINE = "REFINE"
    CHANGE_MODEL = "CHANGE_MODEL"
    SAVE_SCRIPT = "SAVE_SCRIPT"
    SCRIPT_SELECTION = "SCRIPT_SELECTION"
    SETUP = "SETUP"
    DEBUG = "DEBUG"
    EXIT = "EXIT"


class ExchangeType(str, Enum):
    """How the request of an exchange relates to the one before it."""
    PROMPT = "prompt"
    CLARIFICATION = "clarification"
    REFINEMENT = "refinement"


def truncate_output(output: str, limit: int = MAX_OUTPUT_LENGTH) -> str:
    """Cut output down to limit characters, noting how much was dropped."""
    if len(output) <= limit:
        return output
    return output[:limit] + f"\n[Output truncated - {len(output) - limit} more characters]"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Captured result of running a command or script."""
    output: str
    error: bool = False


@dataclass(frozen=True)
class Exchange:
    """One user request and the model's answer to it."""
    request: str
    type: ExchangeType = ExchangeType.PROMPT
    existing_script: Optional[str] = None
    response: Optional[GeneratedResult] = None
    refused_clarification: bool = False
    execution_results: Optional[ExecutionOutcome] = None

    def update(self, **changes: Any) -> "Exchange":
        return replace(self, **changes)


@dataclass(frozen=True)
class Context:
    """Snapshot of the whole conversation."""
    current_command: Exchange
    config: Optional[AppConfig] = None
    system_info: Mapping[str, Any] = field(default_factory=dict)
    model: Optional[str] = None
    command_history: tuple[Exchange, ...] = ()
    script_mode: bool = False
    script_name: Optional[str] = None
    has_multiple_models: bool = False
    model_changed: bool = False
    debug: bool = False
    skip_dependency_install: bool = False

    @property
    def item_type(self) -> str:
        return "script" if self.script_mode else "command"

    @property
    def response(self) -> Optional[GeneratedResult]:
        return self.current_command.response

    @property
    def command_response(self) -> Optional[CommandResult]:
        response = self.current_command.response
        return response if isinstance(response, CommandResult) else None

    @property
    def script_response(self) -> Optional[ScriptResult]:
        response = self.current_command.response
        return response if isinstance(response, ScriptResult) else None

    @property
    def original_command(self) -> Exchange:
        """The exchange that started the conversation."""
        return self.command_history[0] if self.command_history else self.current_command

    def merge(self, changes: Mapping[str, Any]) -> "Context":
        """Return a new snapshot with changes applied."""
        if not changes:
            return self
        return replace(self, **changes)

    def begin_exchange(self, exchange: Exchange) -> dict[str, Any]:
        """Changes that retire the current exchange into history and start a new one."""
        return {
            "command_history": self.command_history + (self.current_command,),
            "current_command": exchange,
        }

    def update_current(self, **changes: Any) -> dict[str, Any]:
        """Changes that modify the in-progress exchange."""
        return {"current_command": self.current_command.update(**changes)}


@dataclass(frozen=True)
class Transition:
    """What a state handler hands back to the runner."""
    next_state: State
    changes: Mapping[str, Any] = field(default_factory=dict)
