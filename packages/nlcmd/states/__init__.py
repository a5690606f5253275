"""State handlers, one module per state."""

from ..context import State
from .change_model import handle_change_model
from .debug import handle_debug
from .execute_command import handle_execute_command
from .new import handle_new
from .refine import handle_refine
from .request_clarification import handle_request_clarification
from .save_script import handle_save_script
from .script_selection import handle_script_selection
from .setup import handle_setup
from .user_request import handle_user_request
from .user_response import handle_user_response

HANDLERS = {
    State.NEW: handle_new,
    State.USER_REQUEST: handle_user_request,
    State.REQUEST_CLARIFICATION: handle_request_clarification,
    State.USER_RESPONSE: handle_user_response,
    State.EXECUTE_COMMAND: handle_execute_command,
    State.REFINE: handle_refine,
    State.CHANGE_MODEL: handle_change_model,
    State.SAVE_SCRIPT: handle_save_script,
    State.SCRIPT_SELECTION: handle_script_selection,
    State.SETUP: handle_setup,
    State.DEBUG: handle_debug,
}

__all__ = ["HANDLERS"]
