"""Turn a conversation into LLM messages and get a structured result back."""

import logging
from typing import Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel

from .config import AppConfig
from .context import Context, Exchange, ExchangeType
from .exceptions import ConfigurationError, GenerationError, InvalidModelError
from .models import CommandResult, ScriptResult, validate_result
from .prompt import get_clarification_prompt, get_refinement_prompt, get_system_prompt
from .providers import build_chat_model

logger = logging.getLogger(__name__)


def schema_for(context: Context) -> type[BaseModel]:
    return ScriptResult if context.script_mode else CommandResult


def exchange_prompt(exchange: Exchange) -> str:
    """The user-message text for one exchange."""
    if exchange.type == ExchangeType.CLARIFICATION:
        return get_clarification_prompt(exchange.request)
    if exchange.type == ExchangeType.REFINEMENT:
        return get_refinement_prompt(
            exchange.request,
            existing_script=exchange.existing_script,
            execution_results=exchange.execution_results,
        )
    return exchange.request


def serialize_response(exchange: Exchange) -> str:
    if exchange.response is None:
        return "null"
    return exchange.response.model_dump_json(by_alias=True)


def build_messages(context: Context) -> list[BaseMessage]:
    """Build the ordered message list for the current exchange.

    One system message for the active mode, then a user/assistant pair per
    history entry, then the current request.
    """
    messages: list[BaseMessage] = [
        SystemMessage(content=get_system_prompt(context.system_info, context.script_mode))
    ]
    for exchange in context.command_history:
        messages.append(HumanMessage(content=exchange_prompt(exchange)))
        messages.append(AIMessage(content=serialize_response(exchange)))
    messages.append(HumanMessage(content=exchange_prompt(context.current_command)))
    return messages


class Generator:
    """Calls the configured provider and validates its structured output."""

    def __init__(self, temperature: float = 0):
        self.temperature = temperature

    def generate(
        self,
        model: str,
        schema: type[BaseModel],
        messages: list[BaseMessage],
        config: Optional[AppConfig] = None,
    ) -> BaseModel:
        """Generate one structured result.

        Args:
            model: 'provider/modelName'
            schema: CommandResult or ScriptResult
            messages: Output of build_messages()
            config: Loaded config supplying the API key and base URL

        Returns:
            An instance of schema

        Raises:
            GenerationError: On any provider, network, credential or validation failure
        """
        try:
            llm = build_chat_model(
                model,
                api_key=config.api_key_for(model) if config else None,
                base_url=config.base_url_for(model) if config else None,
                temperature=self.temperature,
            )
        except (ConfigurationError, InvalidModelError) as e:
            raise GenerationError(str(e), model=model) from e

        structured = llm.with_structured_output(schema)
        logger.debug("Generating %s with %s (%d messages)", schema.__name__, model, len(messages))
        try:
            raw = structured.invoke(messages)
        except Exception as e:
            logger.exception("Generation failed for %s", model)
            raise GenerationError(f"{type(e).__name__}: {e}", model=model) from e

        try:
            return validate_result(schema, raw)
        except GenerationError as e:
            e.model = model
            raise
