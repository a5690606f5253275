"""Pydantic models for the structured output the LLM must produce.

The same classes serve as the schema handed to the model and as the
validator for whatever comes back.
"""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import GenerationError


class BreakdownStep(BaseModel):
    """One fragment of a generated command with its explanation."""
    command: str = Field(description="A specific part of the command")
    description: str = Field(
        default="",
        description="Detailed explanation of what this command part does",
    )


class ScriptParameter(BaseModel):
    """A command-line parameter accepted by a generated script."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        description="Parameter name without dashes (e.g., 'file', 'count', 'dir')"
    )
    description: str = Field(
        default="",
        description="User-friendly description of what the parameter does and expected values",
    )
    required: bool = Field(
        default=False,
        description="Whether this parameter is required for the script to function correctly",
    )
    default_value: str = Field(
        default="",
        alias="defaultValue",
        description="Optional default value for the parameter",
    )


class CommandResult(BaseModel):
    """Structured output for command mode."""
    thinking: str = Field(default="", description="Your step-by-step reasoning process")
    explanation: str = Field(default="", description="Brief explanation of what the command does")
    content: str = Field(description="The generated command that can be executed directly")
    destructive: bool = Field(
        default=False,
        description="True if the command could delete/modify files or system settings",
    )
    should_be_script: bool = Field(
        default=False,
        description=(
            "True if the request is too complicated for a command and should be a script "
            "instead, or if the user has explicitly requested a script"
        ),
    )
    caution: str = Field(
        default="",
        description="Warning for commands requiring special attention. Leave blank if none is required.",
    )
    changelog: str = Field(
        default="",
        description=(
            "A summary of changes made during refinement. Only populate this field when "
            "refining a previous command based on user feedback or clarification."
        ),
    )
    clarification_needed: str = Field(
        default="",
        description=(
            "Detailed explanation of what information is missing or ambiguous. "
            "Leave blank if no clarification is needed."
        ),
    )
    breakdown: list[BreakdownStep] = Field(default_factory=list)


class ScriptResult(BaseModel):
    """Structured output for script mode."""
    model_config = ConfigDict(populate_by_name=True)

    thinking: str = Field(default="", description="Your step-by-step reasoning process")
    explanation: str = Field(default="", description="Brief explanation of what the script does")
    script_name: str = Field(
        default="",
        description="Short 3-4 word kebab-cased name describing the script's function",
    )
    has_parameters: bool = Field(
        default=False,
        alias="hasParameters",
        description="Boolean indicating if the script accepts command line parameters",
    )
    parameters: list[ScriptParameter] = Field(
        default_factory=list,
        description="List of parameters the script accepts",
    )
    content: str = Field(description="The complete Python code for main.py that can be run as-is")
    dependencies: str = Field(
        default="",
        description="Comma-separated list of PyPI packages the script imports",
    )
    changelog: str = Field(
        default="",
        description=(
            "A summary of changes made during refinement. Only populate this field when "
            "refining a previous script based on user feedback or clarification."
        ),
    )
    clarification_needed: str = Field(
        default="",
        description="Detailed explanation of what information is missing or ambiguous",
    )

    def dependency_list(self) -> list[str]:
        """Split the comma-separated dependency string, dropping blanks."""
        return [dep.strip() for dep in self.dependencies.split(",") if dep.strip()]


GeneratedResult = Union[CommandResult, ScriptResult]


def validate_result(schema: type[BaseModel], raw: Any) -> BaseModel:
    """Coerce whatever the LLM returned into an instance of schema.

    Raises:
        GenerationError: If the payload does not match the schema
    """
    if isinstance(raw, schema):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)
    if raw is None:
        raise GenerationError("The model returned an empty response")
    try:
        if isinstance(raw, (str, bytes)):
            return schema.model_validate_json(raw)
        return schema.model_validate(raw)
    except ValidationError as e:
        raise GenerationError(f"The model returned an invalid {schema.__name__}: {e}")
