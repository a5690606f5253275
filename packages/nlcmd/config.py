"""Configuration for nlcmd.

Settings come from a JSON file (~/.nlcmd by default) validated with
pydantic, plus a handful of environment variables that may also be set in
a .env file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError, InvalidModelError
from .providers import KEYLESS_PROVIDERS, VALID_PROVIDERS, split_model

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

CONFIG_PATH = Path(os.getenv("NLCMD_CONFIG", str(Path.home() / ".nlcmd"))).expanduser()
DEFAULT_SCRIPTS_DIR = Path(
    os.getenv("NLCMD_SCRIPTS_DIR", str(Path.home() / ".nlcmd-scripts"))
).expanduser()
SHELL_EXECUTABLE = os.getenv("NLCMD_SHELL", os.getenv("SHELL", "/bin/bash"))
LOG_FILE = Path(os.getenv("NLCMD_LOG_FILE", str(Path.home() / ".nlcmd.log"))).expanduser()
LOG_LEVEL = os.getenv("NLCMD_LOG_LEVEL", "WARNING").upper()

EXAMPLE_CONFIG = """{
  "defaultModel": "openai/gpt-4o",
  "models": ["openai/gpt-4o", "anthropic/claude-3-5-sonnet-20241022", "ollama/llama3.2"],
  "scriptsDir": "~/nlcmd-scripts",
  "providers": {
    "openai": {
      "apiKey": "YOUR_OPENAI_API_KEY"
    },
    "anthropic": {
      "apiKey": "YOUR_ANTHROPIC_API_KEY",
      "baseURL": "https://api.anthropic.com/v1/"
    }
  }
}"""


class ProviderConfig(BaseModel):
    """Credentials and endpoint for one provider."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    api_key: Optional[str] = Field(default=None, alias="apiKey")
    base_url: Optional[str] = Field(default=None, alias="baseURL")

    @field_validator("base_url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return value


class AppConfig(BaseModel):
    """Contents of the configuration file."""
    model_config = ConfigDict(populate_by_name=True)

    default_model: str = Field(alias="defaultModel")
    models: list[str]
    scripts_dir: str = Field(default=str(DEFAULT_SCRIPTS_DIR), alias="scriptsDir")
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)

    @field_validator("providers")
    @classmethod
    def _check_providers(cls, value: dict[str, ProviderConfig]) -> dict[str, ProviderConfig]:
        unknown = [name for name in value if name not in VALID_PROVIDERS]
        if unknown:
            raise ValueError(
                f"unknown provider(s) {', '.join(unknown)}; expected one of {', '.join(VALID_PROVIDERS)}"
            )
        return value

    @property
    def scripts_path(self) -> Path:
        return Path(self.scripts_dir).expanduser()

    def provider(self, model: str) -> Optional[ProviderConfig]:
        """Provider settings for a 'provider/modelName' identifier."""
        name = model.partition("/")[0]
        return self.providers.get(name)

    def api_key_for(self, model: str) -> Optional[str]:
        provider = self.provider(model)
        return provider.api_key if provider else None

    def base_url_for(self, model: str) -> Optional[str]:
        provider = self.provider(model)
        return provider.base_url if provider else None


def _format_issues(error: ValidationError) -> list[str]:
    issues = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue["loc"])
        issues.append(f"{location}: {issue['msg']}")
    return issues


def load_config(path: Path | str | None = None) -> AppConfig | None:
    """Load and validate the configuration file.

    Args:
        path: Config file location (defaults to CONFIG_PATH)

    Returns:
        The parsed config, or None when no config file exists yet

    Raises:
        ConfigurationError: If the file is unreadable, not JSON, or fails validation
    """
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        logger.info("No config file at %s", config_path)
        return None

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {config_path} contains invalid JSON: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error reading config {config_path}: {e}")

    if not raw:
        return None

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError("Invalid configuration format.", issues=_format_issues(e))


def save_config(config: AppConfig, path: Path | str | None = None) -> Path:
    """Write the configuration file, readable by the owner only.

    Raises:
        ConfigurationError: If the file cannot be written
    """
    config_path = Path(path) if path else CONFIG_PATH
    data = config.model_dump(by_alias=True, exclude_none=True)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        config_path.chmod(0o600)
    except OSError as e:
        raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}")
    logger.info("Saved config to %s", config_path)
    return config_path


def validate_model_override(model: str, config: AppConfig) -> str:
    """Check a --model override against the loaded config.

    Raises:
        InvalidModelError: If the format is wrong or the provider is not configured
    """
    provider, _ = split_model(model)
    if provider not in config.providers and provider not in KEYLESS_PROVIDERS:
        raise InvalidModelError(f'Provider "{provider}" not found in config.', model=model)
    return model
