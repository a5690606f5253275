"""Custom exceptions for nlcmd."""


class NlcmdError(Exception):
    """Base exception for nlcmd."""
    pass


class ConfigurationError(NlcmdError):
    """Raised when the configuration file is invalid or unreadable."""

    def __init__(self, message: str, issues: list[str] | None = None):
        super().__init__(message)
        self.issues = issues or []


class InvalidModelError(NlcmdError):
    """Raised when a model identifier is malformed or names an unknown provider."""

    def __init__(self, message: str, model: str = ""):
        super().__init__(message)
        self.model = model


class GenerationError(NlcmdError):
    """Raised when the LLM call fails or returns an unusable result."""

    def __init__(self, message: str, model: str = ""):
        super().__init__(message)
        self.model = model


class PromptCancelled(NlcmdError):
    """Raised when the user aborts an interactive prompt (Ctrl+C)."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)


class ScriptStoreError(NlcmdError):
    """Raised when a script cannot be written to or read from disk."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path
