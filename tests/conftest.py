"""Shared fixtures and fakes for the nlcmd test suite."""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add packages to path
sys.path.insert(0, str(Path(__file__).parent.parent / "packages"))

from nlcmd.config import AppConfig, ProviderConfig
from nlcmd.context import Context, ExecutionOutcome, Exchange
from nlcmd.exceptions import ScriptStoreError
from nlcmd.machine import Services
from nlcmd.models import CommandResult, ScriptResult
from nlcmd.scripts import SavedScript

# Sentinel: answer a text prompt with its pre-filled default
DEFAULT = object()


def command_result(**overrides) -> CommandResult:
    fields = {"content": "ls -la", "explanation": "List files"}
    fields.update(overrides)
    return CommandResult(**fields)


def script_result(**overrides) -> ScriptResult:
    fields = {
        "content": "print('hello')\n",
        "explanation": "Says hello",
        "script_name": "Hello World",
    }
    fields.update(overrides)
    return ScriptResult(**fields)


class FakeGenerator:
    """Returns queued results (or raises queued exceptions) in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def generate(self, model, schema, messages, config=None):
        self.calls.append(SimpleNamespace(model=model, schema=schema, messages=messages, config=config))
        if not self.results:
            raise AssertionError("unexpected generation call")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakePrompter:
    """Scripted answers for every prompt type.

    Queue an exception instance (e.g. PromptCancelled()) to have that
    prompt raise it.
    """

    def __init__(self, texts=(), passwords=(), confirms=(), selects=(), checkboxes=(), keys=()):
        self.texts = list(texts)
        self.passwords = list(passwords)
        self.confirms = list(confirms)
        self.selects = list(selects)
        self.checkboxes = list(checkboxes)
        self.keys = list(keys)
        self.messages = []
        self.defaults = []
        self.choices = []
        self.waits = 0

    def _next(self, queue, kind):
        if not queue:
            raise AssertionError(f"unexpected {kind} prompt")
        answer = queue.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def text(self, message, default="", instruction=None):
        self.messages.append(message)
        self.defaults.append(default)
        answer = self._next(self.texts, "text")
        return default if answer is DEFAULT else answer

    def password(self, message):
        self.messages.append(message)
        return self._next(self.passwords, "password")

    def confirm(self, message, default=True):
        self.messages.append(message)
        return self._next(self.confirms, "confirm")

    def select(self, message, choices, default=None):
        self.messages.append(message)
        self.choices.append(choices)
        return self._next(self.selects, "select")

    def checkbox(self, message, choices):
        self.messages.append(message)
        self.choices.append(choices)
        return self._next(self.checkboxes, "checkbox")

    def read_key(self, valid_keys):
        while True:
            key = self._next(self.keys, "key")
            if key in valid_keys:
                return key

    def wait_for_key(self):
        self.waits += 1
        return self._next(self.keys, "key")


class FakeExecutor:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.commands = []

    def execute(self, command):
        self.commands.append(command)
        return self.outcomes.pop(0) if self.outcomes else ExecutionOutcome(output="")


class FakeScriptStore:
    """In-memory stand-in for ScriptStore."""

    def __init__(self, scripts=None, fail_save=False):
        self.scripts = dict(scripts or {})
        self.saved = []
        self.fail_save = fail_save

    def save(self, name, content, dependencies, scripts_dir, install=True):
        if self.fail_save:
            raise ScriptStoreError("Error creating script: disk full")
        self.saved.append(SimpleNamespace(name=name, content=content, dependencies=dependencies, install=install))
        self.scripts[name] = content
        return SavedScript(path=Path(scripts_dir) / name / "main.py", dependencies=list(dependencies), installed=install)

    def load(self, name, scripts_dir):
        if name not in self.scripts:
            raise ScriptStoreError(f"Script not found: {name}")
        return self.scripts[name]

    def list_available(self, scripts_dir):
        return list(self.scripts)

    def invocation(self, name, scripts_dir):
        return f"python {scripts_dir}/{name}/main.py"


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        default_model="openai/gpt-4o",
        models=["openai/gpt-4o", "openai/gpt-4o-mini", "anthropic/claude-3-5-haiku-20241022"],
        scripts_dir=str(tmp_path / "scripts"),
        providers={
            "openai": ProviderConfig(api_key="sk-openai"),
            "anthropic": ProviderConfig(api_key="sk-anthropic"),
        },
    )


@pytest.fixture
def make_context(config):
    """Build a Context with sensible defaults for handler tests."""

    def _make(request="list files", response=None, **overrides):
        fields = {
            "current_command": Exchange(request=request, response=response),
            "config": config,
            "system_info": {"operating_system": "Linux 6.1", "shell": "/bin/bash"},
            "model": config.default_model,
            "has_multiple_models": True,
        }
        fields.update(overrides)
        return Context(**fields)

    return _make


@pytest.fixture
def make_services():
    def _make(generator=None, prompter=None, executor=None, scripts=None, clipboard=None, save_config=None):
        copied = []

        def copy(text):
            copied.append(text)
            return True

        services = Services(
            generator=generator or FakeGenerator(),
            prompter=prompter or FakePrompter(),
            executor=executor or FakeExecutor(),
            scripts=scripts or FakeScriptStore(),
            copy_to_clipboard=clipboard or copy,
            save_config=save_config or (lambda cfg: Path("/tmp/nlcmd-test-config")),
        )
        services.copied = copied
        return services

    return _make
