"""Interactive prompts and single-keypress capture.

Line and list prompts go through questionary. Menus that react to a
single key use KeyCapture, a raw-mode terminal session of which only one
may be active at a time.
"""

import os
import select
import sys
from typing import Any, Iterable, Optional, TextIO

import questionary

from .exceptions import PromptCancelled

try:
    import termios
    import tty
except ImportError:  # Windows
    termios = None
    tty = None

PROMPT_STYLE = questionary.Style([
    ("qmark", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("pointer", "fg:cyan bold"),
    ("instruction", "fg:#808080 italic"),
])

# Raw bytes mapped to the names menus compare against
KEY_NAMES = {
    "\r": "return",
    "\n": "return",
    "\x03": "ctrl+c",
    "\x04": "ctrl+d",
    "\x1b": "escape",
}


class KeyCapture:
    """Scoped raw-mode session for reading single keypresses.

    Usage:
        with KeyCapture() as keys:
            key = keys.read_key()

    Entering while another session is active raises RuntimeError; the
    terminal mode is restored on every exit path.
    """

    _active: Optional["KeyCapture"] = None

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdin
        self._fd: Optional[int] = None
        self._old_settings: Any = None

    @classmethod
    def active(cls) -> Optional["KeyCapture"]:
        return cls._active

    def _is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(termios and isatty and isatty())

    def __enter__(self) -> "KeyCapture":
        if KeyCapture._active is not None:
            raise RuntimeError("A key capture session is already active")
        if self._is_tty():
            self._fd = self.stream.fileno()
            self._old_settings = termios.tcgetattr(self._fd)
            tty.setraw(self._fd)
        KeyCapture._active = self
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._fd is not None and self._old_settings is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)
        finally:
            self._fd = None
            self._old_settings = None
            KeyCapture._active = None

    def _read_char(self) -> str:
        if self._fd is None:
            return self.stream.read(1)
        char = os.read(self._fd, 1).decode(errors="ignore")
        if char == "\x1b":
            # Arrow keys and friends arrive as an escape sequence
            ready, _, _ = select.select([self._fd], [], [], 0.05)
            if ready:
                return char + os.read(self._fd, 8).decode(errors="ignore")
        return char

    def read_key(self) -> str:
        """Block for one keypress and return its name.

        Printable keys come back as the character itself (lowercased);
        Enter, Ctrl+C, Ctrl+D and Esc come back as 'return', 'ctrl+c',
        'ctrl+d' and 'escape'. End of input reads as 'ctrl+d'.
        """
        if KeyCapture._active is not self:
            raise RuntimeError("read_key() called outside an active key capture session")
        char = self._read_char()
        if char == "":
            return "ctrl+d"
        if char in KEY_NAMES:
            return KEY_NAMES[char]
        return char.lower() if len(char) == 1 else char


class Prompter:
    """Thin wrapper over questionary that turns Ctrl+C into PromptCancelled."""

    def __init__(self, key_stream: Optional[TextIO] = None):
        self.key_stream = key_stream

    def _ask(self, question: questionary.Question) -> Any:
        try:
            return question.unsafe_ask()
        except KeyboardInterrupt:
            raise PromptCancelled()

    def text(self, message: str, default: str = "", instruction: Optional[str] = None) -> str:
        answer = self._ask(
            questionary.text(message, default=default, instruction=instruction, style=PROMPT_STYLE)
        )
        return (answer or "").strip()

    def password(self, message: str) -> str:
        answer = self._ask(questionary.password(message, style=PROMPT_STYLE))
        return (answer or "").strip()

    def confirm(self, message: str, default: bool = True) -> bool:
        return bool(self._ask(questionary.confirm(message, default=default, style=PROMPT_STYLE)))

    def select(self, message: str, choices: list[Any], default: Any = None) -> Any:
        """Pick one entry; choices may mix strings, questionary.Choice and Separator."""
        answer = self._ask(
            questionary.select(message, choices=choices, default=default, style=PROMPT_STYLE)
        )
        if answer is None:
            raise PromptCancelled()
        return answer

    def checkbox(self, message: str, choices: list[Any]) -> list[Any]:
        answer = self._ask(questionary.checkbox(message, choices=choices, style=PROMPT_STYLE))
        return list(answer or [])

    def key_capture(self) -> KeyCapture:
        return KeyCapture(self.key_stream)

    def read_key(self, valid_keys: Iterable[str]) -> str:
        """Wait until one of valid_keys is pressed; everything else is ignored.

        Raises:
            PromptCancelled: On Ctrl+D or end of input, unless listed as valid
        """
        valid = set(valid_keys)
        with self.key_capture() as keys:
            while True:
                key = keys.read_key()
                if key in valid:
                    return key
                if key == "ctrl+d":
                    raise PromptCancelled()

    def wait_for_key(self) -> str:
        with self.key_capture() as keys:
            return keys.read_key()
