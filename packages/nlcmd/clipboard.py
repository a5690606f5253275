"""System clipboard access."""

import logging

import pyperclip

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> bool:
    """Copy text to the clipboard, returning False when no clipboard is available."""
    try:
        pyperclip.copy(text.strip())
    except pyperclip.PyperclipException as e:
        logger.warning("Clipboard copy failed: %s", e)
        return False
    return True
