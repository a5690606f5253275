"""On-disk store for generated scripts.

Each script lives in its own directory under the scripts dir:

    <scripts_dir>/<name>/main.py
    <scripts_dir>/<name>/requirements.txt
    <scripts_dir>/<name>/.venv/            (only when it has dependencies)
"""

import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import ScriptStoreError

logger = logging.getLogger(__name__)

SCRIPT_FILENAME = "main.py"
REQUIREMENTS_FILENAME = "requirements.txt"
VENV_DIRNAME = ".venv"


@dataclass
class SavedScript:
    """Where a script was written and whether its dependencies installed."""
    path: Path
    dependencies: list[str]
    installed: bool = False
    install_error: Optional[str] = None


def _venv_python(script_dir: Path) -> Path:
    if sys.platform == "win32":
        return script_dir / VENV_DIRNAME / "Scripts" / "python.exe"
    return script_dir / VENV_DIRNAME / "bin" / "python"


class ScriptStore:
    """Saves, loads and lists generated scripts."""

    def __init__(self, python: str = sys.executable, install_timeout: int = 600):
        self.python = python
        self.install_timeout = install_timeout

    def script_dir(self, name: str, scripts_dir: Path | str) -> Path:
        return Path(scripts_dir).expanduser() / name

    def save(
        self,
        name: str,
        content: str,
        dependencies: list[str],
        scripts_dir: Path | str,
        install: bool = True,
    ) -> SavedScript:
        """Write main.py and requirements.txt, then install dependencies.

        Dependency installation failures are reported on the returned
        SavedScript rather than raised.

        Raises:
            ScriptStoreError: If the script files cannot be written
        """
        script_dir = self.script_dir(name, scripts_dir)
        script_path = script_dir / SCRIPT_FILENAME
        deps = [dep.strip() for dep in dependencies if dep.strip()]

        try:
            script_dir.mkdir(parents=True, exist_ok=True)
            script_path.write_text(content, encoding="utf-8")
            if deps:
                (script_dir / REQUIREMENTS_FILENAME).write_text(
                    "\n".join(deps) + "\n", encoding="utf-8"
                )
        except OSError as e:
            raise ScriptStoreError(f"Error creating script: {e}", path=str(script_path))

        logger.info("Saved script %s (%d dependencies)", script_path, len(deps))
        saved = SavedScript(path=script_path, dependencies=deps)
        if deps and install:
            saved.install_error = self.install_dependencies(script_dir)
            saved.installed = saved.install_error is None
        return saved

    def install_dependencies(self, script_dir: Path) -> Optional[str]:
        """Create the script's virtualenv and pip install its requirements.

        Returns:
            None on success, otherwise a description of what failed
        """
        steps = []
        if not _venv_python(script_dir).exists():
            steps.append([self.python, "-m", "venv", str(script_dir / VENV_DIRNAME)])
        steps.append([
            str(_venv_python(script_dir)), "-m", "pip", "install", "--quiet",
            "-r", str(script_dir / REQUIREMENTS_FILENAME),
        ])

        for args in steps:
            logger.debug("Running %s", args)
            try:
                result = subprocess.run(
                    args, cwd=script_dir, capture_output=True, text=True,
                    timeout=self.install_timeout,
                )
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning("Dependency install failed in %s: %s", script_dir, e)
                return str(e)
            if result.returncode != 0:
                message = (result.stderr or result.stdout).strip().splitlines()
                error = message[-1] if message else f"exit code {result.returncode}"
                logger.warning("Dependency install failed in %s: %s", script_dir, error)
                return error
        return None

    def load(self, name: str, scripts_dir: Path | str) -> str:
        """Return the contents of a saved script.

        Raises:
            ScriptStoreError: If the script does not exist or cannot be read
        """
        script_path = self.script_dir(name, scripts_dir) / SCRIPT_FILENAME
        if not script_path.is_file():
            raise ScriptStoreError(f"Script not found: {script_path}", path=str(script_path))
        try:
            return script_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ScriptStoreError(f"Error reading script {script_path}: {e}", path=str(script_path))

    def list_available(self, scripts_dir: Path | str) -> list[str]:
        """Names of saved scripts, most recently modified first."""
        base = Path(scripts_dir).expanduser()
        if not base.is_dir():
            return []
        found = []
        for entry in base.iterdir():
            script_path = entry / SCRIPT_FILENAME
            if entry.is_dir() and script_path.is_file():
                found.append((script_path.stat().st_mtime, entry.name))
        found.sort(key=lambda item: item[0], reverse=True)
        return [name for _, name in found]

    def invocation(self, name: str, scripts_dir: Path | str) -> str:
        """Shell command line that runs the saved script."""
        script_dir = self.script_dir(name, scripts_dir)
        venv_python = _venv_python(script_dir)
        python = str(venv_python) if venv_python.exists() else self.python
        return f"{shlex.quote(python)} {shlex.quote(str(script_dir / SCRIPT_FILENAME))}"
