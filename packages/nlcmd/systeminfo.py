"""Snapshot of the host environment, embedded in every system prompt."""

import getpass
import logging
import os
import platform
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

from .config import SHELL_EXECUTABLE

logger = logging.getLogger(__name__)

TOOL_COMMANDS = {
    "git": ["git", "--version"],
    "python3": ["python3", "--version"],
    "node": ["node", "--version"],
    "npm": ["npm", "--version"],
    "docker": ["docker", "--version"],
    "gcc": ["gcc", "--version"],
    "java": ["java", "-version"],
}

PACKAGE_MANAGERS = {
    "apt": ("Linux",),
    "dnf": ("Linux",),
    "yum": ("Linux",),
    "pacman": ("Linux",),
    "brew": ("Darwin", "Linux"),
    "pip": ("Darwin", "Linux", "Windows"),
    "uv": ("Darwin", "Linux", "Windows"),
    "choco": ("Windows",),
    "winget": ("Windows",),
}

PROJECT_MARKERS = {
    "pyproject.toml": "python",
    "setup.py": "python",
    "requirements.txt": "python",
    "package.json": "node",
    "Cargo.toml": "rust",
    "go.mod": "go",
    "pom.xml": "java",
    "build.gradle": "java",
    "Gemfile": "ruby",
    "composer.json": "php",
    "Makefile": "make",
}


def _run(args: list[str], cwd: str | None = None) -> str | None:
    """Run a short probe command, returning the first line of output or None."""
    try:
        result = subprocess.run(
            args, cwd=cwd, capture_output=True, text=True, timeout=5
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    output = (result.stdout or result.stderr).strip()
    return output.splitlines()[0] if output else ""


def get_installed_tools() -> dict[str, str]:
    tools = {}
    for name, args in TOOL_COMMANDS.items():
        if not shutil.which(args[0]):
            continue
        version = _run(args)
        if version is not None:
            tools[name] = version
    return tools


def detect_package_managers() -> list[str]:
    system = platform.system()
    return [
        name
        for name, systems in PACKAGE_MANAGERS.items()
        if system in systems and shutil.which(name)
    ]


def get_git_status(cwd: str) -> dict[str, Any] | None:
    """Branch and dirty flag when cwd is inside a git work tree."""
    if not shutil.which("git"):
        return None
    if _run(["git", "rev-parse", "--is-inside-work-tree"], cwd=cwd) != "true":
        return None
    branch = _run(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
    try:
        status = subprocess.run(
            ["git", "status", "--porcelain"],
            cwd=cwd, capture_output=True, text=True, timeout=5,
        ).stdout
    except (OSError, subprocess.TimeoutExpired):
        status = ""
    return {"branch": branch or "unknown", "has_changes": bool(status.strip())}


def detect_project_types(cwd: str) -> list[str]:
    found = []
    for marker, kind in PROJECT_MARKERS.items():
        if (Path(cwd) / marker).exists() and kind not in found:
            found.append(kind)
    return found


def detect_virtual_environments(cwd: str) -> dict[str, str]:
    envs = {}
    if os.getenv("VIRTUAL_ENV"):
        envs["active_venv"] = os.environ["VIRTUAL_ENV"]
    if os.getenv("CONDA_DEFAULT_ENV"):
        envs["conda"] = os.environ["CONDA_DEFAULT_ENV"]
    for name in (".venv", "venv", "env"):
        if (Path(cwd) / name / "pyvenv.cfg").exists():
            envs["local_venv"] = str(Path(cwd) / name)
            break
    return envs


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if value < 1024 or unit == "TB":
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _is_admin() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid and geteuid() == 0)


def get_system_info() -> dict[str, Any]:
    """Gather the facts the prompts describe in their SYSTEM CONTEXT block."""
    cwd = os.getcwd()
    info: dict[str, Any] = {
        "current_directory": cwd,
        "home_directory": str(Path.home()),
        "username": _username(),
        "operating_system": f"{platform.system()} {platform.release()}",
        "shell": SHELL_EXECUTABLE,
        "architecture": f"{platform.machine()} ({platform.system().lower()})",
        "terminal": os.getenv("TERM") or os.getenv("TERM_PROGRAM") or "unknown",
        "date_time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "is_admin": _is_admin(),
    }

    info["installed_tools"] = get_installed_tools()
    info["package_managers"] = detect_package_managers()
    info["git_status"] = get_git_status(cwd)
    info["project_types"] = detect_project_types(cwd)
    info["virtual_environments"] = detect_virtual_environments(cwd)

    try:
        info["disk_space_free"] = _format_bytes(shutil.disk_usage(cwd).free)
    except OSError as e:
        logger.warning("Could not read disk usage for %s: %s", cwd, e)
        info["disk_space_free"] = None

    logger.debug("System info: %s", info)
    return info
