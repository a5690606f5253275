"""nlcmd - turn natural language into shell commands and Python scripts."""

__version__ = "0.1.0"
