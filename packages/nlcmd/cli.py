"""Command line entry point for nlcmd."""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__, display
from .config import EXAMPLE_CONFIG, LOG_FILE, LOG_LEVEL, AppConfig, load_config, validate_model_override
from .context import Context, Exchange, State
from .exceptions import ConfigurationError, InvalidModelError
from .machine import Services, StateMachine
from .states import HANDLERS
from .systeminfo import get_system_info

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nlcmd",
        description="Convert natural language to shell commands and Python scripts",
    )
    parser.add_argument(
        "request",
        nargs="*",
        help="Natural language request for a command or script",
    )
    parser.add_argument(
        "--model",
        metavar="PROVIDER/MODEL",
        help="Override the default model from config",
    )
    parser.add_argument(
        "--script",
        action="store_true",
        help="Skip command generation and go directly to script mode",
    )
    parser.add_argument(
        "--refine-scripts",
        action="store_true",
        help="Select and refine an existing script from the scripts directory",
    )
    parser.add_argument(
        "--setup",
        action="store_true",
        help="Enter setup mode to configure or modify your nlcmd settings",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable the 'd' key to inspect raw model responses",
    )
    parser.add_argument(
        "--no-install",
        action="store_true",
        help="Do not install script dependencies when saving scripts",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(debug: bool = False) -> None:
    """Send log records to the log file; the terminal belongs to the conversation."""
    level = logging.DEBUG if debug else getattr(logging, LOG_LEVEL, logging.WARNING)
    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[handler],
    )


def initial_state(args: argparse.Namespace, config: Optional[AppConfig], request: str) -> State:
    if config is None or args.setup:
        return State.SETUP
    if args.refine_scripts:
        return State.SCRIPT_SELECTION
    if not request:
        return State.NEW
    return State.USER_REQUEST


def build_context(
    args: argparse.Namespace,
    config: Optional[AppConfig],
    request: str,
    system_info: dict,
) -> Context:
    model = args.model or (config.default_model if config else None)
    return Context(
        current_command=Exchange(request=request),
        config=config,
        system_info=system_info,
        model=model,
        script_mode=args.script or args.refine_scripts,
        has_multiple_models=bool(config and len(config.models) > 1),
        debug=args.debug,
        skip_dependency_install=args.no_install,
    )


def main(argv: Optional[Sequence[str]] = None, services: Optional[Services] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)
    request = " ".join(args.request).strip()

    try:
        config = load_config()
        if args.model:
            if config is None:
                raise ConfigurationError("Run `nlcmd --setup` before choosing a model.")
            validate_model_override(args.model, config)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        display.error(f"Error: {e}")
        for issue in e.issues:
            display.error(f"- {issue}")
        if e.issues:
            display.info("Please update your configuration file with the correct format:")
            display.text(EXAMPLE_CONFIG)
        return 1
    except InvalidModelError as e:
        logger.error("Invalid model override: %s", e)
        display.error(f"Error: {e}")
        return 1

    context = build_context(args, config, request, get_system_info())
    state = initial_state(args, config, request)
    if args.script and request and state == State.USER_REQUEST:
        display.info(f'\nGenerating Python script for: "{request}"')

    machine = StateMachine(HANDLERS, services or Services())
    try:
        machine.run(context, state)
    except KeyboardInterrupt:
        display.nl()
        display.info("Exiting nlcmd...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
