"""Logging for the defenders CLI.

Diagnostics go to stderr through rich so they never mix with command output
on stdout. Every module logs under the ``defenders_cli`` namespace.
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "defenders_cli"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Chatty third-party loggers, kept at WARNING unless running at DEBUG
NOISY_LOGGERS = ("git", "urllib3")


def _console_handler(level: int, log_format: str, rich_console: bool) -> logging.Handler:
    if rich_console:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            tracebacks_suppress=[click],
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(log_format))
    handler.setLevel(level)
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = DEFAULT_FORMAT,
    log_file: Path | None = None,
    rich_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``defenders_cli`` logger.

    Safe to call more than once: existing handlers are replaced, so each CLI
    invocation starts from a clean configuration.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format for the plain console handler and the log file
        log_file: Optional file that receives every record at DEBUG
        rich_console: Render console records with rich

    Returns:
        The configured namespace logger
    """
    console_level = logging.getLevelName(level.upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = False

    root.addHandler(_console_handler(console_level, log_format, rich_console))

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log_format))
        root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(console_level)

    noisy_level = logging.DEBUG if console_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``defenders_cli`` namespace.

    Configures default logging on first use if nothing has been set up yet.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        setup_logging()

    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return root.getChild(name)
