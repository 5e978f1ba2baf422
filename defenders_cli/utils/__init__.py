"""Utility modules for logging, JSON handling and process execution."""

from defenders_cli.utils.logging import setup_logging, get_logger
from defenders_cli.utils.json_utils import JsonHandler
from defenders_cli.utils.process import CommandResult, CommandRunner

__all__ = [
    "setup_logging",
    "get_logger",
    "JsonHandler",
    "CommandResult",
    "CommandRunner",
]
