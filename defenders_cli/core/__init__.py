"""Core exception types."""

from defenders_cli.core.exceptions import (
    DefendersError,
    ConfigError,
    ValidationError,
    InvocationError,
    ParseError,
    GitOperationError,
    MonitorCancelled,
)

__all__ = [
    "DefendersError",
    "ConfigError",
    "ValidationError",
    "InvocationError",
    "ParseError",
    "GitOperationError",
    "MonitorCancelled",
]
