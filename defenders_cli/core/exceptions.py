"""Custom exceptions for the defenders CLI."""


class DefendersError(Exception):
    """Base exception for all defenders CLI errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(DefendersError):
    """Configuration file could not be read, parsed or written."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, details={"path": path} if path else None)
        self.path = path


class ValidationError(DefendersError):
    """Invalid user input: missing arguments, malformed URLs, conflicting flags."""

    def __init__(self, message: str, help_text: str | None = None):
        super().__init__(message)
        self.help_text = help_text


class InvocationError(DefendersError):
    """An external command exited with a failure status."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        stderr: str | None = None,
        returncode: int | None = None,
    ):
        super().__init__(message)
        self.command = command
        self.stderr = stderr
        self.returncode = returncode

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr.strip()}"
        return self.message


class ParseError(DefendersError):
    """Command output was not valid JSON or lacked required fields."""

    def __init__(self, message: str, payload: str | None = None):
        super().__init__(message)
        self.payload = payload


class GitOperationError(DefendersError):
    """Error during Git operations."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        stderr: str | None = None,
    ):
        super().__init__(
            message,
            details={"command": command, "stderr": stderr} if command or stderr else None,
        )
        self.command = command
        self.stderr = stderr


class MonitorCancelled(DefendersError):
    """Raised when a pipeline monitor wait is aborted by its cancel event."""
