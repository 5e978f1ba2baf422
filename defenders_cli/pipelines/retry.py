"""Retry policy for pipeline status queries."""

from dataclasses import dataclass

from tenacity import stop_after_attempt, stop_after_delay, stop_any, stop_never
from tenacity.stop import stop_base

from defenders_cli.core.exceptions import ValidationError


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounds on consecutive failed status queries.

    With neither bound set, failed queries are retried until the process is
    interrupted, which suits an operator watching the terminal but not
    unattended automation.

    Attributes:
        max_attempts: Maximum consecutive query attempts (None for unlimited)
        deadline_seconds: Maximum time spent retrying one failing query
    """

    max_attempts: int | None = None
    deadline_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValidationError("deadline_seconds must be positive")

    @property
    def unbounded(self) -> bool:
        return self.max_attempts is None and self.deadline_seconds is None

    def stop_condition(self) -> stop_base:
        """Build the tenacity stop strategy for this policy."""
        stops: list[stop_base] = []
        if self.max_attempts is not None:
            stops.append(stop_after_attempt(self.max_attempts))
        if self.deadline_seconds is not None:
            stops.append(stop_after_delay(self.deadline_seconds))

        if not stops:
            return stop_never
        if len(stops) == 1:
            return stops[0]
        return stop_any(*stops)
