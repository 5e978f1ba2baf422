"""Pipeline monitoring and triggering."""

from defenders_cli.pipelines.monitor import (
    MonitorOutcome,
    MonitorRequest,
    MonitorResult,
    PipelineMonitor,
)
from defenders_cli.pipelines.retry import RetryPolicy

__all__ = [
    "MonitorOutcome",
    "MonitorRequest",
    "MonitorResult",
    "PipelineMonitor",
    "RetryPolicy",
]
