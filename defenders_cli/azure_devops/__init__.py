"""Azure DevOps access through the az CLI."""

from defenders_cli.azure_devops.client import AzureCliClient
from defenders_cli.azure_devops.models import (
    CreatedPullRequest,
    PipelineRun,
    RunResult,
    RunStatus,
)
from defenders_cli.azure_devops.urls import (
    PipelineUrl,
    PullRequestUrl,
    parse_pipeline_url,
    parse_pull_request_url,
)

__all__ = [
    "AzureCliClient",
    "CreatedPullRequest",
    "PipelineRun",
    "RunResult",
    "RunStatus",
    "PipelineUrl",
    "PullRequestUrl",
    "parse_pipeline_url",
    "parse_pull_request_url",
]
