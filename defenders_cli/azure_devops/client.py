"""Azure DevOps operations executed through the az CLI."""

from typing import Any, TypeVar

import orjson
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from defenders_cli.azure_devops.models import CreatedPullRequest, PipelineRun
from defenders_cli.core.exceptions import InvocationError, ParseError
from defenders_cli.utils.json_utils import JsonHandler
from defenders_cli.utils.logging import get_logger
from defenders_cli.utils.process import CommandRunner

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

AZ = "az"


class AzureCliClient:
    """
    Client for Azure DevOps operations through the ``az`` executable.

    Every call goes through the command runner; failures surface the
    captured stderr verbatim via InvocationError, and JSON responses are
    validated into explicit result models.
    """

    def __init__(self, runner: CommandRunner | None = None, pat: str | None = None):
        """
        Initialize the client.

        Args:
            runner: Command runner (a default subprocess runner if omitted)
            pat: Personal Access Token; when empty the az login identity is used
        """
        self.runner = runner or CommandRunner()
        self.pat = pat or None

    def _run(self, args: list[str], description: str) -> str:
        result = self.runner.run(AZ, args, pat=self.pat)
        if not result.ok:
            logger.debug(f"[AZ] {description} failed with exit code {result.returncode}")
            raise InvocationError(
                description,
                command=f"{AZ} {' '.join(args[:3])}",
                stderr=result.stderr,
                returncode=result.returncode,
            )
        return result.stdout

    def _run_json(self, args: list[str], description: str) -> Any:
        stdout = self._run([*args, "-o", "json"], description)
        try:
            return JsonHandler.loads(stdout)
        except orjson.JSONDecodeError as e:
            raise ParseError(f"Error parsing response: {e}", payload=stdout) from e

    def _run_model(self, model: type[ModelT], args: list[str], description: str) -> ModelT:
        data = self._run_json(args, description)
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ParseError(
                f"Unexpected response from '{AZ} {' '.join(args[:3])}': {e.error_count()} invalid field(s)",
                payload=JsonHandler.dumps(data),
            ) from e

    def _run_tsv(self, args: list[str], description: str) -> str:
        return self._run([*args, "-o", "tsv"], description).strip()

    # Pipelines

    def show_run(self, org_url: str, project: str, build_id: str) -> PipelineRun:
        """Get the status of one pipeline run."""
        return self._run_model(
            PipelineRun,
            ["pipelines", "runs", "show", "--id", build_id, "--org", org_url, "--project", project],
            "Error checking pipeline status",
        )

    def run_pipeline(self, org_url: str, project: str, definition_id: str) -> PipelineRun:
        """Queue a new run of a pipeline definition."""
        return self._run_model(
            PipelineRun,
            ["pipelines", "run", "--id", definition_id, "--org", org_url, "--project", project],
            "Failed to trigger pipeline",
        )

    # Boards

    def current_iteration(self, org_url: str, project: str, team: str) -> str:
        """
        Get the path of the team's current iteration.

        Raises:
            InvocationError: If the query fails or returns no iteration
        """
        iteration = self._run_tsv(
            [
                "boards", "iteration", "team", "list",
                "--org", org_url,
                "--project", project,
                "--team", team,
                "--timeframe", "current",
                "--query", "[0].path",
            ],
            "Could not get current iteration",
        )
        if not iteration:
            raise InvocationError("Could not get current iteration")
        return iteration

    def create_work_item(
        self,
        org_url: str,
        project: str,
        title: str,
        iteration: str,
        area: str,
        assigned_to: str | None = None,
        work_item_type: str = "Feature",
    ) -> str:
        """
        Create a work item.

        Returns:
            The new work item ID
        """
        args = [
            "boards", "work-item", "create",
            "--org", org_url,
            "--project", project,
            "--type", work_item_type,
            "--title", title,
            "--iteration", iteration,
            "--area", area,
            "--query", "id",
        ]
        if assigned_to:
            args.extend(["--assigned-to", assigned_to])

        work_item_id = self._run_tsv(args, "Failed to create work item")
        if not work_item_id:
            raise InvocationError("Failed to create work item")
        return work_item_id

    def add_parent_link(self, org_url: str, work_item_id: str, parent_id: str) -> None:
        """Link a work item to its parent."""
        self._run(
            [
                "boards", "work-item", "relation", "add",
                "--org", org_url,
                "--id", work_item_id,
                "--relation-type", "parent",
                "--target-id", parent_id,
            ],
            "Failed to add parent link",
        )

    # Repos

    def create_pull_request(
        self,
        source_branch: str,
        target_branch: str,
        title: str,
        work_items: list[str] | None = None,
    ) -> CreatedPullRequest:
        """Create a pull request in the repository detected from the git remote."""
        args = [
            "repos", "pr", "create",
            "-s", source_branch,
            "-t", target_branch,
            "--title", title,
        ]
        if work_items:
            args.extend(["--work-items", *work_items])

        return self._run_model(CreatedPullRequest, args, "Failed to create PR")

    def set_pull_request_vote(self, org_url: str, pull_request_id: str, vote: str) -> dict | None:
        """
        Set the caller's vote on a pull request.

        The vote itself is the side effect; an unparsable body after a
        successful call is returned as None rather than raised.
        """
        stdout = self._run(
            [
                "repos", "pr", "set-vote",
                "--id", pull_request_id,
                "--vote", vote,
                "--org", org_url,
                "-o", "json",
            ],
            "Failed to set vote",
        )
        return JsonHandler.safe_loads(stdout)
