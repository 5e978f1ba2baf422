"""Parsing of Azure DevOps web URLs into az CLI arguments."""

from dataclasses import dataclass, field
from urllib.parse import parse_qs, unquote, urlparse

from defenders_cli.core.exceptions import ValidationError


@dataclass(frozen=True)
class PipelineUrl:
    """Organization, project and query parameters of a pipeline/build URL."""

    org_url: str
    project: str
    query: dict[str, str] = field(default_factory=dict)

    def require(self, param: str) -> str:
        """Return a query parameter or raise ValidationError when absent."""
        value = self.query.get(param, "")
        if not value:
            raise ValidationError(f"Could not extract {param} from URL")
        return value

    @property
    def definition_id(self) -> str:
        return self.require("definitionId")

    @property
    def build_id(self) -> str:
        return self.require("buildId")


@dataclass(frozen=True)
class PullRequestUrl:
    """Components of a pull request URL."""

    org_url: str
    project: str
    repository: str
    pull_request_id: str


def _path_parts(path: str) -> list[str]:
    stripped = path.strip("/")
    return stripped.split("/") if stripped else []


def parse_pipeline_url(url: str) -> PipelineUrl:
    """
    Parse an Azure DevOps pipeline URL.

    Supported formats:
        https://dev.azure.com/{org}/{project}/_build?definitionId=123
        https://dev.azure.com/{org}/{project}/_build/results?buildId=123
        https://{org}.visualstudio.com/{project}/_build?definitionId=123

    Args:
        url: Pipeline definition or build results URL

    Returns:
        PipelineUrl with the organization URL, project and query parameters

    Raises:
        ValidationError: If the host is not recognised or segments are missing
    """
    parsed = urlparse(url)
    parts = _path_parts(parsed.path)
    host = parsed.netloc.lower()

    if host.endswith("dev.azure.com"):
        if len(parts) < 2:
            raise ValidationError("invalid ADO URL - expected org and project in path")
        org_url = f"https://dev.azure.com/{parts[0]}"
        project = unquote(parts[1])
    elif host.endswith("visualstudio.com"):
        if len(parts) < 1:
            raise ValidationError("invalid ADO URL - expected project in path")
        org_url = f"{parsed.scheme}://{parsed.netloc}"
        project = unquote(parts[0])
    else:
        raise ValidationError(f"unrecognized ADO URL format: {url}")

    # Route segments such as _build start with an underscore, project names cannot
    if project.startswith("_"):
        raise ValidationError("invalid ADO URL - expected project in path")

    # First value wins for repeated parameters
    query = {key: values[0] for key, values in parse_qs(parsed.query).items() if values}

    return PipelineUrl(org_url=org_url, project=project, query=query)


def parse_pull_request_url(url: str) -> PullRequestUrl:
    """
    Parse an Azure DevOps pull request URL.

    Supported formats:
        https://dev.azure.com/{org}/{project}/_git/{repo}/pullrequest/{id}
        https://{org}.visualstudio.com/{project}/_git/{repo}/pullrequest/{id}
        https://{server}/{collection}/{project}/_git/{repo}/pullrequest/{id}

    Trailing segments after the id (e.g. ``/overview``) are ignored.

    Raises:
        ValidationError: If the _git or pullrequest segments are missing
    """
    parsed = urlparse(url)
    parts = _path_parts(parsed.path)

    try:
        git_index = parts.index("_git")
        pr_index = parts.index("pullrequest", git_index)
    except ValueError:
        raise ValidationError(f"invalid PR URL format: {url}") from None

    if git_index < 1 or pr_index != git_index + 2 or pr_index + 1 >= len(parts):
        raise ValidationError(f"invalid PR URL format: {url}")

    pull_request_id = parts[pr_index + 1]
    if not pull_request_id.isdigit():
        raise ValidationError(f"invalid pull request id in URL: {pull_request_id}")

    if parsed.netloc.lower().endswith("dev.azure.com"):
        if git_index < 2:
            raise ValidationError(f"invalid PR URL format: {url}")
        org_url = f"{parsed.scheme}://{parsed.netloc}/{parts[0]}"
    else:
        org_url = f"{parsed.scheme}://{parsed.netloc}"

    return PullRequestUrl(
        org_url=org_url,
        project=unquote(parts[git_index - 1]),
        repository=unquote(parts[git_index + 1]),
        pull_request_id=pull_request_id,
    )


def build_results_url(org_url: str, project: str, build_id: str | int) -> str:
    """Web URL of a pipeline run's results page."""
    return f"{org_url.rstrip('/')}/{project}/_build/results?buildId={build_id}&view=results"


def pull_request_web_url(org_url: str, project: str, repository: str, pull_request_id: str | int) -> str:
    """Web URL of a pull request."""
    return f"{org_url.rstrip('/')}/{project}/_git/{repository}/pullrequest/{pull_request_id}"


def work_item_web_url(org_url: str, project: str, work_item_id: str | int) -> str:
    """Web URL of a work item's edit page."""
    return f"{org_url.rstrip('/')}/{project}/_workitems/edit/{work_item_id}"


def token_settings_url(org_url: str) -> str:
    """Web URL of the PAT management page for an organization."""
    return f"{org_url.rstrip('/')}/_usersSettings/tokens"
