"""Git operations for pull request creation."""

from pathlib import Path

import git
from git import GitCommandError, Repo

from defenders_cli.core.exceptions import GitOperationError
from defenders_cli.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BRANCH_CANDIDATES = ("develop", "main", "master")


class GitOperations:
    """
    Wrapper for the Git lookups needed by ``prme`` using GitPython.
    """

    def __init__(self, repo_path: Path | None = None, remote: str = "origin"):
        """
        Open the repository containing ``repo_path``.

        Args:
            repo_path: Any path inside the working tree (defaults to cwd)
            remote: Remote whose branches determine the default branch
        """
        self.repo_path = repo_path or Path.cwd()
        self.remote = remote
        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise GitOperationError(
                "not in a git repository or no branch checked out",
                stderr=str(e),
            ) from e

    def get_current_branch(self) -> str:
        """
        Get the checked-out branch name.

        Raises:
            GitOperationError: On a detached HEAD
        """
        try:
            return self.repo.active_branch.name
        except TypeError as e:
            raise GitOperationError(
                "not in a git repository or no branch checked out",
                command="git branch --show-current",
                stderr=str(e),
            ) from e

    def _has_remote_branch(self, branch: str) -> bool:
        ref_path = f"refs/remotes/{self.remote}/{branch}"
        return any(ref.path == ref_path for ref in self.repo.refs)

    def get_default_branch(self) -> str:
        """
        Determine the branch pull requests should target.

        Prefers ``develop``, then ``main``, then ``master`` when they exist on
        the remote, and finally asks the remote for its HEAD branch.

        Raises:
            GitOperationError: If no default branch can be determined
        """
        for candidate in DEFAULT_BRANCH_CANDIDATES:
            if self._has_remote_branch(candidate):
                logger.debug(f"[GIT] Default branch: {candidate}")
                return candidate

        try:
            output = self.repo.git.remote("show", self.remote)
        except GitCommandError as e:
            raise GitOperationError(
                "could not determine default branch",
                command=f"git remote show {self.remote}",
                stderr=e.stderr,
            ) from e

        for line in output.splitlines():
            if "HEAD branch" in line:
                _, _, branch = line.partition(":")
                branch = branch.strip()
                if branch and branch != "(unknown)":
                    return branch

        raise GitOperationError("could not determine default branch")


def branch_title(branch: str) -> str:
    """Default PR title: the branch name after its last slash."""
    return branch.rsplit("/", 1)[-1]
