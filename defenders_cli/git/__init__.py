"""Local Git repository lookups."""

from defenders_cli.git.operations import GitOperations, branch_title

__all__ = ["GitOperations", "branch_title"]
