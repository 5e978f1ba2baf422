"""Command-line helpers for everyday Azure DevOps work on top of the az CLI."""

__version__ = "0.3.0"
