"""External command execution."""

import os
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

from defenders_cli.utils.logging import get_logger

logger = get_logger(__name__)

ISOLATED_AZ_CONFIG_DIRNAME = "defenders-az-isolated"


@dataclass
class CommandResult:
    """Captured output of one external command."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs external executables and captures their output.

    When a PAT is supplied the process gets ``AZURE_DEVOPS_EXT_PAT`` and an
    isolated ``AZURE_CONFIG_DIR`` so the az CLI authenticates with the token
    instead of falling back to ``az login`` credentials.
    """

    def __init__(self, timeout: int | None = None, isolated_config_dir: Path | None = None):
        """
        Initialize runner.

        Args:
            timeout: Default timeout in seconds for each command (None waits forever)
            isolated_config_dir: az config directory used for PAT-authenticated calls
        """
        self.timeout = timeout
        self.isolated_config_dir = isolated_config_dir or (
            Path(tempfile.gettempdir()) / ISOLATED_AZ_CONFIG_DIRNAME
        )

    def _build_env(self, pat: str | None) -> dict[str, str] | None:
        if not pat:
            return None

        self.isolated_config_dir.mkdir(parents=True, exist_ok=True)
        env = os.environ.copy()
        env["AZURE_DEVOPS_EXT_PAT"] = pat
        env["AZURE_CONFIG_DIR"] = str(self.isolated_config_dir)
        return env

    def run(
        self,
        name: str,
        args: list[str],
        pat: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """
        Run a command and capture stdout/stderr.

        A missing executable or a timeout is reported as a failed result
        rather than raised, so callers only have to check ``ok``.

        Args:
            name: Executable name (resolved on PATH)
            args: Arguments passed to the executable
            pat: Optional Azure DevOps PAT for az authentication
            timeout: Per-call timeout override in seconds

        Returns:
            CommandResult with captured output
        """
        cmd = [name, *args]
        timeout = timeout if timeout is not None else self.timeout

        logger.debug(f"[CMD] {' '.join(cmd)}")

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=self._build_env(pat),
            )
        except FileNotFoundError:
            logger.debug(f"[CMD] Executable not found: {name}")
            return CommandResult(stdout="", stderr=f"{name}: command not found", returncode=127)
        except subprocess.TimeoutExpired:
            logger.debug(f"[CMD] {name} timed out after {timeout}s")
            return CommandResult(
                stdout="",
                stderr=f"{name} timed out after {timeout} seconds",
                returncode=124,
            )

        logger.debug(f"[CMD] {name} exited with {completed.returncode}")
        return CommandResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            returncode=completed.returncode,
        )
