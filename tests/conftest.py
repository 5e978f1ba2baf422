"""Shared test fixtures for the defenders CLI."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from defenders_cli.cli import AppContext
from defenders_cli.config import ConfigStore
from defenders_cli.utils.json_utils import JsonHandler
from defenders_cli.utils.process import CommandResult

ENV_VARS = (
    "ADO_PAT",
    "ADO_ORG",
    "ADO_PROJECT",
    "ADO_TEAM",
    "ADO_AREA",
    "ADO_ASSIGNED_TO",
    "DEFENDERS_LOG_LEVEL",
    "DEFENDERS_LOG_FILE",
)


def ok(payload: Any = None, stdout: str | None = None) -> CommandResult:
    """Successful command result with a JSON (or raw) body."""
    if stdout is None:
        stdout = JsonHandler.dumps(payload) if payload is not None else ""
    return CommandResult(stdout=stdout, stderr="", returncode=0)


def fail(stderr: str = "ERROR: something went wrong", returncode: int = 1) -> CommandResult:
    """Failed command result."""
    return CommandResult(stdout="", stderr=stderr, returncode=returncode)


@dataclass
class RecordedCall:
    name: str
    args: list[str]
    pat: str | None


class FakeRunner:
    """
    Scripted stand-in for CommandRunner.

    Results are queued per argument prefix; the last queued result for a
    prefix is repeated once the queue runs down to it.
    """

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self._scripts: dict[tuple[str, ...], deque[CommandResult]] = {}

    def add(self, prefix: str, *results: CommandResult) -> "FakeRunner":
        self._scripts.setdefault(tuple(prefix.split()), deque()).extend(results)
        return self

    def calls_to(self, prefix: str) -> list[RecordedCall]:
        tokens = prefix.split()
        return [call for call in self.calls if call.args[: len(tokens)] == tokens]

    def run(
        self,
        name: str,
        args: list[str],
        pat: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append(RecordedCall(name=name, args=list(args), pat=pat))

        # Longest matching prefix wins
        for prefix in sorted(self._scripts, key=len, reverse=True):
            if tuple(args[: len(prefix)]) == prefix:
                queue = self._scripts[prefix]
                if len(queue) > 1:
                    return queue.popleft()
                return queue[0]

        raise AssertionError(f"Unexpected command: {name} {' '.join(args)}")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Clear ADO_* variables and point the config directory at a temp dir."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    config_dir = tmp_path / "config-home"
    monkeypatch.setenv("DEFENDERS_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def runner() -> FakeRunner:
    """Provide an empty scripted command runner."""
    return FakeRunner()


@pytest.fixture
def config_store(tmp_path: Path) -> ConfigStore:
    """Provide a ConfigStore backed by a temp file."""
    return ConfigStore(tmp_path / "defenders" / "config.json")


@pytest.fixture
def app(config_store: ConfigStore, runner: FakeRunner) -> AppContext:
    """Provide an AppContext wired to the temp store and fake runner."""
    return AppContext(store=config_store, runner=runner)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
