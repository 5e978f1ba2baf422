"""Tests for the subprocess-backed command runner."""

from __future__ import annotations

import sys
from pathlib import Path

from defenders_cli.utils.process import CommandResult, CommandRunner


class TestCommandRunner:
    def test_captures_stdout(self):
        result = CommandRunner().run(sys.executable, ["-c", "print('hello')"])
        assert result.ok
        assert result.stdout.strip() == "hello"

    def test_failure_keeps_stderr(self):
        result = CommandRunner().run(
            sys.executable,
            ["-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
        )
        assert not result.ok
        assert result.returncode == 3
        assert result.stderr == "boom"

    def test_missing_executable_is_a_failed_result(self):
        result = CommandRunner().run("definitely-not-a-real-binary-xyz", ["--version"])
        assert not result.ok
        assert "command not found" in result.stderr

    def test_timeout_is_a_failed_result(self):
        result = CommandRunner(timeout=1).run(sys.executable, ["-c", "import time; time.sleep(5)"])
        assert not result.ok
        assert "timed out" in result.stderr

    def test_pat_sets_isolated_az_environment(self, tmp_path: Path):
        isolated = tmp_path / "az-config"
        runner = CommandRunner(isolated_config_dir=isolated)
        script = (
            "import os; "
            "print(os.environ['AZURE_DEVOPS_EXT_PAT']); "
            "print(os.environ['AZURE_CONFIG_DIR'])"
        )

        result = runner.run(sys.executable, ["-c", script], pat="my-pat")

        assert result.ok
        pat_line, config_line = result.stdout.splitlines()
        assert pat_line == "my-pat"
        assert config_line == str(isolated)
        assert isolated.is_dir()

    def test_no_pat_inherits_environment(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("AZURE_DEVOPS_EXT_PAT", raising=False)
        runner = CommandRunner(isolated_config_dir=tmp_path / "unused")

        result = runner.run(
            sys.executable,
            ["-c", "import os; print(os.environ.get('AZURE_DEVOPS_EXT_PAT', 'unset'))"],
        )

        assert result.stdout.strip() == "unset"
        assert not (tmp_path / "unused").exists()

    def test_result_ok_property(self):
        assert CommandResult("", "", 0).ok
        assert not CommandResult("", "", 2).ok
