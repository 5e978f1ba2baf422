"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from defenders_cli.utils.logging import ROOT_LOGGER, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging()


class TestSetupLogging:
    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        root = setup_logging()
        assert len(root.handlers) == 1

    def test_level_applies_to_console(self):
        root = setup_logging(level="WARNING", rich_console=False)
        assert root.level == logging.WARNING
        assert root.handlers[0].level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        root = setup_logging(level="LOUD")
        assert root.level == logging.INFO

    def test_log_file_receives_debug_records(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "defenders.log"
        setup_logging(level="WARNING", log_file=log_file)

        get_logger("tests.logging").debug("detail for the file")
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()

        assert "detail for the file" in log_file.read_text(encoding="utf-8")

    def test_git_logger_quiet_unless_debug(self):
        setup_logging(level="INFO")
        assert logging.getLogger("git").level == logging.WARNING
        setup_logging(level="DEBUG")
        assert logging.getLogger("git").level == logging.DEBUG


class TestGetLogger:
    def test_module_names_are_namespaced(self):
        assert get_logger("some.module").name == f"{ROOT_LOGGER}.some.module"

    def test_package_names_are_kept(self):
        name = f"{ROOT_LOGGER}.pipelines.monitor"
        assert get_logger(name).name == name
