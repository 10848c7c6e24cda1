"""Tests for logging setup"""
import logging
import sys
from unittest.mock import Mock

import pytest

from git_worktree_cli.logging_config import ColoredFormatter, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_wt_logger():
    yield
    wt_logger = logging.getLogger("wt")
    for handler in wt_logger.handlers[:]:
        wt_logger.removeHandler(handler)
        handler.close()
    wt_logger.propagate = True
    wt_logger.setLevel(logging.NOTSET)


class TestGetLogger:
    """Test logger naming."""

    def test_package_modules_live_under_wt(self):
        assert get_logger("git_worktree_cli.services.git.worktrees").name == "wt.services.git.worktrees"
        assert get_logger("git_worktree_cli.core.atomic").name == "wt.core.atomic"

    def test_not_mixed_with_gitpython_loggers(self):
        assert not get_logger("git_worktree_cli.services.git.stash").name.startswith("git.")


class TestSetupLogging:
    """Test handler and log file configuration."""

    def test_default_level_is_warning_without_file(self, temp_dir):
        assert setup_logging(log_dir=temp_dir) is None

        wt_logger = logging.getLogger("wt")
        assert wt_logger.level == logging.WARNING
        assert len(wt_logger.handlers) == 1
        assert not (temp_dir / "wt.log").exists()

    def test_verbose_level(self):
        setup_logging(verbose=True)
        assert logging.getLogger("wt").level == logging.INFO

    def test_debug_writes_log_file_in_given_dir(self, temp_dir):
        log_dir = temp_dir / "config"

        log_file = setup_logging(debug=True, log_dir=log_dir)
        get_logger("git_worktree_cli.core.atomic").debug("rollback step")
        for handler in logging.getLogger("wt").handlers:
            handler.flush()

        assert log_file == log_dir / "wt.log"
        content = log_file.read_text()
        assert "wt.core.atomic - DEBUG - rollback step" in content

    def test_repeated_setup_does_not_stack_handlers(self, temp_dir):
        setup_logging(debug=True, log_dir=temp_dir)
        setup_logging(debug=True, log_dir=temp_dir)

        assert len(logging.getLogger("wt").handlers) == 2


class TestColoredFormatter:
    """Test level coloring."""

    def test_record_is_not_modified(self, monkeypatch):
        monkeypatch.setattr(sys, "stderr", Mock(isatty=Mock(return_value=True)))
        record = logging.LogRecord("wt.test", logging.ERROR, __file__, 1, "boom", None, None)

        output = ColoredFormatter(fmt="%(levelname)s %(message)s").format(record)

        assert "\033[31mERROR\033[0m boom" == output
        assert record.levelname == "ERROR"
