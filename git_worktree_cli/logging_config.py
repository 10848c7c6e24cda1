"""Logging configuration for git-worktree-cli

All loggers live under the "wt" namespace. GitPython logs under "git", so
stripping our package prefix down to e.g. "git.worktrees" would mix the two.
"""
import copy
import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAMESPACE = "wt"
LOG_FILE_NAME = "wt.log"
PACKAGE_PREFIX = "git_worktree_cli."

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Colors the level name when stderr is a terminal."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None or not sys.stderr.isatty():
            return super().format(record)
        # Records are shared with the file handler; color a copy only
        record = copy.copy(record)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure the "wt" logger for one command run.

    Args:
        verbose: Show INFO messages on stderr
        debug: Show DEBUG messages, with timestamps, on stderr
        log_dir: With debug, also write the run's log to <log_dir>/wt.log

    Returns:
        Path of the log file, or None when no file is written
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    wt_logger = logging.getLogger(LOGGER_NAMESPACE)
    wt_logger.setLevel(level)
    wt_logger.propagate = False
    for handler in wt_logger.handlers[:]:
        wt_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(ColoredFormatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(ColoredFormatter(fmt='%(levelname)s: %(message)s'))
    wt_logger.addHandler(console_handler)

    if not (debug and log_dir):
        return None

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME
    file_handler = logging.FileHandler(log_file, mode='w')  # one run per file
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT))
    wt_logger.addHandler(file_handler)
    return log_file


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. git_worktree_cli.core.atomic -> wt.core.atomic."""
    if name.startswith(PACKAGE_PREFIX):
        name = name[len(PACKAGE_PREFIX):]
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
