"""Editor and package-manager invocations."""

import shutil
import subprocess

from git_worktree_cli.config import should_skip_editor
from git_worktree_cli.exceptions import ExternalCommandError
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)


def open_in_editor(editor: str, path: str) -> None:
    """Launch `<editor> <path>`. Does nothing for the 'none' editor.

    Raises:
        ExternalCommandError: the editor could not be started or exited non-zero
    """
    if should_skip_editor(editor):
        logger.debug("Editor disabled, not opening worktree")
        return

    logger.debug(f"Opening {path} in {editor}")
    try:
        result = subprocess.run([editor, path])
    except OSError as e:
        raise ExternalCommandError(editor, f"could not start editor ({e})") from e
    if result.returncode != 0:
        raise ExternalCommandError(editor, f"exited with status {result.returncode}")


def run_install(package_manager: str, cwd: str) -> None:
    """Run `<package_manager> install` in cwd.

    Raises:
        ExternalCommandError: the package manager is missing or the install failed
    """
    if shutil.which(package_manager) is None:
        raise ExternalCommandError(f"{package_manager} install", f"'{package_manager}' not found on PATH")

    logger.info(f"Running {package_manager} install in {cwd}")
    result = subprocess.run([package_manager, "install"], cwd=cwd)
    if result.returncode != 0:
        raise ExternalCommandError(
            f"{package_manager} install", f"exited with status {result.returncode}"
        )
