"""Repository-provided setup commands (worktrees.json)."""

import json
import os
import subprocess
from typing import Callable, Optional

from rich.console import Console

from git_worktree_cli.constants import ENV_ROOT_WORKTREE_PATH, SETUP_FILE_KEY, SETUP_FILES
from git_worktree_cli.exceptions import SetupFileFormatError
from git_worktree_cli.models.setup import SetupCommands, SetupFileKind
from git_worktree_cli.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


def find_setup_file(repo_root: str) -> Optional[str]:
    """First existing setup file: .cursor/worktrees.json, then worktrees.json."""
    for parts in SETUP_FILES:
        candidate = os.path.join(repo_root, *parts)
        if os.path.isfile(candidate):
            return candidate
    return None


def _string_list(value, path: str) -> list:
    if not all(isinstance(item, str) for item in value):
        raise SetupFileFormatError(path, "every setup command must be a string")
    return list(value)


def parse_setup_commands(data, source: str) -> SetupCommands:
    """Decode already-loaded JSON into SetupCommands.

    Accepted shapes:
        ["cmd", ...]
        {"setup-worktree": ["cmd", ...]}
    """
    if isinstance(data, list):
        return SetupCommands(SetupFileKind.LIST, source, _string_list(data, source))
    if isinstance(data, dict):
        commands = data.get(SETUP_FILE_KEY)
        if isinstance(commands, list):
            return SetupCommands(SetupFileKind.OBJECT, source, _string_list(commands, source))
        raise SetupFileFormatError(source, f"expected a '{SETUP_FILE_KEY}' array")
    raise SetupFileFormatError(source, "expected a JSON array or object")


def load_setup_commands(path: str) -> SetupCommands:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SetupFileFormatError(path, f"invalid JSON ({e})") from e
    return parse_setup_commands(data, path)


def run_setup_commands(
    worktree_path: str,
    repo_root: str,
    trust: bool = False,
    confirm: Optional[Callable[[SetupCommands], bool]] = None,
) -> bool:
    """Run setup commands for a new worktree.

    Commands are shown and confirmed unless trust is set. Each command runs
    through the shell in the worktree with ROOT_WORKTREE_PATH exported; a
    failing command is reported and the rest still run.

    Returns:
        True if commands were run, False if there was nothing to run or the
        user declined

    Raises:
        SetupFileFormatError: the setup file has an unrecognized shape
    """
    setup_file = find_setup_file(repo_root)
    if not setup_file:
        logger.debug(f"No setup file found in {repo_root}")
        return False

    setup = load_setup_commands(setup_file)
    if not setup.commands:
        console.print(f"[yellow]{setup_file} does not contain any setup commands.[/yellow]")
        return False

    console.print(f"[blue]Found setup file: {setup_file}[/blue]")
    if not trust:
        if confirm is None or not confirm(setup):
            console.print("[yellow]Skipping setup commands.[/yellow]")
            return False

    env = {**os.environ, ENV_ROOT_WORKTREE_PATH: repo_root}
    for command in setup.commands:
        console.print(f"[dim]Executing: {command}[/dim]")
        try:
            result = subprocess.run(command, shell=True, cwd=worktree_path, env=env)
        except OSError as e:
            console.print(f"[red]Setup command failed: {command}: {e}[/red]")
            continue
        if result.returncode != 0:
            console.print(f"[red]Setup command failed ({result.returncode}): {command}[/red]")
            logger.warning(f"Setup command exited with {result.returncode}: {command}")

    console.print("[green]Setup commands completed.[/green]")
    return True
