"""Command-line interface for git-worktree-cli"""

import os
import sys

from rich.console import Console

from git_worktree_cli.cli.args import parse_args
from git_worktree_cli.config import ConfigStore
from git_worktree_cli.constants import EXIT_FAILURE, EXIT_OK
from git_worktree_cli.core import ShutdownCoordinator, WorktreeManager
from git_worktree_cli.exceptions import OperationCancelled, WorktreeCliError
from git_worktree_cli.logging_config import get_logger, setup_logging
from git_worktree_cli.ui.prompts import Prompter

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

COMMAND_ALIASES = {"ls": "list", "rm": "remove"}

# Config command keys mapped to Config fields
CONFIG_FIELDS = {
    "editor": "default_editor",
    "provider": "git_provider",
    "worktreepath": "default_worktree_path",
    "subfolder": "worktree_subfolder",
    "trust": "trust",
}
BOOLEAN_FIELDS = {"worktree_subfolder", "trust"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise WorktreeCliError(f"Expected true or false, got '{value}'")


def run_config_command(args, store: ConfigStore) -> int:
    if args.action == "path":
        console.print(str(store.path))
        return EXIT_OK

    config = store.load()
    if args.action == "get":
        keys = [args.key] if args.key else list(CONFIG_FIELDS)
        for key in keys:
            value = config.get(CONFIG_FIELDS[key])
            console.print(f"{key}: {'(not set)' if value is None else value}")
        return EXIT_OK

    if not args.key:
        raise WorktreeCliError(f"'wt config {args.action}' needs a key: {', '.join(CONFIG_FIELDS)}")
    field_name = CONFIG_FIELDS[args.key]

    try:
        if args.action == "clear":
            store.clear(field_name)
            console.print(f"[green]Cleared {args.key}.[/green]")
            return EXIT_OK

        if args.value is None:
            raise WorktreeCliError(f"'wt config set {args.key}' needs a value")
        value = _parse_bool(args.value) if field_name in BOOLEAN_FIELDS else args.value
        store.set(field_name, value)
    except ValueError as e:
        raise WorktreeCliError(f"Invalid value for {args.key}: {e}") from e

    console.print(f"[green]Set {args.key} to {store.load().get(field_name)}.[/green]")
    return EXIT_OK


def run_command(args, manager: WorktreeManager) -> int:
    """Dispatch a parsed command to the manager."""
    command = COMMAND_ALIASES.get(args.command, args.command)

    if command in ("new", "setup"):
        manager.create(
            args.branch,
            path=args.path,
            install=args.install,
            editor=args.editor,
            setup=command == "setup" or args.setup,
            trust=args.trust,
        )
    elif command == "extract":
        manager.extract(args.branch, path=args.path, install=args.install, editor=args.editor)
    elif command == "pr":
        manager.create_from_pr(
            args.number,
            path=args.path,
            install=args.install,
            editor=args.editor,
            setup=args.setup,
            trust=args.trust,
        )
    elif command == "list":
        manager.list_worktrees()
    elif command == "open":
        manager.open(args.target, editor=args.editor)
    elif command == "remove":
        manager.remove(args.target, force=args.force)
    elif command == "purge":
        manager.purge(select_all=args.select_all, force=args.force)
    elif command == "merge":
        manager.merge(
            args.branch,
            auto_commit=args.auto_commit,
            message=args.message,
            remove=args.remove,
            force=args.force,
        )
    else:
        raise WorktreeCliError(f"Unknown command: {args.command}")
    return EXIT_OK


def main(argv=None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    store = ConfigStore()
    log_file = setup_logging(
        verbose=parsed_args.verbose, debug=parsed_args.debug, log_dir=store.config_dir
    )

    shutdown = ShutdownCoordinator()
    shutdown.install()
    try:
        if parsed_args.command == "config":
            return run_config_command(parsed_args, store)

        config = store.load()
        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print(f"[yellow]Writing debug log to {log_file}[/yellow]")
            console.print(f"[yellow]Configuration ({store.path}):[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        manager = WorktreeManager(os.getcwd(), config, Prompter(), shutdown)
        return run_command(parsed_args, manager)
    except OperationCancelled as e:
        console.print(f"[yellow]{e}[/yellow]")
        return EXIT_OK
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return EXIT_FAILURE
    except WorktreeCliError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        if parsed_args.debug:
            err_console.print_exception()
        return EXIT_FAILURE
    except Exception as e:
        err_console.print(f"[red]Unexpected error: {e}[/red]")
        if parsed_args.debug:
            err_console.print_exception()
        return EXIT_FAILURE
    finally:
        shutdown.uninstall()


if __name__ == "__main__":
    sys.exit(main())
