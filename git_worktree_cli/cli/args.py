"""Command-line argument parsing for git-worktree-cli."""

import argparse

from git_worktree_cli.__version__ import __version__

CONFIG_KEYS = ("editor", "provider", "worktreepath", "subfolder", "trust")


def _add_create_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-p", "--path", help="Directory for the worktree (default: derived from the branch name)")
    parser.add_argument(
        "-i", "--install", metavar="PM", help="Package manager to run '<PM> install' with (npm, pnpm, bun, ...)"
    )
    parser.add_argument("-e", "--editor", help="Editor to open the worktree in ('none' to skip)")


def _add_setup_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--trust", action="store_true", help="Run setup commands without asking for confirmation"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wt",
        description="Manage git worktrees and open them in your editor",
        epilog="Environment: WT_EDITOR overrides the editor ('none' disables it), "
        "WT_CONFIG_DIR overrides the configuration directory.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-cli {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    new = subparsers.add_parser("new", help="Create a worktree for a branch (created if missing)")
    new.add_argument("branch", help="Branch name")
    _add_create_options(new)
    new.add_argument("--setup", action="store_true", help="Run the repository's setup commands")
    _add_setup_options(new)

    setup = subparsers.add_parser("setup", help="Create a worktree and run the repository's setup commands")
    setup.add_argument("branch", help="Branch name")
    _add_create_options(setup)
    _add_setup_options(setup)

    extract = subparsers.add_parser("extract", help="Move an existing branch into its own worktree")
    extract.add_argument("branch", nargs="?", help="Branch to extract (default: current branch)")
    _add_create_options(extract)

    pr = subparsers.add_parser("pr", help="Create a worktree for a GitHub PR or GitLab MR")
    pr.add_argument("number", nargs="?", type=int, help="PR/MR number (omit to pick from open requests)")
    _add_create_options(pr)
    pr.add_argument("--setup", action="store_true", help="Run the repository's setup commands")
    _add_setup_options(pr)

    subparsers.add_parser("list", aliases=["ls"], help="List worktrees")

    open_cmd = subparsers.add_parser("open", help="Open a worktree in the editor")
    open_cmd.add_argument("target", nargs="?", help="Worktree path or branch (omit to pick)")
    open_cmd.add_argument("-e", "--editor", help="Editor to use")

    remove = subparsers.add_parser("remove", aliases=["rm"], help="Remove a worktree")
    remove.add_argument("target", nargs="?", help="Worktree path or branch (omit to pick)")
    remove.add_argument("-f", "--force", action="store_true", help="Remove without confirmation, even if dirty or locked")

    purge = subparsers.add_parser("purge", help="Remove several worktrees at once")
    purge.add_argument("--all", dest="select_all", action="store_true", help="Select every non-main worktree")
    purge.add_argument("-f", "--force", action="store_true", help="Skip confirmations")

    merge = subparsers.add_parser("merge", help="Merge a worktree's branch into the current branch")
    merge.add_argument("branch", help="Branch checked out in the worktree")
    merge.add_argument("--auto-commit", action="store_true", help="Commit pending changes in the worktree first")
    merge.add_argument("-m", "--message", help="Commit message for --auto-commit")
    merge.add_argument("--remove", action="store_true", help="Remove the worktree after merging")
    merge.add_argument("-f", "--force", action="store_true", help="Force removal")

    config = subparsers.add_parser("config", help="Show or change configuration")
    config.add_argument("action", choices=["get", "set", "clear", "path"])
    config.add_argument("key", nargs="?", choices=CONFIG_KEYS)
    config.add_argument("value", nargs="?")

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
