"""Shared constants for git-worktree-cli."""

APP_NAME = "git-worktree-cli"

# Environment variables
ENV_EDITOR = "WT_EDITOR"
ENV_CONFIG_DIR = "WT_CONFIG_DIR"
ENV_ROOT_WORKTREE_PATH = "ROOT_WORKTREE_PATH"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_GITLAB_TOKEN = "GITLAB_TOKEN"

# Editor value that disables opening an editor
EDITOR_NONE = "none"

DEFAULT_EDITOR = "cursor"
DEFAULT_PROVIDER = "gh"
PROVIDERS = ("gh", "glab")

DEFAULT_REMOTE = "origin"

# Setup command files, in lookup order, relative to the repository root
SETUP_FILES = (
    (".cursor", "worktrees.json"),
    ("worktrees.json",),
)
SETUP_FILE_KEY = "setup-worktree"

# Process exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
SIGNAL_EXIT_BASE = 128

DIRTY_STATE_MESSAGE = "Your main worktree has uncommitted changes."

# Symbols used in worktree listings
SYMBOL_MAIN = "main"
SYMBOL_LOCKED = "locked"
SYMBOL_PRUNABLE = "prunable"
