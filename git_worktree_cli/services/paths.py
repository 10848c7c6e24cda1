"""Branch name validation and worktree path resolution."""

import os
import re
from dataclasses import dataclass
from typing import Callable, Optional

from git_worktree_cli.config import Config
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

INVALID_BRANCH_CHARS = re.compile(r"[\s~^:?*\[\]\\]")


@dataclass
class BranchNameValidation:
    is_valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_valid


def validate_branch_name(branch: Optional[str]) -> BranchNameValidation:
    """Reject the branch names git would fail on with a confusing message.

    This is not a full check-ref-format implementation.
    """
    if not branch or not branch.strip():
        return BranchNameValidation(False, "Branch name cannot be empty")
    if INVALID_BRANCH_CHARS.search(branch):
        return BranchNameValidation(False, "Branch name contains invalid characters")
    if ".." in branch:
        return BranchNameValidation(False, 'Branch name cannot contain ".."')
    if branch.endswith(".lock"):
        return BranchNameValidation(False, 'Branch name cannot end with ".lock"')
    return BranchNameValidation(True)


def resolve_worktree_name(branch: str) -> str:
    """Directory name for a branch: every '/' becomes '-'.

    feature/auth and hotfix/auth map to different names. A literal a-b branch
    and a/b map to the same name; there is no escaping.
    """
    return branch.replace("/", "-")


def resolve_worktree_path(
    branch: str,
    config: Config,
    cwd: Optional[str] = None,
    custom_path: Optional[str] = None,
    use_repo_namespace: bool = True,
    repo_name: Optional[Callable[[], str]] = None,
) -> str:
    """Absolute path for a new worktree.

    Priority:
        1. custom_path, made absolute
        2. config.default_worktree_path: <root>/<repo>/<name> (or <root>/<name>
           without namespacing)
        3. config.worktree_subfolder: <parent>/<dir>-worktrees/<name>
        4. sibling directory: <parent>/<dir>-<name>

    Args:
        repo_name: Called only for case 2 to look up the repository name
    """
    if custom_path:
        return os.path.abspath(custom_path)

    cwd = os.path.abspath(cwd or os.getcwd())
    name = resolve_worktree_name(branch)

    if config.default_worktree_path:
        if use_repo_namespace:
            if repo_name is None:
                raise ValueError("repo_name is required when namespacing by repository")
            return os.path.join(config.default_worktree_path, repo_name(), name)
        return os.path.join(config.default_worktree_path, name)

    parent_dir = os.path.dirname(cwd)
    current_dir_name = os.path.basename(cwd)

    if config.worktree_subfolder:
        return os.path.join(parent_dir, f"{current_dir_name}-worktrees", name)

    return os.path.join(parent_dir, f"{current_dir_name}-{name}")
