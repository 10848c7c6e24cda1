"""Custom exceptions for git-worktree-cli"""

from typing import Optional


class WorktreeCliError(Exception):
    """Base exception for all git-worktree-cli errors."""
    pass


class OperationCancelled(WorktreeCliError):
    """Raised when the user declines to continue. Not a failure."""

    def __init__(self, message: str = "Operation cancelled."):
        super().__init__(message)


class GitOperationError(WorktreeCliError):
    """Exception raised when a git subcommand fails."""

    def __init__(
        self,
        operation: str,
        target: Optional[str] = None,
        message: Optional[str] = None,
        stderr: Optional[str] = None,
        status: Optional[int] = None,
        stdout: Optional[str] = None,
    ):
        self.operation = operation
        self.target = target
        self.message = message
        self.stderr = (stderr or "").strip()
        self.status = status
        self.stdout = (stdout or "").strip()

        error_msg = f"Git operation '{operation}' failed"
        if target:
            error_msg += f" for '{target}'"
        if message:
            error_msg += f": {message}"
        elif self.stderr:
            error_msg += f": {self.stderr}"

        super().__init__(error_msg)

    @property
    def kind(self):
        """Recognized failure category for this error's stderr."""
        # services.git's package __init__ imports operations, which imports this module
        from git_worktree_cli.services.git.failures import classify_git_failure

        return classify_git_failure("\n".join(filter(None, [self.stderr, self.stdout])))


class NotAGitRepositoryError(WorktreeCliError):
    """Raised when the working directory is not inside a git repository."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Not a git repository: {path}. "
            "Please run this command from within a git repository."
        )


class GitUnavailableError(WorktreeCliError):
    """Raised when the git executable cannot be run."""

    def __init__(self, detail: Optional[str] = None):
        message = "The git executable could not be found or started"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class InvalidBranchNameError(WorktreeCliError):
    """Raised when a branch name fails validation."""

    def __init__(self, branch: str, reason: str):
        self.branch = branch
        self.reason = reason
        super().__init__(reason)


class BareRepositoryError(WorktreeCliError):
    """Raised when core.bare=true blocks an operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: the main repository is configured as 'bare' (core.bare=true). "
            "Fix the configuration with: git config core.bare false"
        )


class WorktreeNotFoundError(WorktreeCliError):
    """Raised when no worktree matches a path or branch."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Could not find a worktree for \"{target}\".")


class WorktreeStateError(WorktreeCliError):
    """Raised when a worktree's state forbids the requested operation."""
    pass


class InconsistentWorktreeRecordError(WorktreeCliError):
    """Raised when a porcelain block has neither a branch, detached nor bare marker."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Worktree entry for {path} has no branch, detached or bare marker"
        )


class StashError(WorktreeCliError):
    """Raised when stashing changes fails."""
    pass


class SetupFileFormatError(WorktreeCliError):
    """Raised when a setup commands file has an unrecognized shape."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Unrecognized setup file format in {path}: {message}")


class ExternalCommandError(WorktreeCliError):
    """Raised when a non-git command (package manager, editor) fails."""

    def __init__(self, command: str, message: Optional[str] = None):
        self.command = command
        error_msg = f"Command '{command}' failed"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)


class ProviderError(WorktreeCliError):
    """Raised when a pull/merge request cannot be resolved."""
    pass
