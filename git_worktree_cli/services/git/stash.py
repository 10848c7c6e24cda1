"""Dirty-state detection and stash round-trips for the main worktree."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from git_worktree_cli.exceptions import GitOperationError, StashError, WorktreeCliError
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_STASH_MESSAGE = "git-worktree-cli auto-stash"


class DirtyAction(Enum):
    """What to do about uncommitted changes before a mutating command."""
    STASH = "stash"
    ABORT = "abort"
    CONTINUE = "continue"


class DirtyState(Enum):
    CLEAN = "clean"
    STASHED = "stashed"
    ABORTED = "aborted"
    CONTINUED_DIRTY = "continued-dirty"


class StashHandle:
    """A stash taken for one command, restorable exactly once.

    Both the interrupt callback and the command's own finally block call
    restore(); whichever runs first applies the stash, the other is a no-op.
    """

    def __init__(self, controller: "DirtyStateController", ref: str, path: str):
        self.controller = controller
        self.ref = ref
        self.path = path
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def restore(self) -> bool:
        """Apply and drop the stash. Returns False if it was already consumed or apply failed."""
        if self._consumed:
            logger.debug(f"Stash {self.ref[:7]} already restored")
            return False
        self._consumed = True
        return self.controller.apply_and_drop_stash(self.ref, self.path)


@dataclass
class DirtyResolution:
    state: DirtyState
    handle: Optional[StashHandle] = None

    def restore(self) -> None:
        if self.handle is not None:
            self.handle.restore()


class DirtyStateController:
    """Detects uncommitted changes and stashes/restores them."""

    def __init__(self, path: str = "."):
        self.path = path

    def _git(self, path: Optional[str]) -> GitOperations:
        return GitOperations(path or self.path)

    def is_worktree_clean(self, path: Optional[str] = None) -> bool:
        """True when `git status --porcelain` prints nothing.

        Any failure (not a repository, git missing) counts as not clean.
        """
        try:
            status = self._git(path).run("status", "--porcelain", operation="status")
        except WorktreeCliError as e:
            logger.debug(f"Could not read status of {path or self.path}: {e}")
            return False
        return not status.strip()

    def _stash_top(self, git_ops: GitOperations) -> Optional[str]:
        try:
            return git_ops.run("rev-parse", "-q", "--verify", "refs/stash", operation="rev-parse").strip() or None
        except GitOperationError:
            return None

    def stash_changes(self, path: Optional[str] = None, message: Optional[str] = None) -> Optional[str]:
        """Stash tracked and untracked changes.

        Returns:
            The stash commit hash, or None when there was nothing to stash

        Raises:
            StashError: git refused to create the stash
        """
        git_ops = self._git(path)
        before = self._stash_top(git_ops)
        try:
            git_ops.run(
                "stash", "push", "--include-untracked", "-m", message or DEFAULT_STASH_MESSAGE,
                operation="stash push",
            )
        except GitOperationError as e:
            raise StashError(f"Could not stash changes in {git_ops.cwd}: {e.stderr or e}") from e

        after = self._stash_top(git_ops)
        if after is None or after == before:
            logger.debug("No local changes to stash")
            return None

        logger.info(f"Stashed uncommitted changes as {after[:7]}")
        return after

    def apply_and_drop_stash(self, ref: str, path: Optional[str] = None) -> bool:
        """Apply a stash and drop it only after the apply succeeded.

        A failed apply leaves the stash in place and is logged with recovery
        instructions; the return value is False in that case.
        """
        git_ops = self._git(path)
        try:
            git_ops.run("stash", "apply", ref, operation="stash apply", target=ref)
        except GitOperationError as e:
            logger.error(f"Could not restore stashed changes: {e.stderr or e}")
            logger.error(
                f"Your changes are still in the stash. Recover them with: git stash apply {ref}"
            )
            return False

        try:
            hashes = git_ops.run("stash", "list", "--format=%H", operation="stash list").splitlines()
            index = [h.strip() for h in hashes].index(ref)
        except ValueError:
            logger.warning(f"Stash {ref[:7]} was applied but is no longer in the stash list")
            return True
        except GitOperationError as e:
            logger.warning(f"Stash {ref[:7]} was applied but the stash list could not be read: {e}")
            return True

        try:
            git_ops.run("stash", "drop", f"stash@{{{index}}}", operation="stash drop", target=ref)
        except GitOperationError as e:
            logger.warning(f"Stash {ref[:7]} was applied but could not be dropped: {e}")
            return True

        logger.info(f"Restored stashed changes from {ref[:7]}")
        return True

    def resolve(
        self,
        choose: Callable[[], DirtyAction],
        path: Optional[str] = None,
        message: Optional[str] = None,
    ) -> DirtyResolution:
        """Run the dirty-state decision for a worktree.

        Args:
            choose: Called only when the tree is dirty; returns the user's action
            path: Worktree to check (defaults to the controller's path)
            message: Stash message
        """
        target = path or self.path
        if self.is_worktree_clean(target):
            return DirtyResolution(DirtyState.CLEAN)

        action = choose()
        logger.debug(f"Dirty-state action: {action.value}")

        if action is DirtyAction.ABORT:
            return DirtyResolution(DirtyState.ABORTED)
        if action is DirtyAction.CONTINUE:
            return DirtyResolution(DirtyState.CONTINUED_DIRTY)

        ref = self.stash_changes(target, message)
        if ref is None:
            return DirtyResolution(DirtyState.CLEAN)
        return DirtyResolution(DirtyState.STASHED, StashHandle(self, ref, target))
