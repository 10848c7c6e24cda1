"""Signal handling that runs registered cleanup callbacks before exiting."""

import os
import signal
import sys
from typing import Callable, Dict, List, Optional

from rich.console import Console

from git_worktree_cli.constants import SIGNAL_EXIT_BASE
from git_worktree_cli.logging_config import get_logger

console = Console(stderr=True)
logger = get_logger(__name__)

CleanupCallback = Callable[[], None]

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownRegistration:
    """Token returned by ShutdownCoordinator.register()."""

    def __init__(self, coordinator: "ShutdownCoordinator", callback: CleanupCallback):
        self._coordinator = coordinator
        self.callback = callback
        self.active = True

    def unregister(self) -> None:
        """Remove the callback. Safe to call more than once."""
        if self.active:
            self._coordinator._remove(self)
            self.active = False

    def __enter__(self) -> "ShutdownRegistration":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unregister()


class ShutdownCoordinator:
    """Runs cleanup callbacks on SIGINT/SIGTERM, newest first, then exits.

    A second signal during cleanup exits immediately through force_exit_func.
    Construct one per process run and pass it to the commands that need it.
    """

    def __init__(
        self,
        exit_func: Callable[[int], None] = sys.exit,
        force_exit_func: Callable[[int], None] = os._exit,
    ):
        self._exit = exit_func
        self._force_exit = force_exit_func
        self._registrations: List[ShutdownRegistration] = []
        self._previous_handlers: Dict[int, object] = {}
        self.is_shutting_down = False

    def install(self) -> None:
        """Install handlers for SIGINT and SIGTERM, remembering the previous ones."""
        for signum in HANDLED_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self.handle_signal)
        logger.debug("Shutdown handlers installed")

    def uninstall(self) -> None:
        """Restore the handlers that were active before install()."""
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()
        logger.debug("Shutdown handlers removed")

    def register(self, callback: CleanupCallback) -> ShutdownRegistration:
        registration = ShutdownRegistration(self, callback)
        self._registrations.append(registration)
        return registration

    def _remove(self, registration: ShutdownRegistration) -> None:
        if registration in self._registrations:
            self._registrations.remove(registration)

    @property
    def pending(self) -> int:
        """Number of registered callbacks."""
        return len(self._registrations)

    def handle_signal(self, signum: int, frame: Optional[object] = None) -> None:
        exit_code = SIGNAL_EXIT_BASE + signum

        if self.is_shutting_down:
            console.print("\n[red]Force exiting...[/red]")
            self._force_exit(exit_code)
            return

        self.is_shutting_down = True
        name = signal.Signals(signum).name
        console.print(f"\n[yellow]Received {name}. Cleaning up...[/yellow]")

        callbacks = list(reversed(self._registrations))
        for registration in callbacks:
            registration.active = False
        self._registrations.clear()

        for registration in callbacks:
            try:
                registration.callback()
            except Exception as e:
                logger.error(f"Cleanup error: {e}")

        console.print("[yellow]Cleanup complete. Exiting.[/yellow]")
        self._exit(exit_code)
