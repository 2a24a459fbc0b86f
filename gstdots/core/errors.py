# gstdots/core/errors.py
from __future__ import annotations

__all__ = [
    "DotsError", "StartupError", "DotDirError", "WatcherSetupError", "BindError",
    "SnapshotError", "SnapshotNotFoundError", "SnapshotIoError",
    "OutsideRootError",
    "EXIT_DOT_DIR", "EXIT_WATCHER_SETUP", "EXIT_BIND", "EXIT_WATCHER_DEAD",
]

EXIT_DOT_DIR = 2
EXIT_WATCHER_SETUP = 3
EXIT_BIND = 4
EXIT_WATCHER_DEAD = 5



class DotsError(Exception):
    """Base class for everything gstdots raises on purpose."""
    pass



class StartupError(DotsError):
    """
    Startup-fatal error. Reported to stderr by the CLI, which then exits with `exitCode`.
    """
    exitCode: int = 1

    def __init__(self, message: str, *, exitCode: int | None = None) -> None:
        super().__init__(message)
        if exitCode is not None:
            self.exitCode = exitCode



class DotDirError(StartupError):
    """The dot directory (or a generated output directory) could not be created."""
    exitCode = EXIT_DOT_DIR



class WatcherSetupError(StartupError):
    """The recursive watch on the dot directory could not be established."""
    exitCode = EXIT_WATCHER_SETUP



class BindError(StartupError):
    """The HTTP server could not bind its address."""
    exitCode = EXIT_BIND



class SnapshotError(DotsError):
    """Base for per-snapshot read failures. Always recoverable."""
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path



class SnapshotNotFoundError(SnapshotError):
    pass



class SnapshotIoError(SnapshotError):
    pass



class OutsideRootError(SnapshotError):
    """A path handed to the store does not lie under the dot directory."""
    pass
