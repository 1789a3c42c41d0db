"""Exception types raised by the scaffolding pipeline."""

from __future__ import annotations


class AppSeedError(Exception):
    """Base class for every error appseed raises on purpose."""


class TemplateNotFoundError(AppSeedError):
    """Raised when a template variant has no directory on disk."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"Template directory not found: {path}")


class DownloadError(AppSeedError):
    """Raised when a remote example cannot be fetched or unpacked."""


class InstallError(AppSeedError):
    """Raised when a package-manager invocation exits non-zero.

    Attributes:
        command: The exact command line that failed.
        state: Terminal installer state (``phase1-failed`` or ``phase2-failed``).
        returncode: Exit status of the failed process.
    """

    def __init__(self, command: str, state: str, returncode: int = 1) -> None:
        self.command = command
        self.state = state
        self.returncode = returncode
        super().__init__(f"{command} exited with code {returncode}")
