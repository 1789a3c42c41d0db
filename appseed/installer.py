"""Package-manager process management.

Installs the generated project's dependencies by shelling out to npm, pnpm
or Yarn.  One run is a small state machine::

    idle -> phase1-running -> phase1-failed
                           -> phase2-running -> success | phase2-failed
                           -> phase2-skipped -> success

Phase 1 installs runtime dependencies (or, when there are no packages at
all, runs a bare ``install``); phase 2 installs development dependencies and
only starts after phase 1 exits with status 0.  Child processes inherit the
terminal's stdio and are never timed out.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from appseed.config import InstallerConfig
from appseed.errors import InstallError
from appseed.utils import console, run_command


class InstallState(str, Enum):
    """States of one installer run."""

    IDLE = "idle"
    PHASE1_RUNNING = "phase1-running"
    PHASE1_FAILED = "phase1-failed"
    PHASE2_RUNNING = "phase2-running"
    PHASE2_SKIPPED = "phase2-skipped"
    PHASE2_FAILED = "phase2-failed"
    SUCCESS = "success"


@dataclass
class InstallOutcome:
    """Result of a successful installer run."""

    state: InstallState = InstallState.IDLE
    commands: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is InstallState.SUCCESS


def format_command(argv: list[str]) -> str:
    return shlex.join(argv)


def bare_install_args(config: InstallerConfig) -> list[str]:
    """Arguments for ``<pm> install`` when there are no packages to add."""
    args = [config.package_manager, "install"]
    if not config.is_online:
        console.print("[yellow]You appear to be offline.[/yellow]")
        if config.package_manager == "yarn":
            console.print("[yellow]Falling back to the local Yarn cache.[/yellow]")
            args.append("--offline")
        console.print()
    return args


def add_args(
    packages: list[str], config: InstallerConfig, dev: bool = False
) -> list[str]:
    """Arguments that add *packages* with exact version pinning."""
    if config.package_manager == "yarn":
        args = ["yarn", "add", "--exact"]
        if not config.is_online:
            args.append("--offline")
        if dev:
            args.append("--dev")
    else:
        args = [config.package_manager, "install", "--save-exact"]
        if dev:
            args.append("--save-dev")
    return [*args, *packages]


class DependencyInstaller:
    """Runs the two-phase install for one project root."""

    def __init__(self, config: InstallerConfig) -> None:
        self.config = config
        self.state = InstallState.IDLE
        self.commands: list[str] = []

    async def _spawn(self, argv: list[str], root: Path, failed: InstallState) -> None:
        """Run one installer phase; raise ``InstallError`` on non-zero exit."""
        command = format_command(argv)
        self.commands.append(command)
        try:
            returncode, _, _ = await run_command(
                argv, cwd=root, timeout=None, capture=False
            )
        except FileNotFoundError:
            self.state = failed
            console.print(f"[red]Package manager not found: '{argv[0]}'.[/red]")
            raise InstallError(command, failed.value, 127)
        if returncode != 0:
            self.state = failed
            raise InstallError(command, failed.value, returncode)

    async def install(
        self,
        root: str | Path,
        dependencies: list[str] | None = None,
        dev_dependencies: list[str] | None = None,
    ) -> InstallOutcome:
        """Install *dependencies* then *dev_dependencies* into *root*.

        Returns:
            The outcome, with every command line that was run.

        Raises:
            InstallError: If either phase exits non-zero.  Carries the exact
                command line that failed.
        """
        root = Path(root)
        dependencies = dependencies or []
        dev_dependencies = dev_dependencies or []

        self.state = InstallState.PHASE1_RUNNING
        if not dependencies and not dev_dependencies:
            await self._spawn(
                bare_install_args(self.config), root, InstallState.PHASE1_FAILED
            )
            self.state = InstallState.SUCCESS
            return InstallOutcome(self.state, list(self.commands))

        if dependencies:
            await self._spawn(
                add_args(dependencies, self.config), root, InstallState.PHASE1_FAILED
            )

        if not dev_dependencies:
            self.state = InstallState.PHASE2_SKIPPED
        else:
            self.state = InstallState.PHASE2_RUNNING
            await self._spawn(
                add_args(dev_dependencies, self.config, dev=True),
                root,
                InstallState.PHASE2_FAILED,
            )

        self.state = InstallState.SUCCESS
        return InstallOutcome(self.state, list(self.commands))


async def install(
    root: str | Path,
    dependencies: list[str] | None,
    dev_dependencies: list[str] | None,
    config: InstallerConfig,
) -> InstallOutcome:
    """Convenience wrapper: run one :class:`DependencyInstaller` to completion."""
    return await DependencyInstaller(config).install(root, dependencies, dev_dependencies)
