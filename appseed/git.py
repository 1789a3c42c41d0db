"""Git repository initialisation for generated projects."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from appseed.utils import run_command

INITIAL_COMMIT_MESSAGE = "Initial commit from appseed"


async def _ok(cmd: list[str], cwd: Path) -> bool:
    try:
        returncode, _, _ = await run_command(cmd, cwd=cwd, timeout=60)
    except FileNotFoundError:
        return False
    return returncode == 0


async def is_in_git_repository(root: Path) -> bool:
    return await _ok(["git", "rev-parse", "--is-inside-work-tree"], root)


async def is_in_mercurial_repository(root: Path) -> bool:
    return await _ok(["hg", "--cwd", ".", "root"], root)


async def is_default_branch_set(root: Path) -> bool:
    return await _ok(["git", "config", "init.defaultBranch"], root)


async def try_git_init(root: str | Path) -> bool:
    """Create a repository with one commit holding the generated files.

    Does nothing when git is unavailable or *root* already sits inside a git
    or Mercurial working tree.  If any step fails after ``git init``, the new
    ``.git`` directory is removed again.

    Returns:
        ``True`` if a repository was created and committed.
    """
    root = Path(root)
    if not await _ok(["git", "--version"], root):
        return False
    if await is_in_git_repository(root) or await is_in_mercurial_repository(root):
        return False

    if not await _ok(["git", "init"], root):
        return False

    steps: list[list[str]] = []
    if not await is_default_branch_set(root):
        steps.append(["git", "checkout", "-b", "main"])
    steps.append(["git", "add", "-A"])
    steps.append(["git", "commit", "-m", INITIAL_COMMIT_MESSAGE])

    for step in steps:
        if not await _ok(step, root):
            await asyncio.to_thread(shutil.rmtree, root / ".git", ignore_errors=True)
            return False
    return True
