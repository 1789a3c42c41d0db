"""Unit tests for repository initialisation (appseed.git).

Tests cover:
- Skipping when git is missing or the project is already under version control
- Command sequence with and without a configured default branch
- Cleanup of ``.git`` after a failed step
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from appseed.git import INITIAL_COMMIT_MESSAGE, try_git_init


def _runner(failing: set[str] | None = None, missing: bool = False):
    """AsyncMock standing in for run_command.

    Commands whose joined argv starts with an entry of *failing* exit 1.
    """
    failing = failing or set()

    async def fake(cmd, cwd=None, timeout=120, capture=True, env=None):
        if missing:
            raise FileNotFoundError(cmd[0])
        line = " ".join(cmd)
        if any(line.startswith(prefix) for prefix in failing):
            return (1, "", "")
        if line == "git init":
            (Path(cwd) / ".git").mkdir()
        return (0, "", "")

    return AsyncMock(side_effect=fake)


def _commands(mock: AsyncMock) -> list[str]:
    return [" ".join(call.args[0]) for call in mock.await_args_list]


class TestTryGitInit:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_git_missing(self, tmp_project_dir: Path):
        with patch("appseed.git.run_command", _runner(missing=True)):
            assert await try_git_init(tmp_project_dir) is False
        assert not (tmp_project_dir / ".git").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inside_existing_repo(self, tmp_project_dir: Path):
        runner = _runner()
        with patch("appseed.git.run_command", runner):
            assert await try_git_init(tmp_project_dir) is False
        assert "git init" not in _commands(runner)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_repo_with_main_branch(self, tmp_project_dir: Path):
        runner = _runner(failing={"git rev-parse", "hg", "git config"})
        with patch("appseed.git.run_command", runner):
            assert await try_git_init(tmp_project_dir) is True

        commands = _commands(runner)
        assert commands[-4:] == [
            "git config init.defaultBranch",
            "git checkout -b main",
            "git add -A",
            f"git commit -m {INITIAL_COMMIT_MESSAGE}",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keeps_configured_default_branch(self, tmp_project_dir: Path):
        runner = _runner(failing={"git rev-parse", "hg"})
        with patch("appseed.git.run_command", runner):
            assert await try_git_init(tmp_project_dir) is True
        assert "git checkout -b main" not in _commands(runner)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_commit_removes_repository(self, tmp_project_dir: Path):
        runner = _runner(failing={"git rev-parse", "hg", "git commit"})
        with patch("appseed.git.run_command", runner):
            assert await try_git_init(tmp_project_dir) is False
        assert not (tmp_project_dir / ".git").exists()
