"""Shared pytest fixtures for the appseed test suite.

Provides reusable fixtures for:
- Temporary project directories
- Small on-disk template trees
- Feature selections and installer configurations
- Mock subprocess helpers
- Isolated preference storage
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from appseed.config import FeatureSelection, InstallerConfig


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty project root (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture(autouse=True)
def isolated_preferences(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point preference storage at a temp directory for every test."""
    config_dir = tmp_path / "appseed-config"
    monkeypatch.setenv("APPSEED_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("APPSEED_PACKAGE_MANAGER", raising=False)
    monkeypatch.delenv("APPSEED_IMPORT_ALIAS", raising=False)
    return config_dir


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree():
    """Return the ``write_tree`` helper."""
    return write_tree


TSCONFIG = """{
  "compilerOptions": {
    "paths": {
      "@/*": ["./*"]
    }
  }
}
"""

# Two styling-only files plus three generic files.
FIVE_FILE_TEMPLATE: dict[str, str] = {
    "tailwind.config.ts": "export default {};\n",
    "postcss.config.js": "module.exports = {};\n",
    "src/app/page.tsx": 'import { Greeting } from "@/components/Greeting";\n',
    "src/components/Greeting.tsx": "export function Greeting() { return null; }\n",
    "tsconfig.json": TSCONFIG,
}


@pytest.fixture
def templates_root(tmp_path: Path) -> Path:
    """A templates root holding ``next/app-tw/ts`` and ``next/app/ts``.

    ``app-tw`` is the five-file template; ``app`` carries one config file for
    every optional feature plus generic sources.
    """
    root = tmp_path / "templates"
    write_tree(root / "next" / "app-tw" / "ts", FIVE_FILE_TEMPLATE)
    write_tree(
        root / "next" / "app" / "ts",
        {
            "gitignore": "/node_modules\n",
            "README-template.md": "# App\n",
            "eslintrc.json": '{"extends": "next/core-web-vitals"}\n',
            "lintstagedrc.json": '{"*.ts": "eslint --fix"}\n',
            "husky/pre-commit": "npx lint-staged\n",
            "Dockerfile": "FROM node:20-alpine\n",
            "dockerignore": "node_modules\n",
            "tsconfig.json": TSCONFIG,
            "src/app/page.tsx": 'import a from "@/lib/a";\nimport b from "@/lib/b";\n',
            "src/lib/a.ts": "export default 1;\n",
            "src/lib/b.ts": 'export { default } from "@/lib/a";\n',
        },
    )
    return root


# ---------------------------------------------------------------------------
# Feature selections
# ---------------------------------------------------------------------------

@pytest.fixture
def all_features() -> FeatureSelection:
    return FeatureSelection(
        mode="ts", tailwind=False, eslint=True, lintstaged=True, docker=True
    )


@pytest.fixture
def no_features() -> FeatureSelection:
    return FeatureSelection(
        mode="ts", tailwind=False, eslint=False, lintstaged=False, docker=False
    )


@pytest.fixture
def npm_config() -> InstallerConfig:
    return InstallerConfig(package_manager="npm", is_online=True)


@pytest.fixture
def yarn_offline_config() -> InstallerConfig:
    return InstallerConfig(package_manager="yarn", is_online=False)


# ---------------------------------------------------------------------------
# Subprocess
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_run_command():
    """Patch the installer's ``run_command``; every call exits 0 by default.

    Set ``mock.side_effect`` to a list of ``(code, out, err)`` tuples to
    script individual exit codes.
    """
    mock = AsyncMock(return_value=(0, "", ""))
    with patch("appseed.installer.run_command", mock):
        yield mock
