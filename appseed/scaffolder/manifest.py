"""``package.json`` and dependency-list construction.

Both the manifest scripts and the dependency lists come from fixed mapping
tables: the application variant supplies a base set, then every enabled
feature appends its own entries.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field

from appseed.config import FeatureSelection, TemplateApp

MANIFEST_FILENAME = "package.json"

# ---------------------------------------------------------------------------
# Mapping tables
# ---------------------------------------------------------------------------

BASE_SCRIPTS: dict[TemplateApp, dict[str, str]] = {
    "next": {
        "dev": "next dev",
        "build": "next build",
        "start": "next start",
        "lint": "next lint",
    },
    "react": {
        "start": "react-scripts start",
        "build": "react-scripts build",
        "test": "react-scripts test",
        "eject": "react-scripts eject",
    },
}

BROWSERSLIST: dict[TemplateApp, dict[str, list[str]]] = {
    "react": {
        "production": [">0.2%", "not dead", "not op_mini all"],
        "development": [
            "last 1 chrome version",
            "last 1 firefox version",
            "last 1 safari version",
        ],
    },
}

BASE_DEPENDENCIES: dict[TemplateApp, tuple[str, ...]] = {
    "next": ("react", "react-dom", "next"),
    "react": ("react", "react-dom", "react-scripts", "web-vitals"),
}

TYPESCRIPT_DEPENDENCIES: dict[TemplateApp, tuple[str, ...]] = {
    "next": ("typescript", "@types/react", "@types/node", "@types/react-dom"),
    "react": ("typescript", "@types/react", "@types/node", "@types/react-dom", "@types/jest"),
}

ESLINT_DEPENDENCIES: dict[TemplateApp, tuple[str, ...]] = {
    "next": ("eslint", "eslint-config-next"),
    "react": ("eslint", "eslint-config-react-app"),
}

TAILWIND_DEPENDENCIES: tuple[str, ...] = ("tailwindcss", "postcss", "autoprefixer")
LINTSTAGED_DEPENDENCIES: tuple[str, ...] = ("husky", "lint-staged")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Manifest(BaseModel):
    """The generated project's ``package.json``."""

    name: str
    version: str = "0.1.0"
    private: bool = True
    scripts: dict[str, str] = Field(default_factory=dict)
    browserslist: dict[str, list[str]] | None = None

    def to_json(self) -> str:
        """Serialise with two-space indentation and a trailing line ending."""
        data = self.model_dump(exclude_none=True)
        return json.dumps(data, indent=2) + os.linesep


class DependencySet(BaseModel):
    """Runtime and development package names, in install order."""

    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_manifest(app_name: str, features: FeatureSelection) -> Manifest:
    """Build the manifest for *app_name* from the variant and feature flags."""
    scripts = dict(BASE_SCRIPTS[features.app])

    if features.eslint and "lint" not in scripts:
        scripts["lint"] = "eslint src"
    if features.lintstaged:
        scripts["prepare"] = "husky install"
    if features.docker:
        scripts["docker:build"] = f"docker build -t {app_name} ."

    return Manifest(
        name=app_name,
        scripts=scripts,
        browserslist=BROWSERSLIST.get(features.app),
    )


def build_dependencies(features: FeatureSelection) -> DependencySet:
    """Assemble the packages each enabled feature needs."""
    deps = DependencySet(dependencies=list(BASE_DEPENDENCIES[features.app]))

    if features.typescript:
        deps.dev_dependencies.extend(TYPESCRIPT_DEPENDENCIES[features.app])
    if features.tailwind:
        deps.dev_dependencies.extend(TAILWIND_DEPENDENCIES)
    if features.eslint:
        deps.dev_dependencies.extend(ESLINT_DEPENDENCIES[features.app])
    if features.lintstaged:
        deps.dev_dependencies.extend(LINTSTAGED_DEPENDENCIES)

    return deps


def write_manifest(root: str | Path, manifest: Manifest) -> Path:
    """Write *manifest* to ``<root>/package.json`` in a single call."""
    path = Path(root) / MANIFEST_FILENAME
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(manifest.to_json())
    return path
