"""Tests for manifest and dependency construction (appseed.scaffolder.manifest)."""

from __future__ import annotations

import json
import os

import pytest

from appseed.config import FeatureSelection
from appseed.scaffolder.manifest import (
    BASE_SCRIPTS,
    LINTSTAGED_DEPENDENCIES,
    TAILWIND_DEPENDENCIES,
    Manifest,
    build_dependencies,
    build_manifest,
    write_manifest,
)

pytestmark = pytest.mark.unit


class TestBuildManifest:
    def test_defaults(self):
        manifest = build_manifest("my-app", FeatureSelection())
        assert manifest.name == "my-app"
        assert manifest.version == "0.1.0"
        assert manifest.private is True

    @pytest.mark.parametrize("app", ["next", "react"])
    def test_base_scripts_always_present(self, app, no_features):
        features = no_features.model_copy(update={"app": app})
        scripts = build_manifest("x", features).scripts
        for name, command in BASE_SCRIPTS[app].items():
            assert scripts[name] == command

    @pytest.mark.parametrize("app", ["next", "react"])
    def test_hooks_add_exactly_one_script(self, app, no_features):
        without = no_features.model_copy(update={"app": app})
        with_hooks = without.model_copy(update={"lintstaged": True})

        base = build_manifest("x", without).scripts
        extended = build_manifest("x", with_hooks).scripts

        assert len(extended) == len(base) + 1
        assert extended["prepare"] == "husky install"

    def test_docker_script(self, no_features):
        features = no_features.model_copy(update={"docker": True})
        scripts = build_manifest("shop", features).scripts
        assert scripts["docker:build"] == "docker build -t shop ."

    def test_react_lint_script_only_with_eslint(self):
        plain = build_manifest("x", FeatureSelection(app="react", eslint=False)).scripts
        linted = build_manifest("x", FeatureSelection(app="react", eslint=True)).scripts
        assert "lint" not in plain
        assert linted["lint"] == "eslint src"

    def test_next_keeps_builtin_lint(self):
        scripts = build_manifest("x", FeatureSelection(app="next", eslint=True)).scripts
        assert scripts["lint"] == "next lint"

    def test_browserslist_only_for_react(self):
        assert build_manifest("x", FeatureSelection(app="next")).browserslist is None
        react = build_manifest("x", FeatureSelection(app="react")).browserslist
        assert set(react) == {"production", "development"}


class TestManifestSerialisation:
    def test_to_json_ends_with_platform_newline(self):
        text = Manifest(name="x").to_json()
        assert text.endswith(os.linesep)
        assert text.startswith('{\n  "name": "x"')

    def test_browserslist_omitted_when_none(self):
        data = json.loads(Manifest(name="x").to_json())
        assert "browserslist" not in data
        assert list(data) == ["name", "version", "private", "scripts"]

    def test_write_manifest(self, tmp_project_dir):
        manifest = build_manifest("test-project", FeatureSelection(lintstaged=True))
        path = write_manifest(tmp_project_dir, manifest)

        assert path == tmp_project_dir / "package.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["name"] == "test-project"
        assert data["private"] is True
        assert data["scripts"]["prepare"] == "husky install"
        assert path.read_bytes().endswith(os.linesep.encode())


class TestBuildDependencies:
    def test_next_js_minimal(self, no_features):
        deps = build_dependencies(no_features.model_copy(update={"mode": "js"}))
        assert deps.dependencies == ["react", "react-dom", "next"]
        assert deps.dev_dependencies == []

    def test_typescript_adds_types(self, no_features):
        deps = build_dependencies(no_features)
        assert deps.dev_dependencies[0] == "typescript"
        assert "@types/react" in deps.dev_dependencies

    def test_feature_order(self):
        features = FeatureSelection(mode="js", tailwind=True, eslint=True, lintstaged=True)
        deps = build_dependencies(features)
        assert deps.dev_dependencies == [
            *TAILWIND_DEPENDENCIES,
            "eslint",
            "eslint-config-next",
            *LINTSTAGED_DEPENDENCIES,
        ]

    def test_react_runtime(self):
        deps = build_dependencies(FeatureSelection(app="react", mode="js", eslint=True, tailwind=False))
        assert "react-scripts" in deps.dependencies
        assert deps.dev_dependencies == ["eslint", "eslint-config-react-app"]

    def test_docker_adds_no_packages(self, no_features):
        with_docker = no_features.model_copy(update={"docker": True})
        assert build_dependencies(with_docker) == build_dependencies(no_features)
