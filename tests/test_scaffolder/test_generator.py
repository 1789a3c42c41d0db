"""Tests for the template installation orchestrator (appseed.scaffolder.generator).

Covers:
- End-to-end generation against a small template tree
- Default vs custom import alias
- Installer invocation and skipping
- Error propagation from the installer
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from appseed.config import FeatureSelection, InstallerConfig
from appseed.errors import InstallError, TemplateNotFoundError
from appseed.scaffolder import GenerationResult, ProjectGenerator

pytestmark = pytest.mark.unit


def _files(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}


@pytest.fixture
def scenario_features() -> FeatureSelection:
    """ts, no styling, linter on, no hooks, no containers, default alias."""
    return FeatureSelection(
        mode="ts", tailwind=False, eslint=True, lintstaged=False, docker=False,
        import_alias="@/*",
    )


class TestProjectGenerator:
    def test_resolves_template(self, scenario_features):
        generator = ProjectGenerator(scenario_features)
        assert generator.template.template == "app"
        assert generator.installer_config == InstallerConfig()

    @pytest.mark.asyncio
    async def test_five_file_scenario(self, templates_root, tmp_project_dir, scenario_features):
        # The five-file template lives under app-tw; copy it with styling disabled.
        generator = ProjectGenerator(scenario_features, templates_root=templates_root)
        generator.template = generator.template.model_copy(update={"template": "app-tw"})

        result = await generator.generate(tmp_project_dir, install=False)

        assert isinstance(result, GenerationResult)
        assert len(result.copied_files) == 3
        assert _files(tmp_project_dir) == {
            "package.json",
            "tsconfig.json",
            "src/app/page.tsx",
            "src/components/Greeting.tsx",
        }
        assert result.install is None

    @pytest.mark.asyncio
    async def test_three_generic_files_besides_compiler_config(
        self, tmp_path, tmp_project_dir, scenario_features, make_tree
    ):
        root = tmp_path / "templates"
        make_tree(
            root / "next" / "app-tw" / "ts",
            {
                "tailwind.config.ts": "export default {};\n",
                "postcss.config.js": "module.exports = {};\n",
                "src/app/page.tsx": 'import { Greeting } from "@/components/Greeting";\n',
                "src/components/Greeting.tsx": "export function Greeting() { return null; }\n",
                "src/app/globals.css": "body { margin: 0; }\n",
                "tsconfig.json": '{"compilerOptions": {"paths": {"@/*": ["./*"]}}}\n',
            },
        )
        generator = ProjectGenerator(scenario_features, templates_root=root)
        generator.template = generator.template.model_copy(update={"template": "app-tw"})

        result = await generator.generate(tmp_project_dir, install=False)

        assert len(result.copied_files) == 4
        assert _files(tmp_project_dir) == {
            "package.json",
            "tsconfig.json",
            "src/app/page.tsx",
            "src/app/globals.css",
            "src/components/Greeting.tsx",
        }
        assert '"@/*": ["./src/*"]' in (tmp_project_dir / "tsconfig.json").read_text()

    @pytest.mark.asyncio
    async def test_default_alias_only_touches_compiler_config(
        self, templates_root, tmp_project_dir, no_features
    ):
        generator = ProjectGenerator(no_features, templates_root=templates_root)
        result = await generator.generate(tmp_project_dir, install=False)

        assert result.rewritten_files == 0
        page = (tmp_project_dir / "src" / "app" / "page.tsx").read_text()
        assert '"@/lib/a"' in page
        assert '"@/*": ["./src/*"]' in (tmp_project_dir / "tsconfig.json").read_text()

    @pytest.mark.asyncio
    async def test_custom_alias(self, templates_root, tmp_project_dir, no_features):
        features = no_features.model_copy(update={"import_alias": "~/*"})
        generator = ProjectGenerator(features, templates_root=templates_root)
        result = await generator.generate(tmp_project_dir, install=False)

        assert result.rewritten_files > 0
        for path in (tmp_project_dir / "src").rglob("*.ts*"):
            assert "@/" not in path.read_text()
        assert '"~/*": ["./src/*"]' in (tmp_project_dir / "tsconfig.json").read_text()

    @pytest.mark.asyncio
    async def test_manifest_uses_directory_name(self, templates_root, tmp_project_dir, no_features):
        generator = ProjectGenerator(no_features, templates_root=templates_root)
        result = await generator.generate(tmp_project_dir, install=False)

        data = json.loads(result.manifest_path.read_text())
        assert data["name"] == "test-project"

    @pytest.mark.asyncio
    async def test_explicit_app_name(self, templates_root, tmp_project_dir, no_features):
        generator = ProjectGenerator(no_features, templates_root=templates_root)
        result = await generator.generate(tmp_project_dir, app_name="other", install=False)
        assert json.loads(result.manifest_path.read_text())["name"] == "other"

    @pytest.mark.asyncio
    async def test_installs_runtime_then_dev(
        self, templates_root, tmp_project_dir, all_features, npm_config, mock_run_command
    ):
        generator = ProjectGenerator(all_features, npm_config, templates_root=templates_root)
        result = await generator.generate(tmp_project_dir)

        assert result.install is not None and result.install.success
        assert mock_run_command.await_count == 2
        first = mock_run_command.await_args_list[0].args[0]
        second = mock_run_command.await_args_list[1].args[0]
        assert first[:3] == ["npm", "install", "--save-exact"]
        assert "next" in first
        assert "--save-dev" in second
        assert "husky" in second

    @pytest.mark.asyncio
    async def test_install_failure_propagates(
        self, templates_root, tmp_project_dir, all_features, npm_config, mock_run_command
    ):
        mock_run_command.return_value = (1, "", "")
        generator = ProjectGenerator(all_features, npm_config, templates_root=templates_root)

        with pytest.raises(InstallError) as exc_info:
            await generator.generate(tmp_project_dir)

        assert exc_info.value.state == "phase1-failed"
        assert (tmp_project_dir / "package.json").exists()

    @pytest.mark.asyncio
    async def test_missing_variant(self, templates_root, tmp_project_dir):
        features = FeatureSelection(app="react")
        generator = ProjectGenerator(features, templates_root=templates_root)
        with pytest.raises(TemplateNotFoundError):
            await generator.generate(tmp_project_dir, install=False)
