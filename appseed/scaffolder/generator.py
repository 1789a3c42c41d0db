"""Template installation orchestrator.

Takes a ``FeatureSelection`` and populates a project root: copies the
matching template tree, rewrites the import alias, writes ``package.json``
and installs dependencies with the selected package manager.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from appseed.config import FeatureSelection, InstallerConfig
from appseed.installer import DependencyInstaller, InstallOutcome
from appseed.utils import console

from .alias import rewrite_compiler_config, rewrite_import_alias
from .copier import TEMPLATES_ROOT, TemplateReference, copy_template
from .manifest import DependencySet, build_dependencies, build_manifest, write_manifest
from .patterns import build_copy_rules


@dataclass
class GenerationResult:
    """Everything one template installation produced."""

    root: Path
    template: TemplateReference
    copied_files: list[Path] = field(default_factory=list)
    rewritten_files: int = 0
    manifest_path: Path | None = None
    dependencies: DependencySet = field(default_factory=DependencySet)
    install: InstallOutcome | None = None


class ProjectGenerator:
    """Main scaffolding orchestrator.

    Runs, in order:
    - copy rule construction from the feature flags
    - filtered template copy (with placeholder renames)
    - compiler-config rewrite and bulk import-alias rewrite
    - ``package.json`` generation
    - dependency installation (runtime, then dev)
    """

    def __init__(
        self,
        features: FeatureSelection,
        installer_config: InstallerConfig | None = None,
        templates_root: Path = TEMPLATES_ROOT,
    ) -> None:
        self.features = features
        self.installer_config = installer_config or InstallerConfig()
        self.templates_root = Path(templates_root)
        self.template = TemplateReference.from_features(features)

    async def generate(
        self,
        root: str | Path,
        app_name: str | None = None,
        install: bool = True,
    ) -> GenerationResult:
        """Install the template into *root*.

        Args:
            root: Existing, empty project directory.
            app_name: Name written to ``package.json``. Defaults to the
                directory name.
            install: Whether to run the package manager afterwards.

        Returns:
            A ``GenerationResult`` describing what was written.

        Raises:
            TemplateNotFoundError: If the template variant does not exist.
            InstallError: If the package manager exits non-zero.
            OSError: On any unreadable or unwritable file.
        """
        root = Path(root)
        app_name = app_name or root.name
        result = GenerationResult(root=root, template=self.template)

        console.print(
            f"\nInitializing project with template: "
            f"[cyan]{self.template.app}/{self.template.template}[/cyan] "
            f"([cyan]{self.template.mode}[/cyan])\n"
        )

        # 1. Copy the filtered template tree
        rules = build_copy_rules(self.features)
        result.copied_files = await copy_template(
            self.template.path(self.templates_root), root, rules
        )

        # 2. Compiler config is always rewritten; other files only for a custom alias
        await asyncio.to_thread(
            rewrite_compiler_config, root, self.features.mode, self.features.import_alias
        )
        result.rewritten_files = await rewrite_import_alias(
            root, self.features.import_alias
        )

        # 3. package.json
        manifest = build_manifest(app_name, self.features)
        result.manifest_path = await asyncio.to_thread(write_manifest, root, manifest)

        # 4. Dependencies
        result.dependencies = build_dependencies(self.features)
        if install:
            result.install = await self._install(root, result.dependencies)

        return result

    async def _install(self, root: Path, deps: DependencySet) -> InstallOutcome:
        console.print(f"[bold]Using {self.installer_config.package_manager}.[/bold]")
        console.print()
        if deps.dependencies:
            console.print("Installing dependencies:")
            for name in deps.dependencies:
                console.print(f"- [cyan]{name}[/cyan]")
            console.print()
        if deps.dev_dependencies:
            console.print("Installing devDependencies:")
            for name in deps.dev_dependencies:
                console.print(f"- [cyan]{name}[/cyan]")
            console.print()

        installer = DependencyInstaller(self.installer_config)
        return await installer.install(root, deps.dependencies, deps.dev_dependencies)
