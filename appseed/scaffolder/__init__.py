"""appseed scaffolder -- materialises a project from a bundled template.

Quick usage::

    from appseed.config import FeatureSelection, InstallerConfig
    from appseed.scaffolder import ProjectGenerator

    features = FeatureSelection(mode="ts", tailwind=True, import_alias="~/*")
    generator = ProjectGenerator(features, InstallerConfig(package_manager="pnpm"))
    result = await generator.generate("/tmp/my-app")
"""

from appseed.scaffolder.copier import TemplateReference, copy_template
from appseed.scaffolder.generator import GenerationResult, ProjectGenerator
from appseed.scaffolder.manifest import (
    DependencySet,
    Manifest,
    build_dependencies,
    build_manifest,
    write_manifest,
)
from appseed.scaffolder.patterns import CopyRule, CopyRuleSet, build_copy_rules

__all__ = [
    "CopyRule",
    "CopyRuleSet",
    "DependencySet",
    "GenerationResult",
    "Manifest",
    "ProjectGenerator",
    "TemplateReference",
    "build_copy_rules",
    "build_dependencies",
    "build_manifest",
    "copy_template",
    "write_manifest",
]
