"""Template resolution and filtered tree copying.

Templates live under ``appseed/scaffolder/templates/<app>/<template>/<mode>/``.
``copy_template`` mirrors one of those trees into the destination root,
keeping relative directory structure, skipping files the copy rules exclude,
and renaming template-side placeholder names (``gitignore``, ``husky`` ...)
to their conventional dot-prefixed targets.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict

from appseed.config import FeatureSelection, TemplateApp, TemplateMode
from appseed.errors import TemplateNotFoundError

from .patterns import CopyRuleSet

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

TEMPLATES_ROOT = Path(__file__).parent / "templates"

# Template-side name -> destination name.  Applied to every path segment.
RENAMES: dict[str, str] = {
    "gitignore": ".gitignore",
    "eslintrc.json": ".eslintrc.json",
    "lintstagedrc.json": ".lintstagedrc.json",
    "dockerignore": ".dockerignore",
    "README-template.md": "README.md",
    "husky": ".husky",
}


class TemplateReference(BaseModel):
    """Identifies one concrete template tree on disk."""

    model_config = ConfigDict(frozen=True)

    app: TemplateApp
    template: str
    mode: TemplateMode

    @classmethod
    def from_features(cls, features: FeatureSelection) -> "TemplateReference":
        return cls(app=features.app, template=features.template, mode=features.mode)

    def path(self, root: Path = TEMPLATES_ROOT) -> Path:
        """Source directory for this template under *root*."""
        return root / self.app / self.template / self.mode


def rename_path(rel_path: PurePosixPath) -> PurePosixPath:
    """Apply :data:`RENAMES` to every segment of *rel_path*."""
    return PurePosixPath(*(RENAMES.get(part, part) for part in rel_path.parts))


def list_template_files(source: Path, rules: CopyRuleSet) -> list[PurePosixPath]:
    """Return the source-relative paths of every file *rules* lets through.

    Hidden files are enumerated too.  The result is sorted so copies are
    deterministic.
    """
    selected: list[PurePosixPath] = []
    for path in sorted(source.rglob("*")):
        if not path.is_file():
            continue
        rel = PurePosixPath(path.relative_to(source).as_posix())
        if rules.includes(rel):
            selected.append(rel)
    return selected


def _copy_file(src: Path, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, dst)


async def copy_template(
    source: str | Path,
    destination: str | Path,
    rules: CopyRuleSet,
) -> list[Path]:
    """Copy the filtered template tree from *source* into *destination*.

    The destination is expected to exist and be empty; that is checked by the
    caller.  Any ``OSError`` aborts the copy and propagates; files copied
    before the failure are left in place.

    Args:
        source: Template directory, usually ``TemplateReference.path()``.
        destination: Project root to populate.
        rules: Include/exclude rules from :func:`build_copy_rules`.

    Returns:
        Destination paths of every copied file, in copy order.

    Raises:
        TemplateNotFoundError: If *source* is not a directory.
    """
    src_root = Path(source)
    dst_root = Path(destination)
    if not src_root.is_dir():
        raise TemplateNotFoundError(src_root)

    rel_paths = await asyncio.to_thread(list_template_files, src_root, rules)

    copied: list[Path] = []
    for rel in rel_paths:
        target = dst_root.joinpath(*rename_path(rel).parts)
        await asyncio.to_thread(_copy_file, src_root.joinpath(*rel.parts), target)
        copied.append(target)
    return copied
