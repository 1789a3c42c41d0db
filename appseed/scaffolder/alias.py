"""Import-alias rewriting for freshly copied projects.

Two passes run after the template copy:

1. :func:`rewrite_compiler_config` always rewrites ``tsconfig.json`` /
   ``jsconfig.json``: the default path mapping is pointed at ``src/`` and the
   ``@/*`` key is replaced with the configured alias.
2. :func:`rewrite_import_alias` replaces every ``@/`` in every other file
   with the configured prefix, byte-wise, but only when the alias differs
   from the default.  Version-control metadata is left alone.
   Files are rewritten concurrently, at most ``limit`` at a time.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from appseed.config import DEFAULT_IMPORT_ALIAS, TemplateMode

COMPILER_CONFIG_FILES: frozenset[str] = frozenset({"tsconfig.json", "jsconfig.json"})
VCS_DIRS: frozenset[str] = frozenset({".git", ".hg"})

DEFAULT_CONCURRENCY = 8

_DEFAULT_PATH_MAPPING = '"@/*": ["./*"]'
_SRC_PATH_MAPPING = '"@/*": ["./src/*"]'
_DEFAULT_ALIAS_KEY = '"@/*":'


def alias_prefix(import_alias: str) -> str:
    """Strip the wildcard: ``"~/*"`` -> ``"~/"``."""
    return import_alias.replace("*", "")


def compiler_config_path(root: Path, mode: TemplateMode) -> Path:
    return root / ("tsconfig.json" if mode == "ts" else "jsconfig.json")


def rewrite_compiler_config(
    root: str | Path, mode: TemplateMode, import_alias: str
) -> Path:
    """Point the path mapping at ``src/`` and install *import_alias* as its key.

    The two replacements run in order, each on the first occurrence only.

    Returns:
        Path of the rewritten compiler configuration file.
    """
    path = compiler_config_path(Path(root), mode)
    content = path.read_text(encoding="utf-8")
    content = content.replace(_DEFAULT_PATH_MAPPING, _SRC_PATH_MAPPING, 1)
    content = content.replace(_DEFAULT_ALIAS_KEY, f'"{import_alias}":', 1)
    path.write_text(content, encoding="utf-8")
    return path


def _rewrite_file(path: Path, old: bytes, new: bytes) -> None:
    data = path.read_bytes()
    path.write_bytes(data.replace(old, new))


def _rewrite_candidates(root: Path) -> list[Path]:
    """Regular files under *root*, minus compiler configs and VCS metadata."""
    return [
        path
        for path in root.rglob("*")
        if path.name not in COMPILER_CONFIG_FILES
        and not VCS_DIRS.intersection(path.relative_to(root).parts)
        and path.is_file()
    ]


async def rewrite_import_alias(
    root: str | Path,
    import_alias: str,
    default_alias: str = DEFAULT_IMPORT_ALIAS,
    limit: int = DEFAULT_CONCURRENCY,
) -> int:
    """Replace the default alias prefix with *import_alias* across *root*.

    Every regular file under *root* (hidden files included) is rewritten,
    except compiler configuration files and anything inside ``.git`` or
    ``.hg``.  Files are treated as bytes, so binary assets pass through
    untouched unless they contain the prefix.  The first read or write error
    cancels the remaining rewrites and propagates.

    Returns:
        Number of files rewritten; ``0`` when *import_alias* is the default.
    """
    if import_alias == default_alias:
        return 0

    old = alias_prefix(default_alias).encode("utf-8")
    new = alias_prefix(import_alias).encode("utf-8")
    files = _rewrite_candidates(Path(root))

    semaphore = asyncio.Semaphore(limit)
    failed = False

    async def _rewrite(path: Path) -> None:
        nonlocal failed
        async with semaphore:
            # A waiter woken by the failing task's release must not start.
            if failed:
                return
            try:
                await asyncio.to_thread(_rewrite_file, path, old, new)
            except Exception:
                failed = True
                raise

    try:
        async with asyncio.TaskGroup() as group:
            for path in files:
                group.create_task(_rewrite(path))
    except ExceptionGroup as exc:
        raise exc.exceptions[0] from None
    return len(files)
