"""Copy rules derived from feature flags.

A ``CopyRuleSet`` is an ordered list of include/exclude glob patterns that
decides which template files reach the destination tree.  Every rule is
checked against a file's POSIX path relative to the template root and the
**last matching rule wins**; a path that no rule matches is not copied.
Matching is case-sensitive.

Pattern syntax:

* ``**`` matches any number of characters, including ``/``.
* A pattern without ``/`` matches the file's basename only.
* A leading ``**/`` also matches files at the template root.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

from appseed.config import FeatureSelection

# Files that only make sense when the owning feature is enabled, keyed by
# the FeatureSelection attribute that owns them.  Names are the template-side
# names, before the copier renames them.
FEATURE_FILES: dict[str, tuple[str, ...]] = {
    "eslint": ("**/eslintrc.json",),
    "tailwind": ("**/tailwind.config.*", "**/postcss.config.*"),
    "lintstaged": ("**/lintstagedrc.json", "**/husky/**"),
    "docker": ("**/Dockerfile", "**/dockerignore", "**/docker-compose.yml"),
}


def _match(path: str, pattern: str) -> bool:
    if "/" not in pattern:
        return fnmatchcase(PurePosixPath(path).name, pattern)
    if fnmatchcase(path, pattern):
        return True
    return pattern.startswith("**/") and fnmatchcase(path, pattern[3:])


@dataclass(frozen=True)
class CopyRule:
    """One include (or exclude) glob pattern."""

    pattern: str
    exclude: bool = False

    def matches(self, rel_path: str) -> bool:
        return _match(rel_path, self.pattern)


@dataclass
class CopyRuleSet:
    """Ordered include/exclude rules; the last matching rule decides."""

    rules: list[CopyRule] = field(default_factory=list)

    def include(self, *patterns: str) -> "CopyRuleSet":
        self.rules.extend(CopyRule(p) for p in patterns)
        return self

    def exclude(self, *patterns: str) -> "CopyRuleSet":
        self.rules.extend(CopyRule(p, exclude=True) for p in patterns)
        return self

    def includes(self, rel_path: str | PurePosixPath) -> bool:
        """Return ``True`` if *rel_path* should be copied."""
        path = str(PurePosixPath(rel_path))
        decision = False
        for rule in self.rules:
            if rule.matches(path):
                decision = not rule.exclude
        return decision


def build_copy_rules(features: FeatureSelection) -> CopyRuleSet:
    """Translate *features* into the rules used by the template copier.

    Always includes everything, then excludes the configuration files of
    each disabled feature.
    """
    rules = CopyRuleSet().include("**")
    for feature, patterns in FEATURE_FILES.items():
        if not getattr(features, feature):
            rules.exclude(*patterns)
    return rules
