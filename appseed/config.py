"""appseed configuration.

Typed, validated records for everything the scaffolding pipeline consumes.
All settings use Pydantic v2 models so they can be validated at construction
time and serialised to/from JSON or environment variables without
boiler-plate.  ``FeatureSelection`` and ``InstallerConfig`` are frozen: they
are built once, after argument parsing and prompting, and never mutated while
the pipeline runs.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TemplateMode = Literal["js", "ts"]
TemplateApp = Literal["next", "react"]
PackageManager = Literal["npm", "pnpm", "yarn"]

DEFAULT_IMPORT_ALIAS = "@/*"

_IMPORT_ALIAS_RE = re.compile(r"^[^*\"]+/\*$")


def validate_import_alias(value: str) -> str:
    """Return *value* if it has the ``<prefix>/*`` shape, else raise ``ValueError``."""
    if not _IMPORT_ALIAS_RE.match(value):
        raise ValueError(
            f"Import alias must follow the pattern <prefix>/*, got {value!r}"
        )
    return value


class FeatureSelection(BaseModel):
    """Feature toggles for one scaffolding run."""

    model_config = ConfigDict(frozen=True)

    mode: TemplateMode = Field(default="ts")
    tailwind: bool = Field(default=True, description="Styling framework enabled")
    eslint: bool = Field(default=True, description="Linter enabled")
    lintstaged: bool = Field(default=False, description="Pre-commit hooks enabled")
    docker: bool = Field(default=False, description="Container tooling enabled")
    app: TemplateApp = Field(default="next")
    import_alias: str = Field(default=DEFAULT_IMPORT_ALIAS)

    @field_validator("import_alias")
    @classmethod
    def _check_import_alias(cls, value: str) -> str:
        return validate_import_alias(value)

    @property
    def typescript(self) -> bool:
        return self.mode == "ts"

    @property
    def template(self) -> str:
        """Template family name for the selected app and styling."""
        base = "app" if self.app == "next" else "default"
        return f"{base}-tw" if self.tailwind else base


class InstallerConfig(BaseModel):
    """Package-manager identity plus connectivity for the installer."""

    model_config = ConfigDict(frozen=True)

    package_manager: PackageManager = Field(default="npm")
    is_online: bool = Field(default=True)


class Preferences(BaseModel):
    """Answers remembered between runs.

    Every field is optional: ``None`` means "ask again".  The CLI loads the
    preferences before prompting, uses stored answers as prompt defaults and
    saves the final answers after a successful run.
    """

    typescript: bool | None = None
    tailwind: bool | None = None
    eslint: bool | None = None
    lintstaged: bool | None = None
    docker: bool | None = None
    app: TemplateApp | None = None
    import_alias: str | None = None
    package_manager: PackageManager | None = None

    # ------------------------------------------------------------------
    # Storage location
    # ------------------------------------------------------------------

    @staticmethod
    def default_path() -> Path:
        """Path to ``preferences.json`` (honours ``APPSEED_CONFIG_DIR``)."""
        config_dir = os.environ.get("APPSEED_CONFIG_DIR")
        if config_dir:
            return Path(config_dir) / "preferences.json"
        return Path.home() / ".config" / "appseed" / "preferences.json"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the preferences to a JSON file.

        Args:
            path: Destination file. Defaults to :meth:`default_path`.

        Returns:
            The path where the file was written.
        """
        target = path or self.default_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            self.model_dump_json(indent=2, exclude_none=True), encoding="utf-8"
        )
        return target

    @classmethod
    def load(cls, path: Path | None = None) -> "Preferences":
        """Load stored preferences, or empty ones if nothing was saved yet."""
        source = path or cls.default_path()
        if not source.exists():
            return cls()
        return cls.model_validate_json(source.read_text(encoding="utf-8"))

    @classmethod
    def reset(cls, path: Path | None = None) -> bool:
        """Delete stored preferences.  Returns ``True`` if a file was removed."""
        source = path or cls.default_path()
        if source.exists():
            source.unlink()
            return True
        return False

    @classmethod
    def from_env(cls) -> "Preferences":
        """Build preferences from environment variables.

        Recognised variables (all optional):
            APPSEED_PACKAGE_MANAGER, APPSEED_IMPORT_ALIAS.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("APPSEED_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["APPSEED_PACKAGE_MANAGER"]
        if os.environ.get("APPSEED_IMPORT_ALIAS"):
            kwargs["import_alias"] = os.environ["APPSEED_IMPORT_ALIAS"]
        return cls(**kwargs)

    def merged_with(self, other: "Preferences") -> "Preferences":
        """Return a copy where fields set on *other* override this one."""
        return self.model_copy(update=other.model_dump(exclude_none=True))
