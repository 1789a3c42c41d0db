"""Interactive prompts for the CLI.

Every question is asked at most once and only when the answer was not given
on the command line.  Stored ``Preferences`` supply the defaults; with
``--yes`` (or without a TTY) the defaults are taken without asking.  The
result is a frozen ``FeatureSelection`` plus the preferences to save.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from rich.prompt import Confirm, Prompt

from appseed.config import (
    DEFAULT_IMPORT_ALIAS,
    FeatureSelection,
    PackageManager,
    Preferences,
    validate_import_alias,
)
from appseed.utils import console, detect_package_manager, validate_npm_name

DEFAULT_PROJECT_NAME = "my-app"

# (argument/preference name, question, default when nothing is stored)
_TOGGLES: tuple[tuple[str, str, bool], ...] = (
    ("typescript", "Would you like to use [blue]TypeScript[/blue]?", True),
    ("tailwind", "Would you like to use [blue]Tailwind CSS[/blue]?", True),
    ("eslint", "Would you like to use [blue]ESLint[/blue]?", True),
    ("lintstaged", "Would you like to set up [blue]Husky + lint-staged[/blue] pre-commit hooks?", False),
    ("docker", "Would you like to add a [blue]Dockerfile[/blue]?", False),
)


def ask_project_path(initial: str = DEFAULT_PROJECT_NAME) -> str:
    """Ask for the project directory until the name is a valid npm name."""
    while True:
        answer = Prompt.ask("What is your project named?", default=initial).strip()
        valid, problems = validate_npm_name(Path(answer).resolve().name)
        if valid:
            return answer
        console.print(f"[red]Invalid project name: {problems[0]}[/red]")


def ask_import_alias(default: str) -> str:
    while True:
        answer = Prompt.ask(
            "What import alias would you like configured?", default=default
        ).strip()
        try:
            return validate_import_alias(answer)
        except ValueError:
            console.print("[red]Import alias must follow the pattern <prefix>/*[/red]")


def resolve_package_manager(args: argparse.Namespace, preferences: Preferences) -> PackageManager:
    """``--use-*`` flag, then stored preference, then the launching manager."""
    if args.package_manager:
        return args.package_manager
    return preferences.package_manager or detect_package_manager()


def resolve_features(
    args: argparse.Namespace,
    preferences: Preferences,
    interactive: bool,
) -> tuple[FeatureSelection, Preferences]:
    """Combine CLI flags, stored preferences and prompt answers.

    Args:
        args: Parsed command-line arguments.
        preferences: Previously stored answers, used as defaults.
        interactive: Whether questions may be asked.

    Returns:
        The feature selection for this run and the preferences to store.

    Raises:
        pydantic.ValidationError: If the import alias is malformed.
    """
    answers: dict[str, bool] = {}
    for name, question, fallback in _TOGGLES:
        given = getattr(args, name)
        if given is not None:
            answers[name] = given
            continue
        stored = getattr(preferences, name)
        default = fallback if stored is None else stored
        answers[name] = Confirm.ask(question, default=default) if interactive else default

    app = args.app or preferences.app or "next"

    import_alias = args.import_alias
    if import_alias is None:
        default_alias = preferences.import_alias or DEFAULT_IMPORT_ALIAS
        import_alias = ask_import_alias(default_alias) if interactive else default_alias

    features = FeatureSelection(
        mode="ts" if answers["typescript"] else "js",
        tailwind=answers["tailwind"],
        eslint=answers["eslint"],
        lintstaged=answers["lintstaged"],
        docker=answers["docker"],
        app=app,
        import_alias=import_alias,
    )
    updated = preferences.model_copy(
        update={**answers, "app": app, "import_alias": import_alias}
    )
    return features, updated
