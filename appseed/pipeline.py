"""appseed project creation flow and CLI entry point.

Creating a project runs these steps:

1. Check that the parent directory is writable and the target is empty.
2. Populate the project, either from a remote example (downloaded tarball)
   or from a bundled template (copy, alias rewrite, ``package.json``).
3. Install dependencies with the selected package manager.
4. Initialise a git repository with an initial commit.

Usage::

    appseed my-app
    appseed my-app --js --no-tailwind --import-alias "~/*" --use-pnpm
    appseed my-app --example with-docker --fallback
    python -m appseed.pipeline --reset-preferences
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape
from rich.prompt import Confirm

from appseed import __version__
from appseed.config import FeatureSelection, InstallerConfig, Preferences
from appseed.errors import AppSeedError, DownloadError, InstallError
from appseed.examples import (
    download_and_extract_example,
    download_and_extract_repo,
    existing_example,
    get_repo_info,
    has_repo,
)
from appseed.git import try_git_init
from appseed.installer import DependencyInstaller
from appseed.prompts import ask_project_path, resolve_features, resolve_package_manager
from appseed.scaffolder import ProjectGenerator
from appseed.utils import (
    console,
    ensure_dir,
    format_duration,
    is_folder_empty,
    is_online,
    is_writeable,
    print_error,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
    validate_npm_name,
)

# ---------------------------------------------------------------------------
# Project creation
# ---------------------------------------------------------------------------


async def _install_example(
    root: Path, example: str, example_path: str | None
) -> None:
    """Download *example* (a name or GitHub URL) into *root*.

    Raises:
        AppSeedError: If the example or repository does not exist.
        DownloadError: If fetching or unpacking fails.
    """
    if example.startswith(("http://", "https://")):
        repo = await get_repo_info(example, example_path)
        if repo is None:
            raise AppSeedError(f'Found invalid GitHub URL: "{example}". Please fix the URL and try again.')
        if not await has_repo(repo):
            raise AppSeedError(
                f'Could not locate the repository for "{example}". '
                "Please check that the repository exists and try again."
            )
        console.print(f"Downloading files from repo [cyan]{example}[/cyan]. This might take a moment.\n")
        await download_and_extract_repo(root, repo)
        return

    if not await existing_example(example):
        raise AppSeedError(
            f'Could not locate an example named "{example}". '
            "Please check your spelling and try again."
        )
    console.print(f"Downloading files for example [cyan]{example}[/cyan]. This might take a moment.\n")
    await download_and_extract_example(root, example)


async def create_app(
    app_path: str | Path,
    features: FeatureSelection,
    installer_config: InstallerConfig,
    *,
    example: str | None = None,
    example_path: str | None = None,
    install: bool = True,
    git: bool = True,
) -> Path:
    """Create a new project at *app_path*.

    Args:
        app_path: Project directory; created if missing, must be empty.
        features: Feature toggles for the bundled template.
        installer_config: Package manager and connectivity.
        example: Example name or GitHub URL to use instead of a template.
        example_path: Sub-directory of the example inside the repository.
        install: Whether to run the package manager.
        git: Whether to initialise a git repository.

    Returns:
        The resolved project root.

    Raises:
        AppSeedError: If the target cannot be used or the example is unknown.
        DownloadError: If the example download fails.
        InstallError: If the package manager exits non-zero.
        OSError: If a file cannot be read or written.
    """
    root = Path(app_path).resolve()
    if not is_writeable(root.parent):
        raise AppSeedError(
            "The application path is not writable, please check folder permissions "
            "and try again. It is likely you do not have write permissions for this folder."
        )

    app_name = root.name
    ensure_dir(root)
    if not is_folder_empty(root, app_name):
        raise AppSeedError(f"The directory {app_name} is not empty.")

    console.print(f"Creating a new app in [green]{root}[/green].")
    console.print()

    if example:
        await _install_example(root, example, example_path)
        if install:
            print_step("Installing packages")
            await DependencyInstaller(installer_config).install(root)
    else:
        generator = ProjectGenerator(features, installer_config)
        await generator.generate(root, app_name, install=install)

    if git and await try_git_init(root):
        console.print("Initialized a git repository.")
        console.print()

    return root


def _print_next_steps(root: Path, package_manager: str, dev_script: str, started: float) -> None:
    def script(name: str) -> str:
        if package_manager == "yarn" or name == "start":
            return f"{package_manager} {name}"
        return f"{package_manager} run {name}"

    print_success(f"Success! Created {root.name} at {root}")
    print_summary_table(
        {
            "Start the development server": script(dev_script),
            "Build for production": script("build"),
            "Elapsed": format_duration(time.monotonic() - started),
        },
        title=f"Inside {root.name}",
    )
    console.print("We suggest that you begin by typing:")
    console.print()
    console.print(f"  [cyan]cd[/cyan] {root}")
    console.print(f"  [cyan]{script(dev_script)}[/cyan]")
    console.print()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appseed",
        description="appseed -- create a new web application from a template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  appseed my-app\n"
            "  appseed my-app --js --no-tailwind --import-alias '~/*'\n"
            "  appseed my-app --app react --use-pnpm --yes\n"
            "  appseed my-app --example https://github.com/user/repo/tree/main/app\n"
        ),
    )
    parser.add_argument("project_directory", nargs="?", help="Directory to create the project in")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--ts", "--typescript", dest="typescript", action="store_true", default=None,
        help="Initialize as a TypeScript project (default)",
    )
    mode.add_argument(
        "--js", "--javascript", dest="typescript", action="store_false", default=None,
        help="Initialize as a JavaScript project",
    )
    parser.add_argument(
        "--tailwind", action=argparse.BooleanOptionalAction, default=None,
        help="Initialize with Tailwind CSS config (default)",
    )
    parser.add_argument(
        "--eslint", action=argparse.BooleanOptionalAction, default=None,
        help="Initialize with ESLint config (default)",
    )
    parser.add_argument(
        "--lintstaged", action=argparse.BooleanOptionalAction, default=None,
        help="Initialize with Husky + lint-staged pre-commit hooks",
    )
    parser.add_argument(
        "--docker", action=argparse.BooleanOptionalAction, default=None,
        help="Initialize with a Dockerfile and .dockerignore",
    )
    parser.add_argument(
        "--app", choices=["next", "react"], default=None,
        help="Application kind to scaffold (default: next)",
    )
    parser.add_argument(
        "--import-alias", default=None,
        help='Import alias to configure (default "@/*")',
    )

    managers = parser.add_mutually_exclusive_group()
    for name in ("npm", "pnpm", "yarn"):
        managers.add_argument(
            f"--use-{name}", dest="package_manager", action="store_const", const=name,
            help=f"Bootstrap the app using {name}",
        )

    parser.add_argument(
        "-e", "--example", default=None,
        help="Example name or GitHub URL to bootstrap the app with",
    )
    parser.add_argument(
        "--example-path", default=None,
        help="Path to the example inside the repository, when the branch name contains a slash",
    )
    parser.add_argument(
        "--fallback", action="store_true",
        help="Use the default template without asking when the example download fails",
    )
    parser.add_argument("--skip-install", action="store_true", help="Do not install dependencies")
    parser.add_argument("--no-git", dest="git", action="store_false", help="Do not initialise a git repository")
    parser.add_argument("-y", "--yes", action="store_true", help="Use stored or default answers without prompting")
    parser.add_argument("--reset-preferences", action="store_true", help="Clear stored preferences and exit")
    return parser


async def run(args: argparse.Namespace) -> int:
    """Execute one CLI invocation; returns the process exit code."""
    if args.reset_preferences:
        Preferences.reset()
        print_success("Preferences reset successfully")
        return 0

    interactive = not args.yes and sys.stdin.isatty()
    try:
        preferences = Preferences.load().merged_with(Preferences.from_env())
    except ValidationError as exc:
        print_error(f"Invalid preferences: {escape(exc.errors()[0]['msg'])}")
        console.print(
            f"Check [cyan]{Preferences.default_path()}[/cyan] and the APPSEED_* environment "
            "variables, or run [cyan]appseed --reset-preferences[/cyan]."
        )
        return 1
    except OSError as exc:
        print_error(f"Could not read preferences: {escape(str(exc))}")
        return 1

    project_path = (args.project_directory or "").strip()
    if not project_path and interactive:
        project_path = ask_project_path()
    if not project_path:
        print_error("Please specify the project directory:")
        console.print("  [cyan]appseed[/cyan] [green]<project-directory>[/green]")
        console.print("Run [cyan]appseed --help[/cyan] to see all options.")
        return 1

    project_name = Path(project_path).resolve().name
    valid, problems = validate_npm_name(project_name)
    if not valid:
        print_error(
            f'Could not create a project called "{project_name}" because of npm naming restrictions:'
        )
        for problem in problems:
            console.print(f"    [bold red]*[/bold red] {problem}")
        return 1

    try:
        features, answers = resolve_features(args, preferences, interactive)
    except ValidationError as exc:
        print_error(f"Invalid options: {exc.errors()[0]['msg']}")
        return 1

    package_manager = resolve_package_manager(args, preferences)
    online = package_manager != "yarn" or await is_online()
    installer_config = InstallerConfig(package_manager=package_manager, is_online=online)

    started = time.monotonic()
    kwargs = {"install": not args.skip_install, "git": args.git}
    try:
        try:
            root = await create_app(
                project_path,
                features,
                installer_config,
                example=args.example,
                example_path=args.example_path,
                **kwargs,
            )
        except DownloadError as exc:
            print_warning(str(exc))
            use_default = args.fallback or (
                interactive
                and Confirm.ask(
                    "Could not download the example because of a connectivity issue. "
                    "Do you want to use the default template instead?",
                    default=True,
                )
            )
            if not use_default:
                return 1
            root = await create_app(project_path, features, installer_config, **kwargs)
    except InstallError as exc:
        print_error("Aborting installation.")
        console.print(f"  [cyan]{exc.command}[/cyan] has failed.")
        return 1
    except AppSeedError as exc:
        print_error(str(exc))
        return 1
    except OSError as exc:
        print_error(f"Aborting: {escape(str(exc))}")
        return 1

    try:
        answers.model_copy(update={"package_manager": package_manager}).save()
    except OSError as exc:
        print_warning(f"Could not save preferences: {escape(str(exc))}")
    dev_script = "start" if features.app == "react" and not args.example else "dev"
    _print_next_steps(root, package_manager, dev_script, started)
    return 0


def main() -> None:
    """CLI entry point for ``appseed`` / ``python -m appseed.pipeline``."""
    args = build_parser().parse_args()
    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        # Restore the cursor a prompt may have hidden.
        console.show_cursor(True)
        console.print()
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
