"""Shared utility functions for appseed.

Provides async command execution, Rich-based console reporting, and the
small file-system and network checks the CLI runs before scaffolding:
writability, folder emptiness, registry reachability, npm-name validation
and package-manager detection.
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
import re
import socket
from pathlib import Path
from urllib.parse import quote, urlparse

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from appseed.config import PackageManager

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int | None = 120,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Program and arguments; no shell is involved.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits for as long as the process runs.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    if timeout is None:
        stdout_bytes, stderr_bytes = await process.communicate()
    else:
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return (
                -1,
                "",
                f"Command timed out after {timeout}s: {' '.join(cmd)}",
            )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The resolved ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def is_writeable(path: str | Path) -> bool:
    """Return ``True`` if the current user may create entries in *path*."""
    return os.access(path, os.W_OK)


# Entries that may already exist in a target directory without blocking
# project creation.
VALID_FOLDER_FILES: tuple[str, ...] = (
    ".DS_Store",
    ".git",
    ".gitattributes",
    ".gitignore",
    ".gitlab-ci.yml",
    ".hg",
    ".hgcheck",
    ".hgignore",
    ".idea",
    ".npmignore",
    ".travis.yml",
    "LICENSE",
    "Thumbs.db",
    "docs",
    "mkdocs.yml",
    "npm-debug.log*",
    "yarn-debug.log*",
    "yarn-error.log*",
    "*.iml",
)


def is_folder_empty(root: str | Path, name: str) -> bool:
    """Check that *root* holds nothing besides the allowed entries.

    Conflicting entries are listed on the console.

    Returns:
        ``True`` if the directory can be used for a new project.
    """
    conflicts = sorted(
        entry.name
        for entry in Path(root).iterdir()
        if not any(fnmatch.fnmatchcase(entry.name, pat) for pat in VALID_FOLDER_FILES)
    )
    if not conflicts:
        return True

    console.print(
        f"The directory [green]{name}[/green] contains files that could conflict:"
    )
    console.print()
    for entry in conflicts:
        if (Path(root) / entry).is_dir():
            console.print(f"  [blue]{entry}[/blue]/")
        else:
            console.print(f"  {entry}")
    console.print()
    console.print(
        "Either try using a new directory name, or remove the files listed above."
    )
    console.print()
    return False


# ---------------------------------------------------------------------------
# Network checks
# ---------------------------------------------------------------------------

REGISTRY_HOST = "registry.yarnpkg.com"


async def _resolves(host: str) -> bool:
    """Return ``True`` if *host* resolves through DNS."""
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, socket.gethostbyname, host)
    except OSError:
        return False
    return True


async def _npm_https_proxy() -> str | None:
    """Return the ``https-proxy`` configured for npm, if any."""
    try:
        returncode, stdout, _ = await run_command(
            ["npm", "config", "get", "https-proxy"], timeout=10
        )
    except FileNotFoundError:
        return None
    if returncode != 0 or stdout in ("", "null", "undefined"):
        return None
    return stdout


async def is_online() -> bool:
    """Check whether the package registry is reachable.

    Resolves the Yarn registry host; if that fails, resolves the host of the
    HTTPS proxy npm is configured with.
    """
    if await _resolves(REGISTRY_HOST):
        return True

    proxy = await _npm_https_proxy()
    if not proxy:
        return False
    hostname = urlparse(proxy).hostname
    if not hostname:
        return False
    return await _resolves(hostname)


# ---------------------------------------------------------------------------
# Package manager / package name helpers
# ---------------------------------------------------------------------------


def detect_package_manager() -> PackageManager:
    """Infer the package manager that launched us from ``npm_config_user_agent``."""
    user_agent = os.environ.get("npm_config_user_agent", "")
    if user_agent.startswith("yarn"):
        return "yarn"
    if user_agent.startswith("pnpm"):
        return "pnpm"
    return "npm"


_BLACKLISTED_NAMES = ("node_modules", "favicon.ico")

_CORE_MODULE_NAMES = frozenset(
    {
        "assert", "buffer", "child_process", "cluster", "console", "constants",
        "crypto", "dgram", "dns", "domain", "events", "fs", "http", "http2",
        "https", "module", "net", "os", "path", "perf_hooks", "process",
        "punycode", "querystring", "readline", "repl", "stream",
        "string_decoder", "sys", "timers", "tls", "tty", "url", "util", "v8",
        "vm", "worker_threads", "zlib",
    }
)

_SCOPED_NAME_RE = re.compile(r"^(?:@([^/]+?)[/])?([^/]+?)$")
_SPECIAL_CHARS_RE = re.compile(r"[~'!()*]")


def _url_safe(value: str) -> bool:
    return quote(value, safe="") == value


def validate_npm_name(name: str) -> tuple[bool, list[str]]:
    """Validate *name* against the npm package naming rules.

    Returns:
        A ``(valid, problems)`` tuple; *problems* is empty when *name* is valid.
    """
    problems: list[str] = []

    if not name:
        return False, ["name length must be greater than zero"]

    if name.startswith("."):
        problems.append("name cannot start with a period")
    if name.startswith("_"):
        problems.append("name cannot start with an underscore")
    if name.strip() != name:
        problems.append("name cannot contain leading or trailing spaces")
    for blacklisted in _BLACKLISTED_NAMES:
        if name.lower() == blacklisted:
            problems.append(f"{blacklisted} is a blacklisted name")
    if name.lower() in _CORE_MODULE_NAMES:
        problems.append(f"{name} is a core module name")
    if len(name) > 214:
        problems.append("name can no longer contain more than 214 characters")
    if name.lower() != name:
        problems.append("name can no longer contain capital letters")
    if _SPECIAL_CHARS_RE.search(name.split("/")[-1]):
        problems.append("name can no longer contain special characters (\"~'!()*\")")

    if not _url_safe(name):
        match = _SCOPED_NAME_RE.match(name)
        scoped_ok = bool(
            match
            and match.group(1)
            and _url_safe(match.group(1))
            and _url_safe(match.group(2))
        )
        if not scoped_ok:
            problems.append("name can only contain URL-friendly characters")

    return not problems, problems


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step(title: str) -> None:
    """Print a section rule for one step of the scaffolding run."""
    console.print()
    console.print(Rule(f"[bold cyan]{title}[/bold cyan]", style="cyan"))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
