"""Remote example download.

Instead of a bundled template, a project can start from an example hosted
on GitHub: either a named example in the default examples repository or any
repository URL (optionally pointing at a branch and sub-directory).  The
example is fetched as a tarball with httpx and unpacked into the project
root.  Every network or archive failure surfaces as ``DownloadError`` so the
caller can fall back to the bundled default template.
"""

from __future__ import annotations

import asyncio
import os
import tarfile
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path, PurePosixPath
from urllib.parse import quote, urlparse

import httpx
from pydantic import BaseModel

from appseed.errors import DownloadError

GITHUB_API = "https://api.github.com"
CODELOAD = "https://codeload.github.com"

_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class RepoInfo(BaseModel):
    """Location of an example inside a GitHub repository."""

    username: str
    name: str
    branch: str
    file_path: str = ""

    @property
    def tarball_url(self) -> str:
        return f"{CODELOAD}/{self.username}/{self.name}/tar.gz/{self.branch}"

    @property
    def archive_prefix(self) -> str:
        """Top-level directory of the example inside the tarball."""
        base = f"{self.name}-{self.branch.replace('/', '-')}"
        return f"{base}/{self.file_path}/" if self.file_path else f"{base}/"


EXAMPLES_REPO = RepoInfo(
    username="vercel", name="next.js", branch="canary", file_path="examples"
)


# ---------------------------------------------------------------------------
# Availability checks
# ---------------------------------------------------------------------------


async def is_url_ok(url: str, client: httpx.AsyncClient | None = None) -> bool:
    """Return ``True`` if a HEAD request to *url* answers 200."""
    async with _client(client) as http:
        try:
            response = await http.head(url)
        except httpx.HTTPError:
            return False
    return response.status_code == 200


async def get_repo_info(
    url: str,
    example_path: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> RepoInfo | None:
    """Parse a GitHub URL into a ``RepoInfo``.

    Handles ``https://github.com/<user>/<repo>`` (default branch is looked
    up through the GitHub API) and ``.../tree/<branch>/<path>``.  When
    *example_path* is given, the branch is everything between ``tree/`` and
    that path.

    Returns:
        ``None`` if *url* does not point at a GitHub repository.
    """
    parsed = urlparse(url)
    parts = [p for p in parsed.path.split("/") if p]
    if parsed.hostname != "github.com" or len(parts) < 2:
        return None

    username, name = parts[0], parts[1]
    tree = parts[2] if len(parts) > 2 else None
    rest = parts[3:]
    file_path = (example_path or "").strip("/")

    if tree is None:
        async with _client(client) as http:
            try:
                response = await http.get(f"{GITHUB_API}/repos/{username}/{name}")
            except httpx.HTTPError:
                return None
        if response.status_code != 200:
            return None
        branch = response.json().get("default_branch", "main")
        return RepoInfo(username=username, name=name, branch=branch, file_path=file_path)

    if tree != "tree" or not rest:
        return None

    if file_path:
        joined = "/".join(rest)
        suffix = f"/{file_path}"
        branch = joined[: -len(suffix)] if joined.endswith(suffix) else joined
    else:
        branch, file_path = rest[0], "/".join(rest[1:])

    return RepoInfo(username=username, name=name, branch=branch, file_path=file_path)


async def has_repo(repo: RepoInfo, client: httpx.AsyncClient | None = None) -> bool:
    """Check that *repo* contains a ``package.json`` at its example path."""
    package_path = f"/{repo.file_path}/package.json" if repo.file_path else "/package.json"
    contents = f"{GITHUB_API}/repos/{repo.username}/{repo.name}/contents"
    return await is_url_ok(f"{contents}{package_path}?ref={repo.branch}", client)


async def existing_example(name_or_url: str, client: httpx.AsyncClient | None = None) -> bool:
    """Check that a named example (or example URL) exists."""
    if urlparse(name_or_url).scheme in ("http", "https"):
        return await is_url_ok(name_or_url, client)
    repo = EXAMPLES_REPO
    url = (
        f"{GITHUB_API}/repos/{repo.username}/{repo.name}/contents/"
        f"{repo.file_path}/{quote(name_or_url, safe='')}"
    )
    return await is_url_ok(url, client)


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


async def download_tarball(url: str, client: httpx.AsyncClient | None = None) -> Path:
    """Stream *url* into a temporary file and return its path."""
    fd, name = tempfile.mkstemp(prefix="appseed-example-", suffix=".tar.gz")
    os.close(fd)
    target = Path(name)
    try:
        async with _client(client) as http:
            async with http.stream("GET", url, follow_redirects=True) as response:
                if response.status_code != 200:
                    raise DownloadError(
                        f"Failed to download {url}: HTTP {response.status_code}"
                    )
                with open(target, "wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
    except httpx.HTTPError as exc:
        target.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {url}: {exc}") from exc
    except DownloadError:
        target.unlink(missing_ok=True)
        raise
    return target


def extract_tarball(archive: Path, root: Path, prefix: str) -> int:
    """Unpack members under *prefix* into *root*, stripping *prefix*.

    Returns:
        Number of members written.
    """
    written = 0
    try:
        with tarfile.open(archive, "r:gz") as tar:
            for member in tar.getmembers():
                if not member.name.startswith(prefix):
                    continue
                stripped = PurePosixPath(member.name[len(prefix):])
                if not stripped.parts:
                    continue
                member.name = str(stripped)
                tar.extract(member, root, filter="data")
                written += 1
    except (tarfile.TarError, OSError) as exc:
        raise DownloadError(f"Failed to extract {archive.name}: {exc}") from exc
    return written


async def download_and_extract_repo(
    root: str | Path, repo: RepoInfo, client: httpx.AsyncClient | None = None
) -> int:
    """Download *repo*'s tarball and unpack its example directory into *root*."""
    archive = await download_tarball(repo.tarball_url, client)
    try:
        written = await asyncio.to_thread(
            extract_tarball, archive, Path(root), repo.archive_prefix
        )
    finally:
        archive.unlink(missing_ok=True)
    if written == 0:
        raise DownloadError(f"No files found under {repo.archive_prefix} in {repo.tarball_url}")
    return written


async def download_and_extract_example(
    root: str | Path, name: str, client: httpx.AsyncClient | None = None
) -> int:
    """Download a named example from the default examples repository."""
    repo = EXAMPLES_REPO.model_copy(
        update={"file_path": f"{EXAMPLES_REPO.file_path}/{name}"}
    )
    return await download_and_extract_repo(root, repo, client)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _client(client: httpx.AsyncClient | None) -> AsyncIterator[httpx.AsyncClient]:
    """Yield *client*, or a fresh one that is closed afterwards."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=_TIMEOUT) as owned:
        yield owned
