"""pip operations and syncing packages against a requirements gist.

The gist holds a JSON list such as::

    [{"package": "numpy", "version": ">=1.18.0"}, {"package": "requests"}]

``version`` may be exact, or prefixed with ``>=`` / ``<=``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

import httpx
from loguru import logger as log
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from python2go.exceptions import GistDownloadError
from python2go.platforms import WindowsPlatform
from python2go.python_env import is_python_installed
from python2go.result import ShellResult
from python2go.shell import Shell

LE = "<="
GE = ">="

GIST_TIMEOUT = 30


@dataclass(frozen=True)
class PipPackage:
    package: str
    version: str


@dataclass(frozen=True)
class Requirement:
    package: str
    version: str | None = None

    @property
    def pinned_version(self) -> str | None:
        """The version without its comparison operator."""
        if not self.version:
            return None
        return self.version.replace(LE, "").replace(GE, "").strip()

    def to_pip_arg(self) -> str:
        pinned = self.pinned_version
        return f"{self.package}=={pinned}" if pinned else self.package


@dataclass
class GistSyncState:
    success: bool
    reload_required: bool = False
    message: str | None = None


@dataclass
class GistCache:
    """Requirements downloaded from a gist, kept until ``clear()`` is called.

    Owned by the caller; pass the same instance to repeated syncs to avoid
    downloading the gist again.
    """

    url: str | None = None
    requirements: list[Requirement] = field(default_factory=list)

    def get(self, url: str) -> list[Requirement] | None:
        if self.url == url and self.requirements:
            return list(self.requirements)
        return None

    def store(self, url: str, requirements: list[Requirement]) -> None:
        self.url = url
        self.requirements = list(requirements)

    def clear(self) -> None:
        self.url = None
        self.requirements = []


# ==============================================================================
# Versions
# ==============================================================================


def parse_version(version: str | None) -> Version | None:
    if not version:
        return None
    try:
        return Version(version.replace(LE, "").replace(GE, "").strip())
    except InvalidVersion:
        return None


def wrong_version(installed: PipPackage, requested: Requirement) -> bool:
    """Whether the installed version does not satisfy the requested one."""
    if not requested.version:
        return False

    if requested.version.startswith((GE, LE)):
        current = parse_version(installed.version)
        wanted = parse_version(requested.version)
        if current is None or wanted is None:
            return False
        if requested.version.startswith(GE):
            return current < wanted
        return current > wanted

    return requested.version != installed.version


def plan_sync(installed: list[PipPackage], requested: list[Requirement]) -> tuple[list[Requirement], list[Requirement]]:
    """Split requested packages into (installed with a wrong version, missing)."""
    by_name = {canonicalize_name(p.package): p for p in installed}

    to_uninstall = []
    to_install = []
    for req in requested:
        current = by_name.get(canonicalize_name(req.package))
        if current is None:
            to_install.append(req)
        elif wrong_version(current, req):
            to_uninstall.append(req)

    return to_uninstall, to_install


# ==============================================================================
# pip
# ==============================================================================


async def pip(shell: Shell, interpreter: str, args: list[str]) -> ShellResult:
    """Run ``<interpreter> -m pip <args>``."""
    return await shell.execute(shell.platform.join([interpreter, "-m", "pip", *args]))


async def pip_packages(shell: Shell, interpreter: str) -> list[PipPackage] | None:
    """Installed packages, or None if pip could not be queried."""
    result = await pip(shell, interpreter, ["list", "--format=json", "--disable-pip-version-check"])
    if not result.success:
        log.error(f"Could not list pip packages: {result.error}")
        return None

    try:
        data = json.loads(result.output or "[]")
    except json.JSONDecodeError as e:
        log.error(f"Unexpected output from pip list: {e}")
        return None

    return [PipPackage(package=item["name"], version=item["version"]) for item in data]


# ==============================================================================
# Gist
# ==============================================================================


def _parse_requirements(data: object) -> list[Requirement]:
    if not isinstance(data, list):
        raise ValueError("expected a JSON list of packages")

    requirements = []
    for item in data:
        if not isinstance(item, dict) or not item.get("package"):
            raise ValueError(f"invalid entry {item!r}")
        version = item.get("version")
        requirements.append(Requirement(package=str(item["package"]), version=str(version) if version else None))
    return requirements


async def fetch_gist_requirements(
    url: str,
    cache: GistCache | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Requirement]:
    """Download the requirement list from ``<gist url>/raw``.

    Args:
        url: Gist url (not the raw one), e.g. https://gist.github.com/<user>/<id>
        cache: Served from and filled on success when given
        client: HTTP client to use; a short-lived one is created otherwise

    Raises:
        GistDownloadError: The gist could not be fetched or is malformed
    """
    if cache is not None:
        cached = cache.get(url)
        if cached is not None:
            return cached

    raw_url = f"{url.rstrip('/')}/raw"
    log.info(f"Start downloading pip packages from {url}")

    try:
        if client is None:
            async with httpx.AsyncClient(follow_redirects=True, timeout=GIST_TIMEOUT) as own_client:
                response = await own_client.get(raw_url)
        else:
            response = await client.get(raw_url)
        response.raise_for_status()
        requirements = _parse_requirements(response.json())
    except (httpx.HTTPError, ValueError) as e:
        raise GistDownloadError(url, str(e)) from e

    log.debug(f"Gist content {[r.to_pip_arg() for r in requirements]}")
    if cache is not None and requirements:
        cache.store(url, requirements)
    return requirements


async def install_from_gist(
    shell: Shell,
    interpreter: str,
    url: str | None,
    cache: GistCache | None = None,
    client: httpx.AsyncClient | None = None,
) -> GistSyncState:
    """Bring the interpreter's packages in line with the gist.

    Packages with a wrong version are uninstalled first, then everything
    missing is installed.
    """
    if not url:
        return GistSyncState(success=False, message="No gist_pip_url specified")

    if not await is_python_installed(shell, interpreter):
        return GistSyncState(success=False, message="No valid python interpreter set.")

    try:
        requested = await fetch_gist_requirements(url, cache, client)
    except GistDownloadError as e:
        log.error(str(e))
        return GistSyncState(success=False, message=str(e))

    installed = await pip_packages(shell, interpreter)
    if installed is None:
        return GistSyncState(success=False, message="Could not list installed pip packages")

    to_uninstall, _ = plan_sync(installed, requested)
    if to_uninstall:
        log.info(f"Uninstalling wrong versions: {', '.join(r.package for r in to_uninstall)}")
        result = await pip(shell, interpreter, ["uninstall", "-y", *(r.package for r in to_uninstall)])
        if not result.success:
            return GistSyncState(success=False, message=result.error)
        installed = await pip_packages(shell, interpreter)
        if installed is None:
            return GistSyncState(success=False, message="Could not list installed pip packages")

    _, to_install = plan_sync(installed, requested)
    if not to_install:
        return GistSyncState(success=True)

    args = ["install"]
    if isinstance(shell.platform, WindowsPlatform):
        args.append("--user")
    args.extend(r.to_pip_arg() for r in to_install)

    log.info(f"Installing: {', '.join(r.to_pip_arg() for r in to_install)}")
    result = await pip(shell, interpreter, args)
    if not result.success:
        return GistSyncState(success=False, message=result.error)

    return GistSyncState(success=True, reload_required=True)
