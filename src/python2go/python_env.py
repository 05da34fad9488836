"""Installing, locating and removing the managed Python interpreter."""

from __future__ import annotations

import re
from dataclasses import dataclass

from loguru import logger as log

from python2go import chocolatey, homebrew
from python2go.platforms import MacPlatform, WindowsPlatform
from python2go.result import ShellResult, unsupported_platform
from python2go.shell import Shell

PYTHON_VERSION_RE = re.compile(r"Python (?P<major>\d+)\.(?P<minor>\d+)\.(?P<release>\d+)")


@dataclass(frozen=True)
class PythonVersion:
    major: int
    minor: int
    release: int

    @property
    def version(self) -> str:
        return f"{self.major}.{self.minor}.{self.release}"


def parse_python_version(raw: str | None) -> PythonVersion | None:
    """Parse the output of ``python --version`` (e.g. ``Python 3.8.3``)."""
    if not raw:
        return None
    match = PYTHON_VERSION_RE.search(raw)
    if match is None:
        return None
    return PythonVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        release=int(match.group("release")),
    )


def interpreter_path(shell: Shell, version: str) -> str:
    return shell.platform.locate_install(version)


async def installed_version(shell: Shell, interpreter: str) -> PythonVersion | None:
    # Python 2 prints its version on stderr.
    result = await shell.execute(f"{shell.platform.join([interpreter, '--version'])} 2>&1")
    if not result.success:
        return None
    return parse_python_version(result.output)


async def is_python_installed(shell: Shell, interpreter: str) -> bool:
    return await installed_version(shell, interpreter) is not None


async def install_python(shell: Shell, version: str) -> ShellResult:
    platform = shell.platform

    if isinstance(platform, MacPlatform):
        result = await homebrew.install_brew(shell)
        if not result.success:
            return result
        return await homebrew.install_python_with_pyenv(shell, version)

    if isinstance(platform, WindowsPlatform):
        result = await chocolatey.install_chocolatey(shell)
        if not result.success:
            return result
        return await chocolatey.install(shell, "python", version)

    log.error(f"Installing python is not supported on '{platform.name}'")
    return unsupported_platform(platform.name)


async def uninstall_python(shell: Shell, version: str) -> ShellResult:
    platform = shell.platform

    if isinstance(platform, MacPlatform):
        return await homebrew.uninstall_python_with_pyenv(shell, version)

    if isinstance(platform, WindowsPlatform):
        return await chocolatey.uninstall(shell, "python", version)

    log.error(f"Uninstalling python is not supported on '{platform.name}'")
    return unsupported_platform(platform.name)
