"""Platform adapters.

Everything that differs between Windows, Unix-like systems and the rest lives
here: which shell runs a command line, how a command is elevated, how PATH is
recovered after an installer changed it, and where an interpreter ends up.
The adapter is picked once (``current_platform()``) and passed around.
"""

from __future__ import annotations

import inspect
import os
import sys
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Union

from loguru import logger as log

from python2go.commands import (
    escape_powershell_double_quoted,
    join_lines,
    posix_command,
    powershell_command,
    quote_posix,
    quote_powershell,
)
from python2go.result import ErrorKind, ShellResult, error_result, unsupported_platform

if TYPE_CHECKING:
    from python2go.process import ProcessRunner

# Asks the user for a password. May be sync or async; None means "cancelled".
PasswordPrompt = Callable[[Union[str, None]], Union[str, None, Awaitable[Union[str, None]]]]

NO_CREDENTIAL_MESSAGE = "Error: No root password provided"

WIN_RELOAD_ENV_CMD = (
    "$env:Path = [System.Environment]::GetEnvironmentVariable('Path','Machine')"
    " + ';' + [System.Environment]::GetEnvironmentVariable('Path','User')"
)


async def ask_password(prompt: PasswordPrompt | None, message: str | None) -> str | None:
    if prompt is None:
        return None
    answer = prompt(message)
    if inspect.isawaitable(answer):
        answer = await answer
    return answer or None


class PlatformAdapter(ABC):
    """Capabilities of one host platform."""

    name: str = "unknown"
    supported: bool = True
    spawn_failure_codes: frozenset[int] = frozenset()

    @abstractmethod
    def shell_argv(self, command: str) -> list[str]:
        """Argument vector that runs ``command`` in the native shell."""

    @abstractmethod
    def quote(self, arg: str) -> str: ...

    @abstractmethod
    def join(self, args: Iterable[str]) -> str:
        """Render an argument vector as a command line for this shell."""

    @abstractmethod
    def path_reload(self, command: str, required_command: str | None = None) -> str:
        """Prefix ``command`` with a PATH refresh for when ``required_command`` is missing."""

    @abstractmethod
    def elevation_command(self, command: str) -> str:
        """The command line that runs ``command`` with administrator rights."""

    @abstractmethod
    async def elevate(
        self,
        command: str,
        runner: ProcessRunner,
        prompt: PasswordPrompt | None = None,
        required_command: str | None = None,
        prompt_message: str | None = None,
    ) -> ShellResult: ...

    @abstractmethod
    def locate_install(self, version: str) -> str:
        """Interpreter path (or name) a managed install of ``version`` ends up at."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class WindowsPlatform(PlatformAdapter):
    name = "win32"

    def shell_argv(self, command: str) -> list[str]:
        return ["powershell", "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command", command]

    def quote(self, arg: str) -> str:
        return quote_powershell(arg)

    def join(self, args: Iterable[str]) -> str:
        return powershell_command(args)

    def path_reload(self, command: str, required_command: str | None = None) -> str:
        if not required_command:
            return command
        return (
            f"If (-Not (Get-Command {required_command} -ErrorAction SilentlyContinue)) "
            f"{{ {WIN_RELOAD_ENV_CMD} }}; {command}"
        )

    def elevation_command(self, command: str) -> str:
        inner = escape_powershell_double_quoted(join_lines(command))
        return (
            '$p = Start-Process -FilePath "powershell" -Wait -PassThru -Verb RunAs '
            f'-ArgumentList "-NoProfile", "-Command &{{{inner}}}"; exit $p.ExitCode'
        )

    async def elevate(
        self,
        command: str,
        runner: ProcessRunner,
        prompt: PasswordPrompt | None = None,
        required_command: str | None = None,
        prompt_message: str | None = None,
    ) -> ShellResult:
        # The UAC dialog is the prompt here; no credential passes through us.
        return await runner.run(self.path_reload(self.elevation_command(command), required_command))

    def locate_install(self, version: str) -> str:
        major, minor = version.split(".")[:2]
        return rf"C:\Python{major}{minor}\python.exe"


class PosixPlatform(PlatformAdapter):
    name = "posix"
    # sh: 126 = found but not executable, 127 = not found
    spawn_failure_codes = frozenset({126, 127})

    def __init__(self, name: str | None = None, login_shell: str | None = None):
        if name:
            self.name = name
        self.login_shell = login_shell or os.environ.get("SHELL") or "/bin/sh"

    def shell_argv(self, command: str) -> list[str]:
        return ["/bin/sh", "-c", command]

    def quote(self, arg: str) -> str:
        return quote_posix(arg)

    def join(self, args: Iterable[str]) -> str:
        return posix_command(args)

    def path_reload(self, command: str, required_command: str | None = None) -> str:
        if not required_command:
            return command
        # An empty or failed login shell keeps the current PATH.
        login_path = f"$({quote_posix(self.login_shell)} -lc 'printf %s \"$PATH\"' 2>/dev/null)"
        return (
            f"command -v {quote_posix(required_command)} >/dev/null 2>&1 || "
            f'{{ login_path="{login_path}"; PATH="${{login_path:-$PATH}}"; }}; {command}'
        )

    def elevation_command(self, command: str) -> str:
        # sudo reads the password from stdin and caches it. With a still valid
        # timestamp it reads nothing, so the command gets /dev/null as stdin.
        return f"sudo -S -p '' -v && {{ exec </dev/null; {command}\n}}"

    async def elevate(
        self,
        command: str,
        runner: ProcessRunner,
        prompt: PasswordPrompt | None = None,
        required_command: str | None = None,
        prompt_message: str | None = None,
    ) -> ShellResult:
        password = await ask_password(prompt, prompt_message)
        if not password:
            log.warning("Elevation cancelled: no password provided")
            return error_result(NO_CREDENTIAL_MESSAGE, kind=ErrorKind.CREDENTIAL_DECLINED)

        composed = self.path_reload(self.elevation_command(command), required_command)
        return await runner.run(composed, stdin=password + "\n")

    def locate_install(self, version: str) -> str:
        major, minor = version.split(".")[:2]
        return f"python{major}.{minor}"


class MacPlatform(PosixPlatform):
    name = "darwin"

    def __init__(self, login_shell: str | None = None, home: Path | None = None):
        super().__init__(login_shell=login_shell)
        self.home = home or Path.home()

    def locate_install(self, version: str) -> str:
        return str(self.home / ".pyenv" / "versions" / version / "bin" / "python")


class UnsupportedPlatform(PlatformAdapter):
    supported = False

    def __init__(self, name: str):
        self.name = name

    def shell_argv(self, command: str) -> list[str]:
        raise NotImplementedError(f"No shell known for platform '{self.name}'")

    def quote(self, arg: str) -> str:
        return quote_posix(arg)

    def join(self, args: Iterable[str]) -> str:
        return posix_command(args)

    def path_reload(self, command: str, required_command: str | None = None) -> str:
        return command

    def elevation_command(self, command: str) -> str:
        raise NotImplementedError(f"No elevation known for platform '{self.name}'")

    async def elevate(
        self,
        command: str,
        runner: ProcessRunner,
        prompt: PasswordPrompt | None = None,
        required_command: str | None = None,
        prompt_message: str | None = None,
    ) -> ShellResult:
        return unsupported_platform(self.name)

    def locate_install(self, version: str) -> str:
        return "python3"


_POSIX_PREFIXES = ("linux", "freebsd", "openbsd", "netbsd", "dragonfly", "sunos", "aix", "cygwin")


def platform_for(name: str) -> PlatformAdapter:
    """Adapter for a ``sys.platform`` style name."""
    if name == "win32":
        return WindowsPlatform()
    if name == "darwin":
        return MacPlatform()
    if name.startswith(_POSIX_PREFIXES):
        return PosixPlatform(name=name)
    return UnsupportedPlatform(name)


@lru_cache(maxsize=1)
def current_platform() -> PlatformAdapter:
    adapter = platform_for(sys.platform)
    log.debug(f"Using platform adapter {adapter!r}")
    return adapter
