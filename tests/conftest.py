"""Shared fakes for the shell layer."""

import asyncio
from typing import Callable

import pytest

from python2go.platforms import MacPlatform, PosixPlatform, WindowsPlatform
from python2go.result import ShellResult, success_result
from python2go.shell import Shell


class RecordingRunner:
    """Stands in for ProcessRunner; records every composed command line.

    ``respond`` maps a command line to a result (and may be async-delayed via
    ``delays``, keyed by a substring of the command).
    """

    def __init__(
        self,
        respond: Callable[[str], ShellResult] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.calls: list[tuple[str, str | None]] = []
        self.respond = respond or (lambda command: success_result(""))
        self.delays = delays or {}

    async def run(self, command: str, stdin: str | None = None) -> ShellResult:
        self.calls.append((command, stdin))
        for marker, delay in self.delays.items():
            if marker in command:
                await asyncio.sleep(delay)
        return self.respond(command)

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def posix_shell(runner: RecordingRunner) -> Shell:
    return Shell(platform=PosixPlatform(name="linux", login_shell="/bin/bash"), runner=runner)


@pytest.fixture
def mac_shell(runner: RecordingRunner, tmp_path) -> Shell:
    return Shell(platform=MacPlatform(login_shell="/bin/zsh", home=tmp_path), runner=runner)


@pytest.fixture
def windows_shell(runner: RecordingRunner) -> Shell:
    return Shell(platform=WindowsPlatform(), runner=runner)
