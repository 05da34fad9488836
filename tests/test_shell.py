"""Tests for the command orchestrator."""

import asyncio

import pytest

from python2go.platforms import NO_CREDENTIAL_MESSAGE, UnsupportedPlatform
from python2go.result import ErrorKind, error_result, success_result
from python2go.shell import CommandOptions, Shell

from conftest import RecordingRunner


class TestCommandOptions:
    def test_defaults(self) -> None:
        options = CommandOptions()
        assert options.elevate is False
        assert options.required_command is None

    def test_required_command_must_be_a_name(self) -> None:
        with pytest.raises(ValueError):
            CommandOptions(required_command="choco; rm -rf /")

    def test_prompt_message_requires_elevation(self) -> None:
        with pytest.raises(ValueError):
            CommandOptions(prompt_message="to install brew")


# =============================================================================
# Plain execution
# =============================================================================


class TestExecute:
    @pytest.mark.asyncio
    async def test_plain_command_passes_through(self, posix_shell: Shell, runner: RecordingRunner) -> None:
        await posix_shell.execute("pip list")
        assert runner.calls == [("pip list", None)]

    @pytest.mark.asyncio
    async def test_path_reload_only_with_required_command(self, posix_shell: Shell, runner: RecordingRunner) -> None:
        await posix_shell.execute("brew -v")
        await posix_shell.execute("brew -v", CommandOptions(required_command="brew"))

        plain, recovered = runner.commands
        assert plain == "brew -v"
        assert recovered == (
            "command -v brew >/dev/null 2>&1 || "
            "{ login_path=\"$(/bin/bash -lc 'printf %s \"$PATH\"' 2>/dev/null)\"; "
            "PATH=\"${login_path:-$PATH}\"; }; brew -v"
        )

    @pytest.mark.asyncio
    async def test_windows_path_reload(self, windows_shell: Shell, runner: RecordingRunner) -> None:
        await windows_shell.execute("choco -v", CommandOptions(required_command="choco"))
        (command,) = runner.commands
        assert command.startswith("If (-Not (Get-Command choco -ErrorAction SilentlyContinue))")
        assert command.endswith("; choco -v")

    @pytest.mark.asyncio
    async def test_result_returned_unchanged(self, runner: RecordingRunner, posix_shell: Shell) -> None:
        expected = error_result("nope", output="partial", exit_code=9)
        runner.respond = lambda command: expected
        assert await posix_shell.execute("false") is expected

    @pytest.mark.asyncio
    async def test_unsupported_platform_spawns_nothing(self, runner: RecordingRunner) -> None:
        shell = Shell(platform=UnsupportedPlatform("emscripten"), runner=runner)

        elevated = await shell.execute("whoami", CommandOptions(elevate=True))
        plain = await shell.execute("whoami")

        for result in (elevated, plain):
            assert result.success is False
            assert result.kind is ErrorKind.UNSUPPORTED_PLATFORM
            assert "unsupported platform" in result.error
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_platform_without_runner(self) -> None:
        shell = Shell(platform=UnsupportedPlatform("wasi"))
        assert shell.runner is None
        result = await shell.execute("ls")
        assert result.kind is ErrorKind.UNSUPPORTED_PLATFORM

    @pytest.mark.asyncio
    async def test_concurrent_calls_are_independent(self, posix_shell: Shell, runner: RecordingRunner) -> None:
        runner.respond = lambda command: success_result(command.split()[-1])
        runner.delays = {"slow": 0.2, "fast": 0.01}

        slow, fast = await asyncio.gather(
            posix_shell.execute("echo slow"),
            posix_shell.execute("echo fast"),
        )
        assert slow.output == "slow"
        assert fast.output == "fast"


# =============================================================================
# Elevation
# =============================================================================


class TestElevation:
    @pytest.mark.asyncio
    async def test_posix_password_goes_to_stdin(self, runner: RecordingRunner, posix_shell: Shell) -> None:
        messages = []

        def prompt(message):
            messages.append(message)
            return "hunter2"

        posix_shell.prompt = prompt
        await posix_shell.execute(
            "brew install pyenv", CommandOptions(elevate=True, prompt_message="to install pyenv")
        )

        ((command, stdin),) = runner.calls
        assert command == "sudo -S -p '' -v && { exec </dev/null; brew install pyenv\n}"
        assert stdin == "hunter2\n"
        assert "hunter2" not in command
        assert messages == ["to install pyenv"]

    @pytest.mark.asyncio
    async def test_async_prompt(self, runner: RecordingRunner, posix_shell: Shell) -> None:
        async def prompt(message):
            return "pw"

        posix_shell.prompt = prompt
        await posix_shell.execute("id", CommandOptions(elevate=True))
        assert runner.calls[0][1] == "pw\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", [None, ""])
    async def test_declined_password(self, answer, runner: RecordingRunner, posix_shell: Shell) -> None:
        posix_shell.prompt = lambda message: answer
        result = await posix_shell.execute("id", CommandOptions(elevate=True))

        assert result.success is False
        assert result.error == NO_CREDENTIAL_MESSAGE
        assert result.kind is ErrorKind.CREDENTIAL_DECLINED
        assert result.output is None
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_no_prompt_configured(self, runner: RecordingRunner, posix_shell: Shell) -> None:
        result = await posix_shell.execute("id", CommandOptions(elevate=True))
        assert result.kind is ErrorKind.CREDENTIAL_DECLINED

    @pytest.mark.asyncio
    async def test_posix_path_reload_wraps_elevation(self, runner: RecordingRunner, posix_shell: Shell) -> None:
        posix_shell.prompt = lambda message: "pw"
        await posix_shell.execute("brew -v", CommandOptions(elevate=True, required_command="brew"))
        (command,) = runner.commands
        assert command.startswith("command -v brew >/dev/null 2>&1 || { login_path=")
        assert command.endswith("; sudo -S -p '' -v && { exec </dev/null; brew -v\n}")

    @pytest.mark.asyncio
    async def test_windows_elevation(self, runner: RecordingRunner, windows_shell: Shell) -> None:
        windows_shell.prompt = lambda message: pytest.fail("windows elevation must not prompt")
        await windows_shell.execute("choco install -y python", CommandOptions(elevate=True, required_command="choco"))

        ((command, stdin),) = runner.calls
        assert stdin is None
        assert command.startswith("If (-Not (Get-Command choco")
        assert "-Verb RunAs" in command
        assert "&{choco install -y python}" in command

    @pytest.mark.asyncio
    async def test_plain_command_never_elevates(self, runner: RecordingRunner, posix_shell: Shell) -> None:
        posix_shell.prompt = lambda message: pytest.fail("must not prompt")
        await posix_shell.execute("id")
        assert runner.calls == [("id", None)]
