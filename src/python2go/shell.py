"""Public entry point for running shell commands.

``execute`` picks plain execution or elevation, applies PATH recovery and
hands back whatever ``ShellResult`` the delegate produced.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger as log

from python2go.commands import is_command_name
from python2go.platforms import PasswordPrompt, PlatformAdapter, current_platform
from python2go.process import OutputSink, ProcessRunner, log_output_line
from python2go.result import ShellResult, unsupported_platform


@dataclass(frozen=True)
class CommandOptions:
    """How a command should be run.

    Args:
        elevate: Run with administrator/root rights
        required_command: Executable the command depends on; PATH is reloaded
            first if it cannot be resolved
        prompt_message: Text shown when asking for the password
    """

    elevate: bool = False
    required_command: str | None = None
    prompt_message: str | None = None

    def __post_init__(self) -> None:
        if self.required_command is not None and not is_command_name(self.required_command):
            raise ValueError(f"required_command must be a bare command name, got {self.required_command!r}")
        if self.prompt_message is not None and not self.elevate:
            raise ValueError("prompt_message only applies to elevated commands")


class Shell:
    """Runs commands on one platform with one runner, prompt and output sink."""

    def __init__(
        self,
        platform: PlatformAdapter | None = None,
        runner: ProcessRunner | None = None,
        prompt: PasswordPrompt | None = None,
        sink: OutputSink = log_output_line,
    ):
        self.platform = platform or current_platform()
        self.prompt = prompt
        if runner is None and self.platform.supported:
            runner = ProcessRunner(self.platform.shell_argv, sink, self.platform.spawn_failure_codes)
        self.runner = runner

    async def execute(self, command: str, options: CommandOptions | None = None) -> ShellResult:
        options = options or CommandOptions()

        if not self.platform.supported or self.runner is None:
            log.error(f"Cannot run commands on unsupported platform '{self.platform.name}'")
            return unsupported_platform(self.platform.name)

        if options.elevate:
            return await self.platform.elevate(
                command,
                self.runner,
                prompt=self.prompt,
                required_command=options.required_command,
                prompt_message=options.prompt_message,
            )

        return await self.runner.run(self.platform.path_reload(command, options.required_command))

    def execute_sync(self, command: str, options: CommandOptions | None = None) -> ShellResult:
        return asyncio.run(self.execute(command, options))


async def execute(
    command: str,
    options: CommandOptions | None = None,
    prompt: PasswordPrompt | None = None,
) -> ShellResult:
    """Run ``command`` on the current platform.

    Returns:
        A success or error result; expected failures never raise.
    """
    return await Shell(prompt=prompt).execute(command, options)
