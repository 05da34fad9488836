"""Homebrew and pyenv on macOS."""

from __future__ import annotations

from loguru import logger as log

from python2go.result import ShellResult, error_result, success_result
from python2go.shell import CommandOptions, Shell

BREW_INSTALL_SCRIPT_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
SUCCESS_MARKER = "Success."


def expect_marker(result: ShellResult, failure_message: str) -> ShellResult:
    """Installers report success by echoing SUCCESS_MARKER as their last line."""
    if not result.success:
        return result
    if not result.output.endswith(SUCCESS_MARKER):
        return error_result(failure_message, output=result.output, exit_code=result.exit_code)
    return result


async def brew_version(shell: Shell) -> str | None:
    result = await shell.execute("brew -v", CommandOptions(required_command="brew"))
    if not result.success or not result.output:
        return None
    return result.output.splitlines()[0]


async def is_brew_installed(shell: Shell) -> bool:
    return await brew_version(shell) is not None


async def install_brew(shell: Shell) -> ShellResult:
    """Install Homebrew unless it is already there.

    The installer calls sudo itself, so the password is primed through
    elevation and the script runs as the current user.
    """
    version = await brew_version(shell)
    if version is not None:
        log.info(f"Brew already installed ({version})")
        return success_result(version)

    log.info("Installing Homebrew...")
    command = f'NONINTERACTIVE=1 /bin/bash -c "$(curl -fsSL {BREW_INSTALL_SCRIPT_URL})" && echo "{SUCCESS_MARKER}"'
    result = await shell.execute(command, CommandOptions(elevate=True, prompt_message="to install Homebrew"))
    return expect_marker(
        result, "Could not install brew. Try to install it manually and try the setup process again."
    )


async def install_python_with_pyenv(shell: Shell, version: str) -> ShellResult:
    q = shell.platform.quote
    command = " && ".join(
        [
            "brew install pyenv",
            f"pyenv install -s {q(version)}",
            f"pyenv global {q(version)}",
            f'echo "{SUCCESS_MARKER}"',
        ]
    )
    log.info(f"Installing Python {version} with pyenv...")
    result = await shell.execute(command, CommandOptions(required_command="brew"))
    return expect_marker(result, f"Could not install python {version}.")


async def uninstall_python_with_pyenv(shell: Shell, version: str) -> ShellResult:
    log.info(f"Uninstalling Python {version} with pyenv...")
    return await shell.execute(
        f"pyenv uninstall -f {shell.platform.quote(version)}", CommandOptions(required_command="pyenv")
    )
