"""Chocolatey on Windows."""

from __future__ import annotations

import os
from pathlib import PureWindowsPath

import aiofiles
from loguru import logger as log

from python2go.result import ShellResult, error_result, success_result
from python2go.shell import CommandOptions, Shell

CHOCOLATEY_INSTALL_SCRIPT_URL = "https://community.chocolatey.org/install.ps1"

CHOCO = CommandOptions(required_command="choco")
CHOCO_ELEVATED = CommandOptions(elevate=True, required_command="choco")


async def chocolatey_version(shell: Shell) -> str | None:
    result = await shell.execute("choco -v", CHOCO)
    if not result.success or not result.output:
        return None
    return result.output.splitlines()[-1].strip()


async def is_chocolatey_installed(shell: Shell) -> bool:
    return await chocolatey_version(shell) is not None


async def install_chocolatey(shell: Shell, log_path: str | None = None) -> ShellResult:
    """Bootstrap Chocolatey in an elevated PowerShell.

    Args:
        shell: Shell to run in
        log_path: Write the installer output to this file instead of stdout

    Returns:
        Success carrying the installed Chocolatey version
    """
    version = await chocolatey_version(shell)
    if version is not None:
        return success_result(version)

    log_to = f"Out-File -FilePath {shell.platform.quote(log_path)}" if log_path else "Write-Output"
    script = f"""
        if (-Not (Test-Path -Path "$env:ProgramData\\Chocolatey")) {{
          Set-ExecutionPolicy Bypass -Scope Process -Force;
          Invoke-Expression ((New-Object System.Net.WebClient).DownloadString('{CHOCOLATEY_INSTALL_SCRIPT_URL}')) | {log_to}
        }} else {{
          echo "Chocolatey already installed"
        }}
    """
    log.info("Installing Chocolatey...")
    result = await shell.execute(script, CommandOptions(elevate=True))
    if not result.success:
        return result

    version = await chocolatey_version(shell)
    if version is None:
        return error_result("Chocolatey could not be installed", output=result.output)
    return success_result(version)


def log_summary_path() -> str:
    program_data = os.environ.get("ProgramData", r"C:\ProgramData")
    return str(PureWindowsPath(program_data, "chocolatey", "logs", "choco.summary.log"))


async def log_summary(path: str | None = None) -> str:
    async with aiofiles.open(path or log_summary_path(), "r", errors="replace") as f:
        return await f.read()


async def log_summary_line_count(path: str | None = None) -> int:
    try:
        content = await log_summary(path)
    except OSError as e:
        log.debug(f"Could not read chocolatey summary log: {e}")
        return 0
    return len(content.splitlines())


def _package_args(pkg: str, version: str | None) -> list[str]:
    args = ["-y", pkg]
    if version:
        args.append(f"--version={version}")
    return args


async def install(shell: Shell, pkg: str, version: str | None = None) -> ShellResult:
    command = "choco install " + " ".join(shell.platform.quote(a) for a in _package_args(pkg, version))
    log.info(f"choco: installing {pkg} {version or ''}".rstrip())
    return await shell.execute(command, CHOCO_ELEVATED)


async def uninstall(shell: Shell, pkg: str, version: str | None = None) -> ShellResult:
    command = "choco uninstall " + " ".join(shell.platform.quote(a) for a in _package_args(pkg, version))
    log.info(f"choco: uninstalling {pkg} {version or ''}".rstrip())
    return await shell.execute(command, CHOCO_ELEVATED)
