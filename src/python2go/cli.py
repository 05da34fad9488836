import asyncio
import sys

import click
from loguru import logger as log

from python2go.config import SETTINGS
from python2go.observability import configure_logging
from python2go.pip import GistCache, install_from_gist, pip, pip_packages
from python2go.python_env import install_python, installed_version, interpreter_path, uninstall_python
from python2go.result import ShellResult
from python2go.shell import CommandOptions, Shell
from python2go.version import get_current_version


def prompt_password(message: str | None) -> str | None:
    text = f"Enter your password {message}" if message else "Root password (used to login to your computer)"
    password = click.prompt(text, hide_input=True, default="", show_default=False)
    return password or None


def make_shell() -> Shell:
    return Shell(prompt=prompt_password)


def resolve_interpreter(shell: Shell) -> str:
    return SETTINGS.interpreter or interpreter_path(shell, SETTINGS.python_version)


def report(result: ShellResult) -> None:
    if result.success:
        if result.output:
            click.echo(result.output)
        return
    click.echo(result.error, err=True)
    sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Log every line the spawned commands print")
def cli(debug: bool):
    """Install and manage a Python interpreter and its pip packages"""
    configure_logging(debug or SETTINGS.debug, SETTINGS.log_file)


@cli.command("exec")
@click.argument("command")
@click.option("--elevate", "-e", is_flag=True, help="Run with administrator/root rights")
@click.option("--require", "-r", "required_command", help="Reload PATH first if this command is missing")
def exec_command(command: str, elevate: bool, required_command: str | None):
    """Run a command in the native shell"""
    try:
        options = CommandOptions(elevate=elevate, required_command=required_command)
    except ValueError as e:
        raise click.BadParameter(str(e))
    report(make_shell().execute_sync(command, options))


@cli.command()
@click.option("--version", "-v", "version", default=None, help="Python version to install")
def install(version: str | None):
    """Install Python (Homebrew + pyenv on macOS, Chocolatey on Windows)"""
    version = version or SETTINGS.python_version
    result = asyncio.run(install_python(make_shell(), version))
    if result.success:
        log.info(f"Python {version} installed. Ready to go")
    report(result)


@cli.command()
@click.option("--version", "-v", "version", default=None, help="Python version to uninstall")
def uninstall(version: str | None):
    """Uninstall the managed Python"""
    version = version or SETTINGS.python_version
    report(asyncio.run(uninstall_python(make_shell(), version)))


@cli.command("pip", context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED, required=True)
def pip_command(args: tuple[str, ...]):
    """Run pip with the managed interpreter"""
    shell = make_shell()
    report(asyncio.run(pip(shell, resolve_interpreter(shell), list(args))))


@cli.command()
def packages():
    """List the installed pip packages"""
    shell = make_shell()
    installed = asyncio.run(pip_packages(shell, resolve_interpreter(shell)))
    if installed is None:
        sys.exit(1)
    for pkg in installed:
        click.echo(f"{pkg.package}=={pkg.version}")


@cli.command("sync-gist")
@click.option("--url", default=None, help="Gist holding the requested pip packages")
def sync_gist(url: str | None):
    """Install the pip packages listed in a gist"""
    shell = make_shell()
    state = asyncio.run(install_from_gist(shell, resolve_interpreter(shell), url or SETTINGS.gist_pip_url, GistCache()))
    if not state.success:
        click.echo(state.message or "Syncing pip packages failed", err=True)
        sys.exit(1)
    if state.reload_required:
        click.echo("Packages installed. Restart running interpreters to pick them up.")
    else:
        click.echo("All packages up to date")


@cli.command("python-version")
def python_version():
    """Show the version of the managed interpreter"""
    shell = make_shell()
    interpreter = resolve_interpreter(shell)
    found = asyncio.run(installed_version(shell, interpreter))
    if found is None:
        click.echo(f"No python found at {interpreter}", err=True)
        sys.exit(1)
    click.echo(f"{interpreter}: Python {found.version}")


@cli.command()
def version():
    """Display the current version of python2go"""
    click.echo(f"python2go {get_current_version()}")


if __name__ == "__main__":
    cli()
