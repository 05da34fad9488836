"""Command-line composition for the two shell dialects we target.

All helpers here are pure string functions. Arguments are quoted for the
dialect they end up in instead of being interpolated raw.
"""

from __future__ import annotations

import re
import shlex
from typing import Iterable

# A bare executable name, e.g. ``choco``, ``python3.8`` or ``pip-3``.
COMMAND_NAME_RE = re.compile(r"^[A-Za-z0-9_.+-]+$")

_LINE_BREAKS_RE = re.compile(r"\r\n|\n|\r")


def is_command_name(value: str) -> bool:
    return bool(COMMAND_NAME_RE.match(value))


def join_lines(script: str) -> str:
    """Collapse a multi-line script into a single line."""
    return _LINE_BREAKS_RE.sub(" ", script).strip()


# ==============================================================================
# POSIX sh
# ==============================================================================


def quote_posix(arg: str) -> str:
    return shlex.quote(arg)


def posix_command(args: Iterable[str]) -> str:
    """Join an argument vector into a single /bin/sh command line."""
    return " ".join(quote_posix(str(a)) for a in args)


# ==============================================================================
# PowerShell
# ==============================================================================


def quote_powershell(arg: str) -> str:
    """Single-quote ``arg`` for PowerShell; nothing inside is expanded."""
    return "'" + arg.replace("'", "''") + "'"


def escape_powershell_double_quoted(text: str) -> str:
    """Escape ``text`` for embedding inside a PowerShell double-quoted string."""
    return text.replace("`", "``").replace('"', '`"').replace("$", "`$")


def powershell_command(args: Iterable[str]) -> str:
    """Join an argument vector into a PowerShell invocation (``& 'exe' 'arg' ...``)."""
    quoted = [quote_powershell(str(a)) for a in args]
    if not quoted:
        return ""
    return "& " + " ".join(quoted)
