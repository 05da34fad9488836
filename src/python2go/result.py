"""Uniform outcome of a shell invocation.

Callers branch on ``result.success`` for expected failures (missing tool,
non-zero exit, declined credential). Exceptions are reserved for caller-side
contract violations.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union


class ErrorKind(str, Enum):
    SPAWN = "spawn"
    NON_ZERO_EXIT = "non_zero_exit"
    CREDENTIAL_DECLINED = "credential_declined"
    UNSUPPORTED_PLATFORM = "unsupported_platform"


@dataclass(frozen=True)
class SuccessResult:
    output: str
    warnings: str | None = None
    exit_code: int | None = None
    success: Literal[True] = True

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class ErrorResult:
    error: str
    output: str | None = None
    kind: ErrorKind = ErrorKind.NON_ZERO_EXIT
    exit_code: int | None = None
    success: Literal[False] = False

    def __bool__(self) -> bool:
        return False


ShellResult = Union[SuccessResult, ErrorResult]


def success_result(stdout: str, warnings: str | None = None, exit_code: int | None = None) -> SuccessResult:
    """Build a success from raw stdout. Empty diagnostics are dropped."""
    return SuccessResult(output=stdout.strip(), warnings=warnings or None, exit_code=exit_code)


def error_result(
    error: str,
    output: str | None = None,
    kind: ErrorKind = ErrorKind.NON_ZERO_EXIT,
    exit_code: int | None = None,
) -> ErrorResult:
    """Build an error from a message and optional partial stdout."""
    if output is not None:
        output = output.strip() or None
    return ErrorResult(error=error, output=output, kind=kind, exit_code=exit_code)


def unsupported_platform(name: str) -> ErrorResult:
    return error_result(f"Error: unsupported platform '{name}'", kind=ErrorKind.UNSUPPORTED_PLATFORM)
