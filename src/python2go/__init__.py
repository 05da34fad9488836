from python2go.result import ErrorKind, ErrorResult, ShellResult, SuccessResult
from python2go.shell import CommandOptions, Shell, execute

__all__ = [
    "CommandOptions",
    "ErrorKind",
    "ErrorResult",
    "Shell",
    "ShellResult",
    "SuccessResult",
    "execute",
]
