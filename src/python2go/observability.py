import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger as log

# Continuation lines line up under the first line of the message
# (timestamp "2020-07-22T09:43:16.700Z: " is 26 chars wide).
ALIGN_LOGGED_NEWLINES = "\n" + " " * 26


def _env_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def debug_enabled() -> bool:
    return _env_truthy(os.getenv("PYTHON2GO_DEBUG"))


def _file_format(record: dict[str, Any]) -> str:
    level = record["level"]
    prefix = f"[{level.name}] " if level.no >= 30 else ""
    message = prefix + record["message"].strip()
    record["extra"]["aligned"] = message.replace("\r\n", "\n").replace("\n", ALIGN_LOGGED_NEWLINES)
    return "{time:YYYY-MM-DD[T]HH:mm:ss.SSS!UTC}Z: {extra[aligned]}\n{exception}"


def configure_logging(debug: bool = False, log_file: Path | None = None) -> None:
    """Install the stderr handler and, optionally, a timestamped log file."""
    debug = debug or debug_enabled()

    log.remove()
    log.add(sys.stderr, level="DEBUG" if debug else "INFO", format="<level>{message}</level>")

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        log.add(log_file, level="DEBUG", format=_file_format, enqueue=True)
        log.debug(f"Logging to {log_file}")
