import asyncio
import codecs
from dataclasses import dataclass
from typing import Callable, Sequence

from loguru import logger as log

from python2go.result import ErrorKind, ShellResult, error_result, success_result

# Receives (stream name, line) for every line a child process prints.
OutputSink = Callable[[str, str], None]

_CHUNK_SIZE = 4096


def log_output_line(stream: str, line: str) -> None:
    if stream == "stderr":
        log.warning(line)
    else:
        log.debug(line)


@dataclass
class CommandResult:
    returncode: int | None
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ProcessHandle:
    """A single live child process and the pumps draining its output.

    The handle belongs to the coroutine that spawned it; nothing else reads
    from or writes to the process.
    """

    def __init__(self, process: asyncio.subprocess.Process, sink: OutputSink):
        self._process = process
        self._sink = sink

    @classmethod
    async def spawn(cls, argv: Sequence[str], sink: OutputSink, with_stdin: bool = False) -> "ProcessHandle":
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if with_stdin else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        log.debug(f"PID [{process.pid}] started")
        return cls(process, sink)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def communicate(self, stdin: str | None = None) -> CommandResult:
        """Feed ``stdin`` (if any), drain both pipes and wait for the exit code."""
        if stdin is not None:
            await self._feed(stdin)

        stdout, stderr = await asyncio.gather(
            self._pump(self._process.stdout, "stdout"),
            self._pump(self._process.stderr, "stderr"),
        )
        returncode = await self._process.wait()
        log.debug(f"PID [{self.pid}] finished with exit code {returncode}")

        return CommandResult(returncode=returncode, stdout=stdout, stderr=stderr)

    def kill(self) -> None:
        if self._process.returncode is None:
            self._process.kill()

    async def _feed(self, data: str) -> None:
        pipe = self._process.stdin
        if pipe is None:
            return
        try:
            pipe.write(data.encode())
            await pipe.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The child exited before reading its input; its exit code tells the story.
            pass
        finally:
            pipe.close()

    async def _pump(self, stream: asyncio.StreamReader | None, name: str) -> str:
        if stream is None:
            return ""

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        chunks: list[str] = []
        pending = ""

        while True:
            data = await stream.read(_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            chunks.append(text)
            pending += text
            *lines, pending = pending.split("\n")
            for line in lines:
                self._emit(name, line)
            if not data:
                break

        self._emit(name, pending)
        return "".join(chunks)

    def _emit(self, name: str, line: str) -> None:
        line = line.rstrip("\r")
        if not line.strip():
            return
        try:
            self._sink(name, line)
        except Exception as e:
            log.debug(f"Output sink failed on {name}: {e}")


def to_shell_result(result: CommandResult, spawn_failure_codes: frozenset[int] = frozenset()) -> ShellResult:
    """Interpret a finished process.

    A non-zero exit with an empty stderr is reported as a success carrying
    stdout; some installers exit non-zero while only printing to stdout.
    """
    stdout, stderr = result.stdout, result.stderr
    code = result.returncode

    if code == 0:
        return success_result(stdout, stderr.strip() or None, exit_code=code)

    kind = ErrorKind.SPAWN if code in spawn_failure_codes else ErrorKind.NON_ZERO_EXIT
    if stderr.strip():
        if not stdout.strip():
            return error_result(stderr.strip(), kind=kind, exit_code=code)
        return error_result(f"{stderr}\n{stdout}".strip(), output=stdout, kind=kind, exit_code=code)

    return success_result(stdout, exit_code=code)


class ProcessRunner:
    """Runs command lines in the native shell and normalizes the outcome.

    Args:
        shell_argv: Turns a command line into the argv that executes it
        sink: Receives every output line while the process runs
        spawn_failure_codes: Exit codes the shell uses for "could not start"
    """

    def __init__(
        self,
        shell_argv: Callable[[str], Sequence[str]],
        sink: OutputSink = log_output_line,
        spawn_failure_codes: frozenset[int] = frozenset(),
    ):
        self.shell_argv = shell_argv
        self.sink = sink
        self.spawn_failure_codes = spawn_failure_codes

    async def run(self, command: str, stdin: str | None = None) -> ShellResult:
        argv = list(self.shell_argv(command))
        log.debug(f"Running: {command}")

        try:
            handle = await ProcessHandle.spawn(argv, self.sink, with_stdin=stdin is not None)
        except OSError as e:
            log.error(f"Could not start '{argv[0]}': {e}")
            return error_result(f"{type(e).__name__}: {e}", kind=ErrorKind.SPAWN)

        result = await handle.communicate(stdin)
        return to_shell_result(result, self.spawn_failure_codes)
