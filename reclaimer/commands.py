"""
Async execution of external commands with captured, line-streamed output.
"""

import asyncio
import logging
import shlex
from collections.abc import Sequence
from dataclasses import dataclass, field

from reclaimer.exceptions import CommandError
from reclaimer.reporter import ExecutionReporter

logger = logging.getLogger(__name__)

# Lines of stderr carried in a CommandError message
STDERR_TAIL_LINES = 20

# Bytes read per chunk; lines are split by hand so any length is accepted
READ_CHUNK_SIZE = 64 * 1024


@dataclass
class CommandResult:
    """Captured outcome of one finished command."""
    argv: list[str]
    returncode: int
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs commands as subprocesses on the current event loop.

    Output is always captured. Each line is forwarded to the reporter as it
    arrives, but only when verbose is enabled.
    """

    def __init__(
        self,
        verbose: bool = False,
        reporter: ExecutionReporter | None = None,
        use_sudo: bool = True,
        dry_run: bool = False,
    ):
        self.verbose = verbose
        self.reporter = reporter or ExecutionReporter()
        self.use_sudo = use_sudo
        self.dry_run = dry_run

    def build_argv(self, argv: Sequence[str], privileged: bool = True) -> list[str]:
        if privileged and self.use_sudo:
            return ["sudo", *argv]
        return list(argv)

    async def run(
        self,
        argv: Sequence[str],
        label: str,
        color: str | None = None,
        privileged: bool = True,
    ) -> CommandResult:
        """
        Run one command to completion.

        Args:
            argv: Program and arguments, without the sudo prefix.
            label: Step name used to tag streamed output.
            color: Display color for the tag, defaults to the theme lookup.
            privileged: Prefix with sudo when the runner uses sudo.

        Returns:
            CommandResult: Captured output of a successful command.

        Raises:
            CommandError: If the command exits non-zero or cannot be started.
        """
        full_argv = self.build_argv(argv, privileged)

        if self.dry_run:
            logger.info(f"[dry-run] {label}: {shlex.join(full_argv)}")
            return CommandResult(argv=full_argv, returncode=0)

        logger.debug(f"{label}: running {shlex.join(full_argv)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *full_argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise CommandError(full_argv, 127, f"Executable not found: {full_argv[0]}") from None
        except OSError as e:
            raise CommandError(full_argv, 126, f"Could not start {full_argv[0]}: {e}") from None

        result = CommandResult(argv=full_argv, returncode=-1)
        try:
            await asyncio.gather(
                self._pump(process.stdout, result.stdout, label, color),
                self._pump(process.stderr, result.stderr, label, color),
            )
            result.returncode = await process.wait()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if not result.success:
            raise CommandError(
                full_argv,
                result.returncode,
                "\n".join(result.stderr[-STDERR_TAIL_LINES:]),
            )
        return result

    async def _pump(self, stream: asyncio.StreamReader, sink: list[str], label: str, color: str | None):
        """Split a stream into lines, whatever their length."""
        pending = bytearray()
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            pending.extend(chunk)
            *lines, rest = pending.split(b"\n")
            pending = bytearray(rest)
            for raw in lines:
                self._record(raw, sink, label, color)
        if pending:
            self._record(bytes(pending), sink, label, color)

    def _record(self, raw: bytes, sink: list[str], label: str, color: str | None):
        line = raw.decode(errors="replace").rstrip("\r")
        sink.append(line)
        if self.verbose:
            self.reporter.emit(label, line, color)
