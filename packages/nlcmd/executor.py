"""Run generated commands and scripts with streaming output.

The child runs through the user's shell in its own session, so a Ctrl+C
at the terminal reaches only nlcmd. While a child is running, nlcmd's
SIGINT handler forwards the interrupt to the child's process group and
keeps the conversation alive.
"""

import asyncio
import codecs
import logging
import os
import signal
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from .config import SHELL_EXECUTABLE
from .context import ExecutionOutcome, truncate_output

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096

TERMINATED_MESSAGE = "\nCommand terminated by user. Main program still running.\n"


class _Run:
    """Mutable state of one child process run."""

    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.stderr_seen = False
        self.terminated_by_user = False
        self.interrupt_pending = False
        self.process: Optional[asyncio.subprocess.Process] = None

    @property
    def output(self) -> str:
        return "".join(self.chunks)


class CommandExecutor:
    """Executes a shell command line and captures its combined output.

    Args:
        shell: Shell used to interpret the command line
        stdout: Stream echoing the child's stdout (defaults to sys.stdout)
        stderr: Stream echoing the child's stderr (defaults to sys.stderr)
    """

    def __init__(
        self,
        shell: str = SHELL_EXECUTABLE,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        self.shell = shell
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr if self._stderr is not None else sys.stderr

    def execute(self, command: str) -> ExecutionOutcome:
        """Blocking entry point used by the state handlers."""
        return asyncio.run(self.run(command))

    async def run(self, command: str) -> ExecutionOutcome:
        """Run command to completion.

        Returns:
            ExecutionOutcome whose output holds stdout and stderr in arrival
            order (truncated), and whose error flag is set when the child
            wrote to stderr, exited non-zero without being interrupted, or
            could not be started.
        """
        state = _Run()
        failure: Optional[str] = None
        logger.info("Executing: %s", command)

        try:
            with self._forward_interrupts(state):
                state.process = await asyncio.create_subprocess_shell(
                    command,
                    executable=self.shell,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    start_new_session=True,  # For process group signaling
                )
                if state.interrupt_pending:
                    self._interrupt(state)
                # Both pumps finish before the exit status is read
                await asyncio.gather(
                    self._pump(state.process.stdout, self.stdout, state, is_stderr=False),
                    self._pump(state.process.stderr, self.stderr, state, is_stderr=True),
                )
                returncode = await state.process.wait()
        except OSError as e:
            logger.error("Failed to start %r: %s", command, e)
            failure = f"Failed to start command: {e}"
        else:
            logger.info("Command exited with %s (terminated_by_user=%s)", returncode, state.terminated_by_user)
            if returncode != 0 and not state.terminated_by_user:
                failure = f"Command exited with code {returncode}"

        if failure:
            state.chunks.append(f"Error: {failure}\n")

        return ExecutionOutcome(
            output=truncate_output(state.output),
            error=state.stderr_seen or failure is not None,
        )

    async def _pump(
        self,
        reader: asyncio.StreamReader,
        echo: TextIO,
        state: _Run,
        is_stderr: bool,
    ) -> None:
        # Multi-byte characters may straddle two reads
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await reader.read(READ_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                state.chunks.append(text)
                if is_stderr:
                    state.stderr_seen = True
                echo.write(text)
                echo.flush()
            if not data:
                break

    def _interrupt(self, state: _Run) -> None:
        """Send SIGINT to the child's process group if it is still running."""
        process = state.process
        if process is None or process.returncode is not None:
            return
        try:
            os.killpg(os.getpgid(process.pid), signal.SIGINT)
        except (ProcessLookupError, PermissionError) as e:
            logger.warning("Could not interrupt process %s: %s", process.pid, e)
            return
        state.terminated_by_user = True
        self.stdout.write(f"\033[1;33m{TERMINATED_MESSAGE}\033[0m")
        self.stdout.flush()

    @contextmanager
    def _forward_interrupts(self, state: _Run) -> Iterator[None]:
        """Route SIGINT to the child's process group for the duration of the block.

        An interrupt that arrives before the child exists is held and sent
        once the child has started.
        """
        loop = asyncio.get_running_loop()

        def on_interrupt() -> None:
            if state.process is None:
                state.interrupt_pending = True
            else:
                self._interrupt(state)

        loop.add_signal_handler(signal.SIGINT, on_interrupt)
        try:
            yield
        finally:
            loop.remove_signal_handler(signal.SIGINT)
