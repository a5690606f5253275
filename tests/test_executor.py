"""Tests for CommandExecutor against a real shell."""

import asyncio
import io
import os
import signal
import time
from unittest.mock import patch

import pytest

from nlcmd.executor import TERMINATED_MESSAGE, CommandExecutor

pytestmark = pytest.mark.skipif(not os.path.exists("/bin/sh"), reason="requires a POSIX shell")


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def executor(streams):
    out, err = streams
    return CommandExecutor(shell="/bin/sh", stdout=out, stderr=err)


class TestExecute:
    """Tests for CommandExecutor.execute()."""

    def test_captures_and_echoes_stdout(self, executor, streams):
        outcome = executor.execute("echo hello")

        assert outcome.output == "hello\n"
        assert outcome.error is False
        assert streams[0].getvalue() == "hello\n"

    def test_stderr_flags_error(self, executor, streams):
        """Anything on stderr marks the run as failed, even with exit code 0."""
        outcome = executor.execute("echo oops >&2")

        assert outcome.output == "oops\n"
        assert outcome.error is True
        assert streams[1].getvalue() == "oops\n"

    def test_both_streams_collected(self, executor):
        outcome = executor.execute("echo out; echo err >&2")
        assert "out\n" in outcome.output
        assert "err\n" in outcome.output

    def test_non_zero_exit(self, executor):
        outcome = executor.execute("echo partial; exit 2")

        assert outcome.output == "partial\nError: Command exited with code 2\n"
        assert outcome.error is True

    def test_output_truncated(self, executor, streams):
        outcome = executor.execute("head -c 1500 /dev/zero | tr '\\0' 'a'")

        assert outcome.output.startswith("a" * 1000 + "\n")
        assert outcome.output.endswith("[Output truncated - 500 more characters]")
        assert len(streams[0].getvalue()) == 1500

    def test_spawn_failure(self, streams):
        executor = CommandExecutor(shell="/nonexistent/shell", stdout=streams[0], stderr=streams[1])
        outcome = executor.execute("echo never")

        assert outcome.error is True
        assert outcome.output.startswith("Error: Failed to start command:")

    def test_shell_features(self, executor, tmp_path):
        """The command line is interpreted by the shell as a whole."""
        outcome = executor.execute(f"cd {tmp_path} && touch a b && ls | wc -l")
        assert outcome.output.strip() == "2"


class TestInterrupt:
    """SIGINT handling while a child is running."""

    @pytest.mark.asyncio
    async def test_interrupt_stops_child_only(self, executor, streams):
        loop = asyncio.get_running_loop()
        loop.call_later(0.5, os.kill, os.getpid(), signal.SIGINT)

        started = time.monotonic()
        outcome = await executor.run("sleep 5")
        elapsed = time.monotonic() - started

        assert elapsed < 4
        assert outcome.error is False
        assert TERMINATED_MESSAGE.strip() in streams[0].getvalue()
        # Handler is removed once the child is gone
        assert loop.remove_signal_handler(signal.SIGINT) is False


class ChunkedReader:
    """Stream reader returning pre-split chunks, then EOF."""

    def __init__(self, *chunks):
        self.chunks = list(chunks)

    async def read(self, n=-1):
        return self.chunks.pop(0) if self.chunks else b""


class TestDecoding:
    """Multi-byte characters split across reads."""

    @pytest.mark.asyncio
    async def test_character_split_between_chunks(self, executor, streams):
        from nlcmd.executor import _Run

        state = _Run()
        reader = ChunkedReader(b"caf\xc3", b"\xa9 ok\n")
        await executor._pump(reader, streams[0], state, is_stderr=False)

        assert state.output == "café ok\n"
        assert streams[0].getvalue() == "café ok\n"

    @pytest.mark.asyncio
    async def test_truncated_character_at_eof(self, executor, streams):
        from nlcmd.executor import _Run

        state = _Run()
        await executor._pump(ChunkedReader(b"ab\xc3"), streams[0], state, is_stderr=False)
        assert state.output == "ab\ufffd"

    def test_long_line_with_accent(self, executor, streams, tmp_path):
        path = tmp_path / "accent.txt"
        path.write_bytes(b"a" * 4095 + "é\n".encode("utf-8"))

        outcome = executor.execute(f"cat {path}")

        echoed = streams[0].getvalue()
        assert echoed.endswith("é\n")
        assert "\ufffd" not in echoed
        assert outcome.error is False


class TestEarlyInterrupt:
    """SIGINT arriving before the child has been started."""

    def test_no_child_no_termination(self, executor):
        from nlcmd.executor import _Run

        state = _Run()
        executor._interrupt(state)
        assert state.terminated_by_user is False

    @pytest.mark.asyncio
    async def test_interrupt_during_spawn_is_delivered(self, executor, streams):
        spawn = asyncio.create_subprocess_shell

        async def slow_spawn(*args, **kwargs):
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.sleep(0.2)
            return await spawn(*args, **kwargs)

        started = time.monotonic()
        with patch("nlcmd.executor.asyncio.create_subprocess_shell", slow_spawn):
            outcome = await executor.run("sleep 5")

        assert time.monotonic() - started < 4
        assert outcome.error is False
        assert TERMINATED_MESSAGE.strip() in streams[0].getvalue()

    @pytest.mark.asyncio
    async def test_interrupt_after_exit_keeps_failure(self, executor):
        """A Ctrl+C that reaches no live child does not hide a non-zero exit."""
        spawn = asyncio.create_subprocess_shell

        async def spawn_then_interrupt(*args, **kwargs):
            process = await spawn(*args, **kwargs)
            await process.wait()
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.sleep(0.2)
            return process

        with patch("nlcmd.executor.asyncio.create_subprocess_shell", spawn_then_interrupt):
            outcome = await executor.run("exit 3")

        assert outcome.error is True
        assert "Command exited with code 3" in outcome.output
