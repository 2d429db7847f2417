"""Supervise a single ffmpeg process."""

import asyncio
import codecs
import contextlib
import logging
import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from avsuite.error_handling import (
    AvSuiteError,
    ExecutionError,
    LaunchError,
    OperationCancelled,
)
from avsuite.operations.builder import Invocation

logger = logging.getLogger(__name__)

# Only this marker carries progress; "time=N/A" and everything else is ignored
TIME_PATTERN = re.compile(r"time=(\d{2}):(\d{2}):(\d{2}(?:\.\d+)?)")

# ffmpeg redraws its status line with \r, log lines end with \n
LINE_BREAK = re.compile(r"[\r\n]")

READ_CHUNK_SIZE = 4096

ProgressCallback = Callable[[float], None]


def parse_progress_time(line: str) -> float | None:
    """Seconds encoded so far, from a ``time=HH:MM:SS.fff`` marker."""
    match = TIME_PATTERN.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class RunStatus(Enum):
    """Terminal state of one invocation."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RunResult:
    """Result of running one invocation."""

    def __init__(
        self,
        status: RunStatus,
        invocation: Invocation,
        exit_code: int | None = None,
        error: AvSuiteError | None = None,
        diagnostics: str = "",
    ):
        self.status = status
        self.invocation = invocation
        self.exit_code = exit_code
        self.error = error
        self.diagnostics = diagnostics

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.SUCCEEDED

    @property
    def output_path(self) -> Path:
        return self.invocation.output_path

    def __str__(self) -> str:
        if self.succeeded:
            return f"Created {self.output_path.name}"
        if self.status is RunStatus.CANCELLED:
            return f"Cancelled {self.output_path.name}"
        return f"Failed to create {self.output_path.name}: {self.error}"


class ProcessRunner:
    """Runs one ffmpeg invocation at a time and reports its progress.

    ``cancel()`` terminates the live process. Once cancel has been requested
    the result is CANCELLED whatever the exit code, and partial output is
    deleted. Support files (e.g. concat lists) are written before launch and
    always removed afterwards.
    """

    def __init__(self, binary: str | Path, tool_name: str = "ffmpeg"):
        self.binary = binary
        self.tool_name = tool_name
        self._process: asyncio.subprocess.Process | None = None
        self._busy = False
        self._cancel_requested = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def run(
        self,
        invocation: Invocation,
        on_progress: ProgressCallback | None = None,
    ) -> RunResult:
        """Execute *invocation* and wait for it to finish.

        Raises:
            RuntimeError: another invocation is already running.
        """
        if self._busy:
            msg = "ProcessRunner is already running an invocation"
            raise RuntimeError(msg)

        self._busy = True
        self._cancel_requested = False
        try:
            return await self._run(invocation, on_progress)
        finally:
            self._process = None
            self._busy = False
            self._remove_support_files(invocation)

    def cancel(self) -> None:
        """Request termination of the live process. No-op when idle."""
        if not self._busy or self._cancel_requested:
            return

        logger.info("Cancelling running ffmpeg process")
        self._cancel_requested = True
        self._terminate()

    def _terminate(self) -> None:
        process = self._process
        if process is not None and process.returncode is None:
            # The process may exit between the check and the signal
            with contextlib.suppress(ProcessLookupError):
                process.terminate()

    async def _run(
        self,
        invocation: Invocation,
        on_progress: ProgressCallback | None,
    ) -> RunResult:
        try:
            self._write_support_files(invocation)
        except OSError as e:
            error = LaunchError(f"Could not write scratch file: {e}", original_error=e)
            return RunResult(RunStatus.FAILED, invocation, error=error)

        logger.info(f"Running: {invocation.command_as_string(self.binary)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *invocation.command(self.binary),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.exception(f"Failed to start {self.tool_name}")
            error = LaunchError(f"Could not start {self.tool_name}: {e}", original_error=e)
            return RunResult(RunStatus.FAILED, invocation, error=error)

        process = self._process
        if self._cancel_requested:
            # cancel() arrived while the process was being spawned
            self._terminate()

        try:
            diagnostics = await self._read_diagnostics(
                process.stderr, invocation.progress_duration, on_progress,
            )
            exit_code = await process.wait()
        except asyncio.CancelledError:
            self._terminate()
            await process.wait()
            self._remove_partial_output(invocation)
            raise

        if self._cancel_requested:
            self._remove_partial_output(invocation)
            logger.info(f"Cancelled {invocation.output_path.name}")
            return RunResult(
                RunStatus.CANCELLED,
                invocation,
                exit_code=exit_code,
                error=OperationCancelled(),
                diagnostics=diagnostics,
            )

        if exit_code != 0:
            self._remove_partial_output(invocation)
            error = ExecutionError(self.tool_name, exit_code, diagnostics)
            logger.error(f"{self.tool_name} exited with {exit_code} for {invocation.output_path.name}")
            return RunResult(
                RunStatus.FAILED,
                invocation,
                exit_code=exit_code,
                error=error,
                diagnostics=diagnostics,
            )

        logger.info(f"Created {invocation.output_path.name}")
        return RunResult(
            RunStatus.SUCCEEDED, invocation, exit_code=exit_code, diagnostics=diagnostics,
        )

    async def _read_diagnostics(
        self,
        stream: asyncio.StreamReader | None,
        duration: float | None,
        on_progress: ProgressCallback | None,
    ) -> str:
        """Consume stderr to EOF, reporting progress; returns the full text."""
        if stream is None:
            return ""

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        parts: list[str] = []
        pending = ""
        last_time = -1.0

        def handle(line: str) -> None:
            nonlocal last_time
            seconds = parse_progress_time(line)
            if seconds is None or seconds < last_time:
                return
            last_time = seconds
            if on_progress is None or not duration or duration <= 0:
                return
            try:
                on_progress(min(seconds / duration, 1.0))
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            parts.append(text)
            *lines, pending = LINE_BREAK.split(pending + text)
            for line in lines:
                handle(line)

        tail = decoder.decode(b"", final=True)
        parts.append(tail)
        if pending + tail:
            handle(pending + tail)

        return "".join(parts)

    @staticmethod
    def _write_support_files(invocation: Invocation) -> None:
        for support in invocation.support_files:
            support.path.parent.mkdir(parents=True, exist_ok=True)
            support.path.write_text(support.content, encoding="utf-8")

    @staticmethod
    def _remove_support_files(invocation: Invocation) -> None:
        for support in invocation.support_files:
            try:
                support.path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove {support.path}: {e}")

    @staticmethod
    def _remove_partial_output(invocation: Invocation) -> None:
        for path in invocation.output_files():
            try:
                path.unlink()
                logger.debug(f"Removed partial output {path}")
            except OSError as e:
                logger.warning(f"Could not remove partial output {path}: {e}")
