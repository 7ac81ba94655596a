# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Child process execution with real-time output relaying.

Every command runs as a single child process. Its stdout (and optionally
stderr) is copied chunk by chunk to sink handles as it arrives while also
being buffered, so the caller sees output live and still gets the bytes
back in the ExecutionOutcome.

Sinks default to the invoking process's own standard streams, resolved at
call time. Pass explicit binary writers to capture output in tests.

Usage:
    executor = ProcessExecutor()
    executor.run(CommandSpec.of("kubectl", "get", "crd"))
    outcome = executor.capture(CommandSpec.of("kubectl", "version"))
    print(outcome.output)
"""

import contextlib
import enum
import logging
import shlex
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional, Protocol, Union

from .errors import ExecutionFailure, K8sctlError, LaunchFailure

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


@dataclass(frozen=True)
class CommandSpec:
    """An executable followed by its ordered arguments.

    Attributes:
        executable: Program name or path, resolved through PATH
        args: Arguments passed to the program, in order
    """

    executable: str
    args: tuple[str, ...] = ()

    @classmethod
    def of(cls, executable: str, *args: str) -> "CommandSpec":
        return cls(executable=executable, args=tuple(args))

    @property
    def argv(self) -> list[str]:
        """Full argument vector, executable first."""
        return [self.executable, *self.args]

    def __str__(self) -> str:
        return shlex.join(self.argv)


class ExecutionStatus(str, enum.Enum):
    SUCCESS = "success"
    EXIT_ERROR = "exit_error"
    LAUNCH_FAILURE = "launch_failure"


@dataclass
class ExecutionOutcome:
    """Result of one command execution.

    Attributes:
        spec: The command that was executed
        status: Terminal status of the execution
        stdout: Bytes the child wrote to stdout
        stderr: Bytes the child wrote to stderr (empty when discarded)
        error: ExecutionFailure or LaunchFailure when status is not SUCCESS
    """

    spec: CommandSpec
    status: ExecutionStatus
    stdout: bytes = b""
    stderr: bytes = b""
    error: Optional[K8sctlError] = None

    @property
    def ok(self) -> bool:
        return self.status is ExecutionStatus.SUCCESS

    @property
    def output(self) -> str:
        """Captured stdout decoded as text."""
        return self.stdout.decode(errors="replace")

    def check(self) -> "ExecutionOutcome":
        """Raise the recorded error if the execution did not succeed."""
        if self.error is not None:
            raise self.error
        return self


class CommandExecutor(Protocol):
    """Capability for running one command to completion.

    Implementations never raise for process failures; the failure is
    recorded in the returned outcome.
    """

    def execute(
        self,
        spec: CommandSpec,
        *,
        relay_stderr: bool = True,
        stdin: Optional[bytes] = None,
        relay_stdout: bool = True,
    ) -> ExecutionOutcome: ...


class _StreamPump(threading.Thread):
    """Copies a child stream into a buffer, relaying each chunk to a sink.

    A failing sink stops the relay but not the draining, so the child never
    blocks or sees EPIPE because of it. The sink error is kept in `error`.
    """

    def __init__(self, source: BinaryIO, sink: Optional[BinaryIO]):
        super().__init__(daemon=True)
        self.source = source
        self.sink = sink
        self.buffer = bytearray()
        self.error: Optional[OSError] = None

    def run(self) -> None:
        try:
            for chunk in iter(lambda: self.source.read1(CHUNK_SIZE), b""):
                self.buffer.extend(chunk)
                if self.sink is None:
                    continue
                try:
                    self.sink.write(chunk)
                    self.sink.flush()
                except OSError as e:
                    self.error = e
                    self.sink = None
        finally:
            self.source.close()

    def data(self) -> bytes:
        return bytes(self.buffer)


def _start_pump(source: Optional[BinaryIO], sink: Optional[BinaryIO]) -> Optional[_StreamPump]:
    if source is None:
        return None
    pump = _StreamPump(source, sink)
    pump.start()
    return pump


def _pumped(pump: Optional[_StreamPump]) -> bytes:
    return pump.data() if pump is not None else b""


class ProcessExecutor:
    """Runs commands as child processes, teeing their output to sinks.

    Args:
        stdout: Binary sink for relayed stdout (default: sys.stdout.buffer)
        stderr: Binary sink for relayed stderr (default: sys.stderr.buffer)
        popen: Process factory with the subprocess.Popen signature
    """

    def __init__(
        self,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[BinaryIO] = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self._stdout = stdout
        self._stderr = stderr
        self._popen = popen

    def _stdout_sink(self) -> BinaryIO:
        if self._stdout is not None:
            return self._stdout
        sys.stdout.flush()
        return sys.stdout.buffer

    def _stderr_sink(self) -> BinaryIO:
        if self._stderr is not None:
            return self._stderr
        sys.stderr.flush()
        return sys.stderr.buffer

    def execute(
        self,
        spec: CommandSpec,
        *,
        relay_stderr: bool = True,
        stdin: Optional[bytes] = None,
        relay_stdout: bool = True,
    ) -> ExecutionOutcome:
        """Run spec to completion and record how it ended.

        Args:
            spec: Command to run
            relay_stderr: Capture stderr and tee it to the stderr sink.
                When False the child's stderr is discarded.
            stdin: Bytes written to the child's stdin before waiting.
                When None the child's stdin is /dev/null.
            relay_stdout: Tee stdout to the stdout sink (it is always captured)

        Returns:
            ExecutionOutcome; never raises for launch or exit failures
        """
        logger.debug("Running: %s", spec)

        try:
            proc = self._popen(
                spec.argv,
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE if relay_stderr else subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug("Launch failed for %s: %s", spec, e)
            return self._launch_failure(spec, str(e), cause=e)

        out_pump = _start_pump(proc.stdout, self._stdout_sink() if relay_stdout else None)
        err_pump = _start_pump(proc.stderr, self._stderr_sink() if relay_stderr else None)

        if stdin is not None:
            failure = self._feed_stdin(proc, spec, stdin)
            if failure is not None:
                # The child is left alone: no wait, no further interaction
                failure.stdout = _pumped(out_pump)
                failure.stderr = _pumped(err_pump)
                return failure

        returncode = proc.wait()
        for pump in (out_pump, err_pump):
            if pump is not None:
                pump.join()

        stdout, stderr = _pumped(out_pump), _pumped(err_pump)
        for name, pump in (("stdout", out_pump), ("stderr", err_pump)):
            if pump is not None and pump.error is not None:
                logger.debug("Relaying %s of %s failed: %s", name, spec, pump.error)
                failure = self._launch_failure(spec, f"relaying {name}: {pump.error}", cause=pump.error)
                failure.stdout = stdout
                failure.stderr = stderr
                return failure

        if returncode != 0:
            logger.debug("%s exited with status %d", spec, returncode)
            return ExecutionOutcome(
                spec=spec,
                status=ExecutionStatus.EXIT_ERROR,
                stdout=stdout,
                stderr=stderr,
                error=ExecutionFailure(spec, returncode, output=stdout, stderr=stderr),
            )

        return ExecutionOutcome(spec=spec, status=ExecutionStatus.SUCCESS, stdout=stdout, stderr=stderr)

    def _feed_stdin(self, proc: subprocess.Popen, spec: CommandSpec, data: bytes) -> Optional[ExecutionOutcome]:
        """Write data to the child's stdin and close the pipe.

        Returns a LAUNCH_FAILURE outcome if any step fails, else None.
        """
        pipe = proc.stdin
        if pipe is None:
            return self._launch_failure(spec, "stdin pipe not available")
        try:
            pipe.write(data)
        except OSError as e:
            logger.debug("Writing stdin of %s failed: %s", spec, e)
            with contextlib.suppress(OSError):
                pipe.close()
            return self._launch_failure(spec, f"writing stdin: {e}", cause=e)
        try:
            pipe.close()
        except OSError as e:
            logger.debug("Closing stdin of %s failed: %s", spec, e)
            return self._launch_failure(spec, f"closing stdin: {e}", cause=e)
        return None

    @staticmethod
    def _launch_failure(spec: CommandSpec, reason: str, cause: Optional[BaseException] = None) -> ExecutionOutcome:
        error = LaunchFailure(spec, reason)
        error.__cause__ = cause
        return ExecutionOutcome(spec=spec, status=ExecutionStatus.LAUNCH_FAILURE, error=error)

    def run(self, spec: CommandSpec, relay_stderr: bool = True) -> ExecutionOutcome:
        """Run spec, teeing stdout and (optionally) stderr.

        Raises:
            LaunchFailure: The executable could not be started
            ExecutionFailure: The process exited non-zero
        """
        return self.execute(spec, relay_stderr=relay_stderr).check()

    def run_with_stdin(self, input: Union[str, bytes], spec: CommandSpec) -> ExecutionOutcome:
        """Run spec with input written to its stdin, relaying stdout and stderr.

        Raises:
            LaunchFailure: Start failed, or the stdin pipe could not be
                written in full or closed. The child is not waited on.
            ExecutionFailure: The process exited non-zero
        """
        data = input.encode() if isinstance(input, str) else input
        return self.execute(spec, relay_stderr=True, stdin=data).check()

    def capture(self, spec: CommandSpec) -> ExecutionOutcome:
        """Run spec for its output.

        Stdout is captured but not relayed; stderr is still teed to the
        stderr sink. Never raises: check outcome.error, and note that
        outcome.stdout holds whatever was written even on failure.
        """
        return self.execute(spec, relay_stderr=True, relay_stdout=False)


def run(spec: CommandSpec, relay_stderr: bool = True) -> ExecutionOutcome:
    return ProcessExecutor().run(spec, relay_stderr=relay_stderr)


def run_with_stdin(input: Union[str, bytes], spec: CommandSpec) -> ExecutionOutcome:
    return ProcessExecutor().run_with_stdin(input, spec)


def capture(spec: CommandSpec) -> ExecutionOutcome:
    return ProcessExecutor().capture(spec)
