# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Error types raised by the executor and the readiness poller.

    K8sctlError
    ├── ValidationError     bad input, raised before any process is spawned
    ├── LaunchFailure       executable missing, or stdin pipe open/write/close failed
    ├── ExecutionFailure    process ran and exited non-zero
    └── ReadinessTimeout    poll budget exhausted while probes kept failing
"""

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .executor import CommandSpec


class K8sctlError(Exception):
    """Base class for all k8sctl errors."""


class ValidationError(K8sctlError, ValueError):
    """Invalid argument or configuration value."""


class LaunchFailure(K8sctlError):
    """The child process could not be started or fed its input."""

    def __init__(self, spec: "CommandSpec", reason: str):
        self.spec = spec
        self.reason = reason
        super().__init__(f"failed to launch '{spec}': {reason}")


class ExecutionFailure(K8sctlError):
    """The child process exited with a non-zero status.

    Mirrors subprocess.CalledProcessError: the captured output is kept on
    the exception so callers can still inspect what was written.
    """

    def __init__(
        self,
        spec: "CommandSpec",
        returncode: int,
        output: bytes = b"",
        stderr: bytes = b"",
    ):
        self.spec = spec
        self.returncode = returncode
        self.output = output
        self.stderr = stderr
        super().__init__(f"'{spec}' exited with status {returncode}")


class ReadinessTimeout(K8sctlError):
    """Resource types did not all become ready within the time budget."""

    def __init__(self, max_seconds: int, pending: Optional[Sequence[str]] = None):
        self.max_seconds = max_seconds
        self.pending = tuple(pending or ())
        message = f"kubernetes resources not ready after {max_seconds}s"
        if self.pending:
            message += f" (pending: {', '.join(self.pending)})"
        super().__init__(message)
