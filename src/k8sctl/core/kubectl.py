# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
kubectl wrappers: apply manifests and wait for resource types to exist.

Readiness is checked by probing `kubectl get <type>` once per type per
iteration. Only the exit status of the probe matters; its output is not
parsed. Probe stderr is discarded since failures are expected until the
resources are installed.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from .errors import ReadinessTimeout, ValidationError
from .executor import CommandExecutor, CommandSpec, ExecutionStatus, ProcessExecutor

if TYPE_CHECKING:
    from .schema import K8sctlConfig

logger = logging.getLogger(__name__)

KUBECTL = "kubectl"
K8S_GET = "get"
K8S_APPLY = "apply"
FILE_FLAG = "-f"
STDIN_SENTINEL = "-"

POLL_INTERVAL_SEC = 1


@dataclass(frozen=True)
class PollRequest:
    """Time budget and resource types for one readiness wait.

    Attributes:
        max_seconds: Maximum number of one-second iterations
        resource_types: Types probed every iteration (duplicates are probed again)
    """

    max_seconds: int
    resource_types: tuple[str, ...]

    def __post_init__(self):
        if self.max_seconds < 0:
            raise ValidationError(f"'max_seconds' should be non negative, got {self.max_seconds}")


@dataclass(frozen=True)
class PollProgress:
    """Snapshot taken after the probes of one iteration.

    Attributes:
        iteration: 1-based iteration number
        max_iterations: Iteration budget of the wait
        resource_types: All types being polled, in request order
        pending: Types whose probe failed in this iteration
    """

    iteration: int
    max_iterations: int
    resource_types: tuple[str, ...]
    pending: tuple[str, ...]

    @property
    def ready(self) -> tuple[str, ...]:
        return tuple(t for t in self.resource_types if t not in self.pending)


@dataclass
class Kubectl:
    """kubectl client backed by a CommandExecutor.

    Attributes:
        binary: kubectl executable name or path
        executor: Runs the commands (swap in a fake for tests)
        sleep: Pause between poll iterations (swap in a fake for tests)
        on_iteration: Called with a PollProgress after each iteration's probes
    """

    binary: str = KUBECTL
    executor: CommandExecutor = field(default_factory=ProcessExecutor)
    sleep: Callable[[float], None] = time.sleep
    on_iteration: Optional[Callable[[PollProgress], None]] = None

    @classmethod
    def from_config(cls, config: "K8sctlConfig", **kwargs) -> "Kubectl":
        return cls(binary=config.kubectl, **kwargs)

    def command(self, *args: str) -> CommandSpec:
        return CommandSpec.of(self.binary, *args)

    def probe(self, resource_type: str) -> bool:
        """Check whether resource_type can be listed.

        Raises:
            LaunchFailure: kubectl itself could not be started
        """
        outcome = self.executor.execute(self.command(K8S_GET, resource_type), relay_stderr=False)
        if outcome.status is ExecutionStatus.LAUNCH_FAILURE:
            outcome.check()
        return outcome.ok

    def wait_for_resource_types(self, max_seconds: int, *resource_types: str) -> None:
        """Block until every resource type is available in the same iteration.

        Runs at most max_seconds iterations. Each iteration probes every type
        (a failing probe does not skip the rest) and then sleeps one second.

        Raises:
            ValidationError: max_seconds is negative
            ReadinessTimeout: The budget ran out before all types were ready
            LaunchFailure: kubectl could not be started
        """
        request = PollRequest(max_seconds=max_seconds, resource_types=tuple(resource_types))

        pending: list[str] = list(request.resource_types)
        for iteration in range(1, request.max_seconds + 1):
            pending = [t for t in request.resource_types if not self.probe(t)]
            logger.debug("Readiness iteration %d/%d, pending: %s", iteration, request.max_seconds, pending)
            if self.on_iteration is not None:
                self.on_iteration(
                    PollProgress(iteration, request.max_seconds, request.resource_types, tuple(pending))
                )
            self.sleep(POLL_INTERVAL_SEC)

            if not pending:
                logger.info("Resources ready after %d iteration(s): %s", iteration, ", ".join(request.resource_types))
                return

        logger.warning("Resources not ready after %ds: %s", request.max_seconds, ", ".join(pending))
        raise ReadinessTimeout(request.max_seconds, pending=pending)

    def apply_command(self, *paths: str) -> CommandSpec:
        """Build `kubectl apply -f <p1> -f <p2> ...`, keeping path order."""
        args = [K8S_APPLY]
        for path in paths:
            args.extend((FILE_FLAG, str(path)))
        return self.command(*args)

    def apply_from_files(self, *paths: str) -> None:
        """Apply resources from files, URLs or directories.

        Raises:
            LaunchFailure, ExecutionFailure: kubectl failed
        """
        spec = self.apply_command(*paths)
        logger.info("Applying: %s", spec)
        self.executor.execute(spec, relay_stderr=True).check()

    def apply_from_stdin(self, payload: str) -> None:
        """Apply resources read from payload via `kubectl apply -f -`."""
        spec = self.command(K8S_APPLY, FILE_FLAG, STDIN_SENTINEL)
        logger.info("Applying from stdin: %s", spec)
        data = payload.encode() if isinstance(payload, str) else payload
        self.executor.execute(spec, relay_stderr=True, stdin=data).check()

    def get(self, resource_type: str, *args: str) -> str:
        """Return the output of `kubectl get <resource_type> [args...]`.

        Raises:
            LaunchFailure, ExecutionFailure: kubectl failed
        """
        spec = self.command(K8S_GET, resource_type, *args)
        outcome = self.executor.execute(spec, relay_stderr=True, relay_stdout=False)
        return outcome.check().output
