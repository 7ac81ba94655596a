"""
k8sctl - apply Kubernetes manifests and wait for resource types to become available.

Key modules:
- core.executor: Runs external commands, relaying their output in real time
- core.kubectl: kubectl apply and bounded readiness polling
- core.config: Settings loading (k8sctl.yaml)
- core.status: Fire-and-forget setup status reporting
- cli.main: Command-line entrypoint

Usage:
    k8sctl apply -f crds.yaml
    k8sctl wait --timeout 60 crd
"""

__version__ = "0.1.0"

from .core.config import get_setting, load_config
from .core.errors import ExecutionFailure, K8sctlError, LaunchFailure, ReadinessTimeout, ValidationError
from .core.executor import CommandSpec, ExecutionOutcome, ExecutionStatus, ProcessExecutor
from .core.kubectl import Kubectl, PollRequest

__all__ = [
    # Version
    "__version__",
    # Config
    "load_config",
    "get_setting",
    # Errors
    "K8sctlError",
    "ValidationError",
    "LaunchFailure",
    "ExecutionFailure",
    "ReadinessTimeout",
    # Executor
    "CommandSpec",
    "ExecutionOutcome",
    "ExecutionStatus",
    "ProcessExecutor",
    # kubectl
    "Kubectl",
    "PollRequest",
]
