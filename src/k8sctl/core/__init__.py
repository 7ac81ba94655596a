# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Core modules for k8sctl.

This package contains:
- errors: Error hierarchy
- executor: Child process execution with output teeing
- kubectl: Apply and readiness polling on top of the executor
- config/schema: Settings loading and validation
- status: Fire-and-forget status reporting
"""

from .config import get_setting, load_config
from .errors import ExecutionFailure, K8sctlError, LaunchFailure, ReadinessTimeout, ValidationError
from .executor import (
    CommandExecutor,
    CommandSpec,
    ExecutionOutcome,
    ExecutionStatus,
    ProcessExecutor,
    capture,
    run,
    run_with_stdin,
)
from .kubectl import Kubectl, PollRequest

__all__ = [
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
    "CommandExecutor",
    "CommandSpec",
    "ExecutionOutcome",
    "ExecutionStatus",
    "ProcessExecutor",
    "run",
    "run_with_stdin",
    "capture",
    # kubectl
    "Kubectl",
    "PollRequest",
]
