#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Command-line entrypoint for k8sctl.

Usage:
    k8sctl apply -f crds.yaml -f operator.yaml
    cat manifest.yaml | k8sctl apply -f -
    k8sctl wait --timeout 120 crd apis.dp.example.com
    k8sctl get pods -o wide
    k8sctl setup -f crds.yaml --wait-for crd --timeout 60 --run-id install-42
"""

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import Callable, Optional, Sequence

from k8sctl.core.config import load_config
from k8sctl.core.errors import K8sctlError, ValidationError
from k8sctl.core.kubectl import STDIN_SENTINEL, Kubectl
from k8sctl.core.schema import K8sctlConfig
from k8sctl.core.status import ReadinessReporter

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def apply(kubectl: Kubectl, files: Sequence[str]) -> None:
    """Apply manifests; a lone `-` reads the manifest from stdin."""
    if list(files) == [STDIN_SENTINEL]:
        kubectl.apply_from_stdin(sys.stdin.read())
    else:
        kubectl.apply_from_files(*files)
    logger.info("✅ Applied %s", ", ".join(files))


def wait(kubectl: Kubectl, timeout: int, resource_types: Sequence[str]) -> None:
    logger.info("⏳ Waiting up to %ds for: %s", timeout, ", ".join(resource_types))
    kubectl.wait_for_resource_types(timeout, *resource_types)
    logger.info("✅ Resources ready")


def reported(kubectl: Kubectl, reporter: ReadinessReporter, step: Callable[[], None]) -> None:
    """Run step with reporter receiving poll progress, then post the final event."""
    if reporter.enabled:
        kubectl.on_iteration = reporter
    try:
        step()
    except K8sctlError as e:
        reporter.finished(e)
        raise
    reporter.finished()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="k8sctl - apply Kubernetes manifests and wait for resources",
        epilog="Examples:\n  k8sctl apply -f crds.yaml\n  k8sctl wait --timeout 60 crd",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Settings file (default: $K8SCTL_CONFIG or ./k8sctl.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_files_arg(p, required=True):
        p.add_argument(
            "-f", "--filename", action="append", dest="files", required=required, default=None,
            help="Manifest file, URL or directory (repeatable, '-' for stdin)",
        )

    def add_timeout_arg(p):
        p.add_argument("--timeout", type=int, help="Readiness budget in seconds (default: wait_timeout setting)")

    apply_parser = subparsers.add_parser("apply", help="Apply manifests")
    add_files_arg(apply_parser)

    wait_parser = subparsers.add_parser("wait", help="Wait for resource types to be available")
    add_timeout_arg(wait_parser)
    wait_parser.add_argument("resource_types", nargs="*", help="Resource types (default: resource_types setting)")
    wait_parser.add_argument("--run-id", help="Identifier used for readiness reporting")

    get_parser = subparsers.add_parser("get", help="Print `kubectl get` output")
    get_parser.add_argument("resource_type")
    get_parser.add_argument("args", nargs=argparse.REMAINDER)

    setup_parser = subparsers.add_parser("setup", help="Apply manifests, then wait for resource types")
    add_files_arg(setup_parser)
    add_timeout_arg(setup_parser)
    setup_parser.add_argument("--wait-for", action="append", dest="resource_types", help="Resource type (repeatable)")
    setup_parser.add_argument("--run-id", help="Identifier used for readiness reporting")

    return parser


def dispatch(args: argparse.Namespace, config: K8sctlConfig, kubectl: Kubectl) -> None:
    timeout = getattr(args, "timeout", None)
    if timeout is None:
        timeout = config.wait_timeout
    resource_types = getattr(args, "resource_types", None) or config.resource_types

    if args.command == "apply":
        apply(kubectl, args.files)
    elif args.command == "get":
        sys.stdout.write(kubectl.get(args.resource_type, *args.args))
    elif args.command in ("wait", "setup"):
        if args.command == "wait" and not resource_types:
            raise ValidationError("No resource types given and none configured in resource_types")
        reporter = ReadinessReporter.from_config(config.reporting, run_id=args.run_id or uuid.uuid4().hex[:12])

        def step():
            if args.command == "setup":
                apply(kubectl, args.files)
            if resource_types:
                wait(kubectl, timeout, resource_types)

        reported(kubectl, reporter, step)


def main(argv: Optional[Sequence[str]] = None, kubectl: Optional[Kubectl] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args.config)
        if kubectl is None:
            kubectl = Kubectl.from_config(config)
        dispatch(args, config, kubectl)
    except K8sctlError as e:
        logger.error("❌ %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
