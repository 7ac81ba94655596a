# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Readiness progress reporting to external status endpoints.

ReadinessReporter plugs into Kubectl.on_iteration and posts one event per
poll iteration, listing which resource types are still pending. A final
event records how the wait ended. Delivery is best effort: unreachable
endpoints are logged and skipped, never raised.

Configuration (in k8sctl.yaml):
    reporting:
      status:
        endpoint: "https://status.example.com"

Usage:
    reporter = ReadinessReporter.from_config(config.reporting, run_id="install-42")
    kubectl.on_iteration = reporter
    try:
        kubectl.wait_for_resource_types(60, "crd")
    except K8sctlError as e:
        reporter.finished(e)
        raise
    reporter.finished()
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import requests

from k8sctl.contract import ReadinessEvent, ReadinessPhase

from .errors import ReadinessTimeout

if TYPE_CHECKING:
    from .kubectl import PollProgress
    from .schema import ReportingConfig

logger = logging.getLogger(__name__)


class ReadinessReporter:
    """Posts readiness events for one run to every configured endpoint.

    Args:
        run_id: Identifier of this run on the status API
        endpoints: Base URLs of the status API
        timeout: Per-request timeout in seconds
        session: requests session to post with (one is created if omitted)
    """

    def __init__(
        self,
        run_id: str,
        endpoints: tuple[str, ...] = (),
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.run_id = run_id
        self.endpoints = endpoints
        self.timeout = timeout
        self._session = session
        self._last: Optional["PollProgress"] = None

    @classmethod
    def from_config(cls, reporting: "ReportingConfig | None", run_id: str, **kwargs) -> "ReadinessReporter":
        status = reporting.status if reporting else None
        endpoints = status.urls() if status else ()
        if endpoints:
            logger.info("Readiness reporting enabled for run %s: %s", run_id, ", ".join(endpoints))
        return cls(run_id, endpoints, **kwargs)

    @property
    def enabled(self) -> bool:
        return bool(self.endpoints)

    @property
    def last_progress(self) -> Optional["PollProgress"]:
        return self._last

    def __call__(self, progress: "PollProgress") -> None:
        self._last = progress
        self.publish(ReadinessPhase.POLLING)

    def finished(self, error: Optional[BaseException] = None) -> int:
        """Post the terminal event for the run.

        A ReadinessTimeout maps to TIMED_OUT, any other error to FAILED.
        """
        if error is None:
            phase = ReadinessPhase.READY
        elif isinstance(error, ReadinessTimeout):
            phase = ReadinessPhase.TIMED_OUT
        else:
            phase = ReadinessPhase.FAILED
        return self.publish(phase, detail=str(error) if error is not None else None)

    def build_event(self, phase: ReadinessPhase, detail: Optional[str] = None) -> ReadinessEvent:
        progress = self._last
        return ReadinessEvent(
            run_id=self.run_id,
            phase=phase,
            observed_at=datetime.now(timezone.utc),
            iteration=progress.iteration if progress else None,
            max_iterations=progress.max_iterations if progress else None,
            pending=list(progress.pending) if progress else [],
            ready=list(progress.ready) if progress else [],
            detail=detail,
        )

    def publish(self, phase: ReadinessPhase, detail: Optional[str] = None) -> int:
        """Post an event built from the last progress. Returns the number of endpoints that accepted it."""
        if not self.enabled:
            return 0

        body = self.build_event(phase, detail).model_dump(mode="json", exclude_none=True)
        if self._session is None:
            self._session = requests.Session()

        delivered = 0
        for endpoint in self.endpoints:
            url = f"{endpoint}/api/readiness/{self.run_id}/events"
            try:
                self._session.post(url, json=body, timeout=self.timeout).raise_for_status()
            except requests.RequestException as e:
                logger.debug("Readiness event %s to %s dropped: %s", phase.value, endpoint, e)
                continue
            delivered += 1
        return delivered
