# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Tests for readiness progress reporting."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from k8sctl.contract import ReadinessEvent, ReadinessPhase
from k8sctl.core.errors import ExecutionFailure, ReadinessTimeout
from k8sctl.core.executor import CommandSpec, ExecutionOutcome, ExecutionStatus
from k8sctl.core.kubectl import Kubectl, PollProgress
from k8sctl.core.schema import ReportingConfig, ReportingStatusConfig
from k8sctl.core.status import ReadinessReporter


class CountdownExecutor:
    """`get` for each resource type fails until its countdown reaches zero."""

    def __init__(self, countdown):
        self.countdown = dict(countdown)

    def execute(self, spec, *, relay_stderr=True, stdin=None, relay_stdout=True):
        resource_type = spec.args[-1]
        remaining = self.countdown.get(resource_type, 0)
        if remaining > 0:
            self.countdown[resource_type] = remaining - 1
            return ExecutionOutcome(spec=spec, status=ExecutionStatus.EXIT_ERROR, error=ExecutionFailure(spec, 1))
        return ExecutionOutcome(spec=spec, status=ExecutionStatus.SUCCESS)


@pytest.fixture
def session():
    session = MagicMock()
    session.post.return_value = MagicMock(raise_for_status=MagicMock(return_value=None))
    return session


def posted(session):
    return [c.kwargs["json"] for c in session.post.call_args_list]


# ============================================================================
# Endpoint configuration Tests
# ============================================================================


class TestReportingUrls:
    def test_single_endpoint(self):
        assert ReportingStatusConfig(endpoint="https://a.com").urls() == ("https://a.com",)

    def test_merges_strips_and_deduplicates(self):
        status = ReportingStatusConfig(endpoint="https://a.com/", endpoints=["https://a.com", "https://b.com/"])
        assert status.urls() == ("https://a.com", "https://b.com")

    def test_empty(self):
        assert ReportingStatusConfig().urls() == ()


class TestFromConfig:
    def test_enabled_with_endpoint(self):
        reporting = ReportingConfig(status=ReportingStatusConfig(endpoint="https://status.example.com"))

        reporter = ReadinessReporter.from_config(reporting, run_id="install-42")

        assert reporter.enabled is True
        assert reporter.endpoints == ("https://status.example.com",)

    @pytest.mark.parametrize("reporting", [None, ReportingConfig(status=None)])
    def test_disabled_without_status(self, reporting):
        assert ReadinessReporter.from_config(reporting, run_id="install-42").enabled is False


# ============================================================================
# Poll-driven reporting Tests
# ============================================================================


class TestPollDrivenReporting:
    def test_one_event_per_iteration_with_pending_types(self, session):
        reporter = ReadinessReporter("install-42", ("https://status.example.com",), session=session)
        kubectl = Kubectl(executor=CountdownExecutor({"crd": 2}), sleep=lambda _: None, on_iteration=reporter)

        kubectl.wait_for_resource_types(5, "crd", "apis")
        reporter.finished()

        events = posted(session)
        assert [e["phase"] for e in events] == ["polling", "polling", "polling", "ready"]
        assert [e["iteration"] for e in events] == [1, 2, 3, 3]
        assert events[0]["pending"] == ["crd"]
        assert events[0]["ready"] == ["apis"]
        assert events[2]["pending"] == []
        assert all(e["max_iterations"] == 5 for e in events)
        assert session.post.call_args.args[0] == "https://status.example.com/api/readiness/install-42/events"

    def test_timeout_reports_last_pending(self, session):
        reporter = ReadinessReporter("install-42", ("https://status.example.com",), session=session)
        kubectl = Kubectl(executor=CountdownExecutor({"apis": 10}), sleep=lambda _: None, on_iteration=reporter)

        with pytest.raises(ReadinessTimeout) as exc_info:
            kubectl.wait_for_resource_types(2, "crd", "apis")
        reporter.finished(exc_info.value)

        final = posted(session)[-1]
        assert final["phase"] == "timed_out"
        assert final["iteration"] == 2
        assert final["pending"] == ["apis"]
        assert "apis" in final["detail"]

    def test_zero_budget_reports_no_iterations(self, session):
        reporter = ReadinessReporter("install-42", ("https://status.example.com",), session=session)
        kubectl = Kubectl(executor=CountdownExecutor({}), sleep=lambda _: None, on_iteration=reporter)

        with pytest.raises(ReadinessTimeout) as exc_info:
            kubectl.wait_for_resource_types(0, "crd")
        reporter.finished(exc_info.value)

        events = posted(session)
        assert len(events) == 1
        assert events[0]["phase"] == "timed_out"
        assert "iteration" not in events[0]

    def test_other_error_reports_failed(self, session):
        reporter = ReadinessReporter("install-42", ("https://status.example.com",), session=session)

        reporter.finished(ExecutionFailure(CommandSpec.of("kubectl", "apply"), 1))

        assert posted(session)[0]["phase"] == "failed"

    def test_remembers_last_progress(self, session):
        reporter = ReadinessReporter("install-42", ("https://status.example.com",), session=session)
        progress = PollProgress(1, 3, ("crd",), ("crd",))

        reporter(progress)

        assert reporter.last_progress is progress


# ============================================================================
# Delivery Tests
# ============================================================================


class TestDelivery:
    def test_disabled_reporter_posts_nothing(self, session):
        reporter = ReadinessReporter("install-42", (), session=session)

        reporter(PollProgress(1, 3, ("crd",), ()))

        assert reporter.finished() == 0
        session.post.assert_not_called()

    def test_unreachable_endpoint_does_not_block_others(self, session):
        session.post.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            MagicMock(raise_for_status=MagicMock(return_value=None)),
        ]
        reporter = ReadinessReporter("install-42", ("https://a.com", "https://b.com"), session=session)

        assert reporter.finished() == 1
        assert session.post.call_count == 2

    def test_http_error_is_not_delivered(self, session):
        session.post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        reporter = ReadinessReporter("install-42", ("https://a.com",), session=session)

        assert reporter.finished() == 0

    def test_creates_session_lazily(self):
        reporter = ReadinessReporter("install-42", ("https://a.com",))

        with patch("k8sctl.core.status.requests.Session") as session_cls:
            reporter.finished()
            reporter.finished()

        session_cls.assert_called_once()
        assert session_cls.return_value.post.call_count == 2


class TestReadinessEvent:
    def test_json_dump_serialises_phase_and_timestamp(self, session):
        reporter = ReadinessReporter("install-42", ("https://a.com",), session=session)

        event = reporter.build_event(ReadinessPhase.READY)
        body = event.model_dump(mode="json", exclude_none=True)

        assert isinstance(event, ReadinessEvent)
        assert body["phase"] == "ready"
        assert isinstance(body["observed_at"], str)
        assert body["pending"] == []
        assert "detail" not in body
