# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Readiness events posted to the status API."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ReadinessPhase(str, Enum):
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class ReadinessEvent(BaseModel):
    """Body of POST /api/readiness/{run_id}/events.

    `pending` and `ready` partition the polled resource types as observed
    in `iteration`. Terminal events repeat the last observed iteration.
    """

    run_id: str
    phase: ReadinessPhase
    observed_at: datetime
    iteration: int | None = Field(default=None, ge=1)
    max_iterations: int | None = Field(default=None, ge=0)
    pending: list[str] = Field(default_factory=list)
    ready: list[str] = Field(default_factory=list)
    detail: str | None = None
