# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
API contract between k8sctl (readiness reporter) and the status API.

Only depends on pydantic.

Usage:
    from k8sctl.contract import ReadinessEvent, ReadinessPhase
"""

from k8sctl.contract.events import ReadinessEvent, ReadinessPhase

__all__ = [
    "ReadinessEvent",
    "ReadinessPhase",
]
