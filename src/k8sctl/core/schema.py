# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Pydantic models for the k8sctl.yaml settings file.

Example:
    kubectl: /usr/local/bin/kubectl
    wait_timeout: 120
    resource_types:
      - crd
      - apis.dp.example.com
    reporting:
      status:
        endpoint: "https://status.example.com"
"""

from pydantic import BaseModel, ConfigDict, Field


class ReportingStatusConfig(BaseModel):
    """Status API endpoint(s) that receive readiness events."""

    model_config = ConfigDict(extra="forbid")

    endpoint: str | None = None
    endpoints: list[str] | None = None

    def urls(self) -> tuple[str, ...]:
        """Configured endpoints in order, without trailing slashes or repeats."""
        candidates = [self.endpoint, *(self.endpoints or [])]
        return tuple(dict.fromkeys(url.rstrip("/") for url in candidates if url))


class ReportingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: ReportingStatusConfig | None = None


class K8sctlConfig(BaseModel):
    """Validated k8sctl settings.

    Attributes:
        kubectl: kubectl binary name or path
        wait_timeout: Default readiness budget in seconds
        resource_types: Default resource types polled by `wait` and `setup`
        reporting: Optional status reporting configuration
    """

    model_config = ConfigDict(extra="forbid")

    kubectl: str = "kubectl"
    wait_timeout: int = Field(default=60, ge=0)
    resource_types: list[str] = Field(default_factory=list)
    reporting: ReportingConfig | None = None
