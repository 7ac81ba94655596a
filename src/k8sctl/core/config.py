# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Settings loading for k8sctl.

Lookup order for the settings file:
1. Explicit path passed to load_config()
2. K8SCTL_CONFIG environment variable
3. ./k8sctl.yaml
Built-in defaults are used when none of these exist.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import pydantic
import yaml

from .errors import ValidationError
from .schema import K8sctlConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "K8SCTL_CONFIG"
DEFAULT_CONFIG_NAME = "k8sctl.yaml"


def find_config_path(path: Optional[Path] = None) -> Optional[Path]:
    """Resolve the settings file to use, or None for defaults.

    An explicitly requested file (argument or environment) must exist.
    """
    if path is not None:
        if not path.exists():
            raise ValidationError(f"Config not found: {path}")
        return path

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        if not candidate.exists():
            raise ValidationError(f"Config not found: {candidate} (from {CONFIG_ENV_VAR})")
        return candidate

    candidate = Path.cwd() / DEFAULT_CONFIG_NAME
    return candidate if candidate.exists() else None


def load_config(path: Optional[Path] = None) -> K8sctlConfig:
    """Load and validate k8sctl settings.

    Args:
        path: Optional explicit settings file

    Returns:
        Validated K8sctlConfig

    Raises:
        ValidationError: File missing, not valid YAML, or fails validation
    """
    config_path = find_config_path(path)
    if config_path is None:
        logger.debug("No settings file found, using defaults")
        return K8sctlConfig()

    logger.debug("Loading settings from %s", config_path)
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ValidationError(f"Expected a mapping in {config_path}, got {type(raw).__name__}")

    try:
        return K8sctlConfig.model_validate(raw)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid settings in {config_path}:\n{e}") from e


def get_setting(key: str, default: Any = None, path: Optional[Path] = None) -> Any:
    """Get a single top-level setting, falling back to default when unset."""
    value = getattr(load_config(path), key, None)
    return default if value is None else value
