# SPDX-License-Identifier: MIT
"""
avdeploy
========

Deploys a built Android app to a physical device or an emulator: validates the
SDK, provisions an AVD when needed, resolves the target and launches the apk.

Usage
-----
>>> from avdeploy import build_pipeline, Sketch
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Re-export public API
# ---------------------------------------------------------------------------
from . import log as _log  # noqa: F401  (installs the package log handler)
from .avd import AndroidToolNotFound, BootTimeoutError
from .config import Preferences, Settings
from .errors import (
    BuildFailed,
    DeployError,
    EmulatorUnavailable,
    LaunchFailed,
    NoDevicesFound,
    NoTargetsFound,
    ProvisioningFailed,
    SdkUnavailable,
    ToolchainUnavailable,
    UserCancelled,
)
from .models import BuildArtifact, ComponentKind, Sketch, SystemImage, Target, TargetRequest
from .pipeline import DeploymentPipeline, build_pipeline

__all__: list[str] = [
    # entry points
    "DeploymentPipeline",
    "build_pipeline",
    # configuration
    "Settings",
    "Preferences",
    # models
    "BuildArtifact",
    "ComponentKind",
    "Sketch",
    "SystemImage",
    "Target",
    "TargetRequest",
    # exceptions
    "AndroidToolNotFound",
    "BootTimeoutError",
    "BuildFailed",
    "DeployError",
    "EmulatorUnavailable",
    "LaunchFailed",
    "NoDevicesFound",
    "NoTargetsFound",
    "ProvisioningFailed",
    "SdkUnavailable",
    "ToolchainUnavailable",
    "UserCancelled",
]

try:
    from importlib.metadata import PackageNotFoundError, version

    try:
        __version__: str = version(__name__)
    except PackageNotFoundError:  # running from a checkout
        __version__ = "0.0.0.dev0"
except Exception:  # pragma: no cover
    __version__ = "0.0.0.dev0"

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
