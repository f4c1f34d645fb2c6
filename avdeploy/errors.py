# SPDX-License-Identifier: MIT
"""
Error taxonomy for a deployment attempt.

:class:`DeploymentPipeline` is the only place that turns these into
user-visible output. ``UserCancelled`` unwinds silently; every other kind ends
in one status error and, when ``advisory`` is set, one warning dialog.
"""
from __future__ import annotations

from typing import Optional


class DeployError(Exception):
    """Base class for everything that ends a deployment attempt."""

    title = "Deployment failed"
    advisory = True

    def __init__(
        self, message: str, *, phase: Optional[str] = None, detail: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.phase = phase
        self.detail = detail

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def describe(self) -> str:
        """Advisory body: the detail (or message) plus the chained cause."""
        body = self.detail or self.message
        cause = self.__cause__
        if cause is not None and str(cause) and str(cause) not in body:
            return f"{body}\n\n{cause}"
        return body


class UserCancelled(DeployError):
    """The user declined a prompt or cancelled a download."""

    title = "Cancelled"
    advisory = False


class ToolchainUnavailable(DeployError):
    title = "Android toolchain unavailable"


class SdkUnavailable(ToolchainUnavailable):
    title = "Cannot load the Android SDK"
    # The acquisition guard already showed its warning for this round.
    advisory = False


class EmulatorUnavailable(ToolchainUnavailable):
    title = "Emulator unavailable"


class ProvisioningFailed(DeployError):
    title = "Cannot create the emulator"


class NoTargetsFound(DeployError):
    title = "No devices found"


NoDevicesFound = NoTargetsFound


class BuildFailed(DeployError):
    title = "Build failed"


class LaunchFailed(DeployError):
    title = "Launch failed"
