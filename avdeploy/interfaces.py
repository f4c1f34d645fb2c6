# SPDX-License-Identifier: MIT
"""
Collaborator protocols.

The orchestrator only talks to the outside world through these. Concrete
adapters live in :mod:`avdeploy.devices`, :mod:`avdeploy.sdk` and
:mod:`avdeploy.console`; tests substitute fakes.
"""
from __future__ import annotations

from concurrent.futures import Future
from pathlib import Path
from typing import Optional, Protocol, Sequence, runtime_checkable

from android_sdk_utils import AndroidSDK

from .models import ComponentKind, SystemImage, Target


@runtime_checkable
class Listener(Protocol):
    """Progress and status sink (the editor's status bar)."""

    def start_indeterminate(self) -> None: ...

    def stop_indeterminate(self) -> None: ...

    def status_notice(self, text: str) -> None: ...

    def status_error(self, text: str) -> None: ...


@runtime_checkable
class Prompts(Protocol):
    """User interaction: confirmations, advisories and folder selection."""

    def confirm(self, title: str, body: str) -> bool: ...

    def show_message(self, title: str, body: str) -> None: ...

    def show_warning(self, title: str, body: str, exc: Optional[BaseException] = None) -> None: ...

    def choose_directory(self, title: str) -> Optional[Path]: ...


@runtime_checkable
class Builder(Protocol):
    """Produces an installable artifact for one sketch."""

    package_name: str

    def build(self, configuration: str) -> Optional[Path]: ...

    def component_kind(self) -> ComponentKind: ...

    def is_wear(self) -> bool: ...


@runtime_checkable
class Toolchain(Protocol):
    """Finds, loads and re-validates the SDK."""

    def load_non_interactive(self) -> Optional[AndroidSDK]: ...

    def locate_interactive(self, ui_context: object = None) -> AndroidSDK: ...

    def revalidate(self, root: Path) -> AndroidSDK: ...


@runtime_checkable
class DeviceManagement(Protocol):
    """Emulator tooling plus attached-device enumeration and resolution."""

    def set_sdk(self, sdk: Optional[AndroidSDK]) -> None: ...

    def emulator_installed(self) -> bool: ...

    def install_emulator(self) -> bool: ...

    def list_images(self) -> Sequence[SystemImage]: ...

    def install_default_image(self) -> Optional[str]: ...

    def avd_exists(self, name: str) -> bool: ...

    def create_avd(self, name: str, profile: str, image_id: str) -> bool: ...

    def list_attached_devices(self, wearable_only: bool) -> Sequence[Target]: ...

    def resolve_emulator(self, is_wear: bool, avd_name: str) -> "Future[Target]": ...

    def resolve_hardware(self, is_wear: bool = False) -> "Future[Target]": ...

    def get_port(self, avd_name: str) -> Optional[int]: ...

    def reserve_port(self, avd_name: str) -> int: ...
