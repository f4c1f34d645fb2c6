# SPDX-License-Identifier: MIT
"""
Shared fixtures and fake collaborators.

Nothing here touches a real SDK or adb server: the SDK layout is a tree of
dummy files under ``tmp_path`` and every collaborator records its calls.
"""
from __future__ import annotations

import stat
from concurrent.futures import Future
from pathlib import Path
from typing import List, Optional

import pytest

from android_sdk_utils import AndroidSDK
from android_sdk_utils._android_sdk_utils import _windows_name
from avdeploy.config import Preferences, Settings
from avdeploy.errors import UserCancelled
from avdeploy.models import ComponentKind, SystemImage, Target


###############################################################################
# --- SDK layout ---------------------------------------------------------------
###############################################################################
def make_dummy_exe(dir_: Path, stem: str) -> Path:
    dir_.mkdir(parents=True, exist_ok=True)
    path = dir_ / _windows_name(stem)
    path.write_text("#!/bin/sh\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


def make_sdk(root: Path, *, api: int = 33, emulator: bool = True) -> Path:
    (root / "platforms" / f"android-{api}").mkdir(parents=True)
    (root / "platforms" / f"android-{api}" / "android.jar").write_bytes(b"PK")
    make_dummy_exe(root / "platform-tools", "adb")
    make_dummy_exe(root / "cmdline-tools" / "latest" / "bin", "avdmanager")
    make_dummy_exe(root / "cmdline-tools" / "latest" / "bin", "sdkmanager")
    if emulator:
        make_dummy_exe(root / "emulator", "emulator")
    return root


@pytest.fixture
def sdk_root(tmp_path) -> Path:
    return make_sdk(tmp_path / "sdk")


@pytest.fixture
def sdk(sdk_root) -> AndroidSDK:
    return AndroidSDK.from_root(sdk_root)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        preferences_file=tmp_path / "prefs.json",
        sdk_poll_interval=0.001,
        revalidate_retry_delay=0,
        device_timeout=0,
        boot_timeout=0,
        launch_timeout=5,
    )


@pytest.fixture
def preferences(settings) -> Preferences:
    return Preferences(settings.preferences_file)


###############################################################################
# --- fake collaborators ---------------------------------------------------------
###############################################################################
class FakeListener:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.busy = False
        self.status = ""

    def start_indeterminate(self) -> None:
        self.busy = True
        self.events.append(("start", ""))

    def stop_indeterminate(self) -> None:
        self.busy = False
        self.events.append(("stop", ""))

    def status_notice(self, text: str) -> None:
        self.status = text
        self.events.append(("notice", text))

    def status_error(self, text: str) -> None:
        self.status = text
        self.events.append(("error", text))

    def errors(self) -> list[str]:
        return [t for kind, t in self.events if kind == "error"]


class FakePrompts:
    """Answers confirmations in order from ``answers`` (default: yes)."""

    def __init__(self, answers: Optional[List[bool]] = None, directory: Optional[Path] = None):
        self.answers = list(answers or [])
        self.directory = directory
        self.confirms: list[str] = []
        self.messages: list[str] = []
        self.warnings: list[str] = []

    def confirm(self, title: str, body: str) -> bool:
        self.confirms.append(title)
        return self.answers.pop(0) if self.answers else True

    def show_message(self, title: str, body: str) -> None:
        self.messages.append(title)

    def show_warning(self, title: str, body: str, exc: Optional[BaseException] = None) -> None:
        self.warnings.append(title)

    def choose_directory(self, title: str) -> Optional[Path]:
        return self.directory


class FakeDevices:
    def __init__(
        self,
        *,
        emulator: bool = True,
        images: Optional[List[SystemImage]] = None,
        avds: Optional[List[str]] = None,
        attached: Optional[List[Target]] = None,
        emulator_download_ok: bool = True,
        image_download_ok: bool = True,
        create_ok: bool = True,
    ) -> None:
        self.emulator = emulator
        self.images = list(images or [])
        self.avds = set(avds or [])
        self.attached = list(attached or [])
        self.emulator_download_ok = emulator_download_ok
        self.image_download_ok = image_download_ok
        self.create_ok = create_ok
        self.ports: dict[str, int] = {}
        self.sdk = None
        self.calls: list[str] = []

    def set_sdk(self, sdk) -> None:
        self.sdk = sdk

    def emulator_installed(self) -> bool:
        return self.emulator

    def install_emulator(self) -> bool:
        self.calls.append("install_emulator")
        self.emulator = self.emulator_download_ok
        return self.emulator_download_ok

    def list_images(self) -> List[SystemImage]:
        return list(self.images)

    def install_default_image(self) -> Optional[str]:
        self.calls.append("install_default_image")
        if not self.image_download_ok:
            return None
        image = SystemImage("android-33", "google_apis", "x86_64")
        self.images.append(image)
        return image.package_id

    def avd_exists(self, name: str) -> bool:
        return name in self.avds

    def create_avd(self, name: str, profile: str, image_id: str) -> bool:
        self.calls.append(f"create_avd:{name}:{profile}:{image_id}")
        if self.create_ok:
            self.avds.add(name)
        return self.create_ok

    def list_attached_devices(self, wearable_only: bool = False) -> List[Target]:
        return [t for t in self.attached if t.is_wear == wearable_only]

    def resolve_emulator(self, is_wear: bool, avd_name: str) -> "Future[Target]":
        self.calls.append(f"resolve_emulator:{avd_name}")
        fut: Future[Target] = Future()
        fut.set_result(Target(serial=f"emulator-{self.ports[avd_name]}", is_emulator=True))
        return fut

    def resolve_hardware(self, is_wear: bool = False) -> "Future[Target]":
        self.calls.append("resolve_hardware")
        fut: Future[Target] = Future()
        fut.set_result(self.list_attached_devices(is_wear)[0])
        return fut

    def get_port(self, avd_name: str) -> Optional[int]:
        return self.ports.get(avd_name)

    def reserve_port(self, avd_name: str) -> int:
        self.calls.append(f"reserve_port:{avd_name}")
        return self.ports.setdefault(avd_name, 5554 + 2 * len(self.ports))


class FakeBuilder:
    def __init__(self, apk: Optional[Path], component: ComponentKind = ComponentKind.APP):
        self.apk = apk
        self.component = component
        self.package_name = "avdeploy.sketch.demo"
        self.configurations: list[str] = []

    def build(self, configuration: str) -> Optional[Path]:
        self.configurations.append(configuration)
        return self.apk

    def component_kind(self) -> ComponentKind:
        return self.component

    def is_wear(self) -> bool:
        return self.component is ComponentKind.WATCHFACE


class FakeToolchain:
    """Scripted toolchain; ``interactive`` may be an SDK or an exception."""

    def __init__(self, *, loaded=None, interactive=None, revalidate=None) -> None:
        self.loaded = loaded
        self.interactive = interactive
        self.revalidate_result = revalidate
        self.load_calls = 0
        self.locate_calls = 0
        self.revalidate_calls = 0

    def load_non_interactive(self):
        self.load_calls += 1
        return self.loaded

    def locate_interactive(self, ui_context=None):
        self.locate_calls += 1
        if isinstance(self.interactive, BaseException):
            raise self.interactive
        if self.interactive is None:
            raise UserCancelled("no folder chosen")
        return self.interactive

    def revalidate(self, root):
        self.revalidate_calls += 1
        result = self.revalidate_result
        if isinstance(result, list):
            result = result.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeRunner:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.launched: list[Target] = []
        self.closed = 0

    def launch(self, target, component, is_emulator) -> bool:
        self.launched.append(target.result(timeout=5))
        return self.ok

    def close(self) -> None:
        self.closed += 1
