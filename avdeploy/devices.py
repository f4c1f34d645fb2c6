# SPDX-License-Identifier: MIT
"""
Device management and target resolution.

* Depends on **`adbutils`** for all ADB interactions
* :class:`AndroidDevices` is the concrete device-management collaborator
* :class:`TargetResolver` turns a :class:`~avdeploy.models.TargetRequest` into
  a ``Future`` that yields a connected :class:`~avdeploy.models.Target`
"""
from __future__ import annotations

import contextlib
import logging
import socket
import subprocess
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Iterator, List, Optional, Type

import adbutils

from android_sdk_utils import AndroidSDK

from .avd import AvdManager, BootTimeoutError
from .config import Settings
from .errors import (
    DeployError,
    NoTargetsFound,
    ProvisioningFailed,
    SdkUnavailable,
    ToolchainUnavailable,
)
from .interfaces import DeviceManagement
from .models import SystemImage, Target, TargetKind, TargetRequest

logger = logging.getLogger(__name__)

FIRST_EMULATOR_PORT = 5554
LAST_EMULATOR_PORT = 5682


def _adb_client() -> adbutils.AdbClient:
    return adbutils.AdbClient(host="127.0.0.1", port=5037)


def _port_free(port: int) -> bool:
    """An emulator needs its console port and the adb port right after it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as console, socket.socket(
        socket.AF_INET, socket.SOCK_STREAM
    ) as bridge:
        try:
            console.bind(("127.0.0.1", port))
            bridge.bind(("127.0.0.1", port + 1))
        except OSError:
            return False
    return True


class PortRegistry:
    """AVD name -> emulator console port. Reservation is check-then-set under a lock."""

    def __init__(self, probe: Callable[[int], bool] = _port_free) -> None:
        self._probe = probe
        self._ports: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, avd_name: str) -> Optional[int]:
        with self._lock:
            return self._ports.get(avd_name)

    def reserve(self, avd_name: str) -> int:
        with self._lock:
            if avd_name in self._ports:
                return self._ports[avd_name]
            used = set(self._ports.values())
            for port in range(FIRST_EMULATOR_PORT, LAST_EMULATOR_PORT + 1, 2):
                if port in used or not self._probe(port):
                    continue
                self._ports[avd_name] = port
                logger.debug("Reserved port %d for %s", port, avd_name)
                return port
        raise RuntimeError("No available emulator ports")


@contextlib.contextmanager
def _tool_errors(
    what: str, error: Type[DeployError] = ToolchainUnavailable
) -> Iterator[None]:
    """Re-raise a failure to run an SDK tool as a :class:`DeployError`."""
    try:
        yield
    except (OSError, subprocess.SubprocessError) as exc:
        logger.error("%s failed: %s", what, exc)
        raise error(f"{what} failed: {exc}", phase="provision") from exc


def _online(client: adbutils.AdbClient, serial: str) -> bool:
    return any(info.serial == serial and info.state == "device" for info in client.list())


def wait_boot_completed(
    client: adbutils.AdbClient, serial: str, *, timeout: float = 180, poll: float = 5
) -> None:
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            if _online(client, serial):
                dev = client.device(serial)
                if dev.shell(["getprop", "sys.boot_completed"]).strip() == "1":
                    logger.info("Boot completed for %s", serial)
                    return
        except adbutils.AdbError as exc:
            logger.debug("%s not ready yet: %s", serial, exc)
        time.sleep(poll)

    raise BootTimeoutError(f"{serial} failed to boot within {timeout}s")


def _describe(client: adbutils.AdbClient, serial: str) -> Target:
    dev = client.device(serial)
    characteristics = dev.getprop("ro.build.characteristics") or ""
    return Target(
        serial=serial,
        model=dev.getprop("ro.product.model") or "",
        is_emulator=serial.startswith("emulator-"),
        is_wear="watch" in characteristics,
        device=dev,
    )


class AndroidDevices:
    """Device-management collaborator over the SDK tools and the adb server."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client_factory: Callable[[], adbutils.AdbClient] = _adb_client,
        ports: Optional[PortRegistry] = None,
        max_workers: int = 2,
    ) -> None:
        self.settings = settings or Settings()
        self._client_factory = client_factory
        self.ports = ports or PortRegistry()
        self._sdk: Optional[AndroidSDK] = None
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="avdeploy-target"
        )

    def set_sdk(self, sdk: Optional[AndroidSDK]) -> None:
        self._sdk = sdk

    def _avds(self) -> AvdManager:
        if self._sdk is None:
            raise SdkUnavailable("No Android SDK has been loaded")
        return AvdManager(self._sdk)

    # ---------------------------------------------------------------- provisioning
    def emulator_installed(self) -> bool:
        with _tool_errors("Looking up the emulator"):
            return self._avds().sdk.emulator_path() is not None

    def install_emulator(self) -> bool:
        with _tool_errors("sdkmanager --install emulator"):
            return self._avds().install_package("emulator")

    def list_images(self) -> List[SystemImage]:
        with _tool_errors("sdkmanager --list_installed"):
            return self._avds().list_images()

    def install_default_image(self) -> Optional[str]:
        image_id = self.settings.default_image_id
        with _tool_errors(f"sdkmanager --install {image_id}"):
            return image_id if self._avds().install_package(image_id) else None

    def avd_exists(self, name: str) -> bool:
        if not name:
            return False
        with _tool_errors("avdmanager list avd"):
            return self._avds().get_by_name(name) is not None

    def create_avd(self, name: str, profile: str, image_id: str) -> bool:
        try:
            with _tool_errors(f"avdmanager create avd {name}", ProvisioningFailed):
                self._avds().create(name=name, package=image_id, device=profile, force=True)
        except (RuntimeError, ValueError) as exc:
            logger.error("Cannot create AVD %s: %s", name, exc)
            return False
        logger.info("Created AVD %s (%s, %s)", name, profile, image_id)
        return True

    # ---------------------------------------------------------------- ports
    def get_port(self, avd_name: str) -> Optional[int]:
        return self.ports.get(avd_name)

    def reserve_port(self, avd_name: str) -> int:
        return self.ports.reserve(avd_name)

    # ---------------------------------------------------------------- targets
    def list_attached_devices(self, wearable_only: bool = False) -> List[Target]:
        client = self._client_factory()
        found: List[Target] = []
        try:
            for info in client.list():
                if info.state != "device" or info.serial.startswith("emulator-"):
                    continue
                target = _describe(client, info.serial)
                if target.is_wear == wearable_only:
                    found.append(target)
        except adbutils.AdbError as exc:
            logger.warning("Cannot list attached devices: %s", exc)
        return found

    def resolve_hardware(self, is_wear: bool = False) -> "Future[Target]":
        return self._executor.submit(self._await_hardware, is_wear)

    def resolve_emulator(self, is_wear: bool, avd_name: str) -> "Future[Target]":
        return self._executor.submit(self._boot_emulator, avd_name, is_wear)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _await_hardware(self, is_wear: bool) -> Target:
        deadline = time.time() + self.settings.device_timeout
        while True:
            attached = self.list_attached_devices(is_wear)
            if attached:
                logger.info("Using device %s (%s)", attached[0].serial, attached[0].model)
                return attached[0]
            if time.time() >= deadline:
                raise NoTargetsFound("No device became available", phase="resolve")
            time.sleep(1)

    def _boot_emulator(self, avd_name: str, is_wear: bool) -> Target:
        port = self.ports.reserve(avd_name)
        serial = f"emulator-{port}"
        client = self._client_factory()
        if not _online(client, serial):
            self._avds().start(avd_name, port=port)
        wait_boot_completed(client, serial, timeout=self.settings.boot_timeout)
        target = _describe(client, serial)
        if target.is_wear != is_wear:
            logger.warning("%s wear flag is %s, expected %s", avd_name, target.is_wear, is_wear)
        return target


class TargetResolver:
    """Hands out asynchronous target handles; never installs or launches."""

    def __init__(self, devices: DeviceManagement) -> None:
        self.devices = devices

    def set_sdk(self, sdk: Optional[AndroidSDK]) -> None:
        self.devices.set_sdk(sdk)

    def list_attached(self, wearable_only: bool = False) -> List[Target]:
        return list(self.devices.list_attached_devices(wearable_only))

    def resolve(self, request: TargetRequest) -> "Future[Target]":
        if request.kind is TargetKind.DEVICE:
            if not self.list_attached(request.wear):
                raise NoTargetsFound("No attached devices", phase="resolve")
            return self.devices.resolve_hardware(request.wear)

        if self.devices.get_port(request.avd_name) is None:
            self.devices.reserve_port(request.avd_name)
        return self.devices.resolve_emulator(request.wear, request.avd_name)
