# SPDX-License-Identifier: MIT
"""
Launch sessions.

:class:`SessionController` keeps at most one :class:`LaunchSession` alive. The
runner that does the work (:class:`AdbRunner` by default) waits on the target
future, installs the apk through ``adbutils`` and starts it.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import adbutils

from .config import Settings
from .errors import DeployError
from .interfaces import Listener
from .messages import MessageCatalog
from .models import BuildArtifact, ComponentKind, Target

logger = logging.getLogger(__name__)

LIVE_WALLPAPER_CHOOSER = "android.service.wallpaper.LIVE_WALLPAPER_CHOOSER"


class Runner(Protocol):
    def launch(
        self, target: "concurrent.futures.Future[Target]", component: ComponentKind, is_emulator: bool
    ) -> bool: ...

    def close(self) -> None: ...


class AdbRunner:
    def __init__(
        self,
        artifact: BuildArtifact,
        listener: Listener,
        *,
        timeout: Optional[float] = None,
        messages: Optional[MessageCatalog] = None,
    ) -> None:
        self.artifact = artifact
        self.listener = listener
        self.timeout = timeout
        self.messages = messages or MessageCatalog()
        self.target: Optional[Target] = None
        self._pending: Optional["concurrent.futures.Future[Target]"] = None
        self._closed = threading.Event()

    def launch(
        self, target: "concurrent.futures.Future[Target]", component: ComponentKind, is_emulator: bool
    ) -> bool:
        text = self.messages.text
        self._pending = target
        self.listener.status_notice(text("status.waiting_device"))
        try:
            resolved = target.result(timeout=self.timeout)
        except concurrent.futures.CancelledError:
            logger.info("Launch of %s cancelled", self.artifact.package_name)
            if not self._closed.is_set():
                self.listener.stop_indeterminate()
            return False
        except (
            concurrent.futures.TimeoutError,
            DeployError,
            adbutils.AdbError,
            OSError,
            RuntimeError,
        ) as exc:
            return self._fail(exc)
        finally:
            self._pending = None

        if self._superseded(resolved):
            return False
        self.target = resolved
        self.listener.status_notice(text("status.installing", self.artifact.apk.name))
        try:
            resolved.device.install(str(self.artifact.apk), nolaunch=True)
            if self._superseded(resolved):
                return False
            self._start(resolved.device, component)
        except adbutils.AdbError as exc:
            return self._fail(exc)

        if self._superseded(resolved):
            return False
        self.listener.stop_indeterminate()
        self.listener.status_notice(
            text("status.launched_emulator" if is_emulator else "status.launched_device")
        )
        logger.info("Launched %s on %s", self.artifact.package_name, resolved.serial)
        return True

    def close(self) -> None:
        self._closed.set()
        if self._pending is not None:
            self._pending.cancel()
        if self.target is None:
            return
        try:
            self.target.device.app_stop(self.artifact.package_name)
        except adbutils.AdbError as exc:
            logger.warning("Cannot stop %s: %s", self.artifact.package_name, exc)
        self.target = None

    def _start(self, device: adbutils.AdbDevice, component: ComponentKind) -> None:
        if component is ComponentKind.APP:
            device.app_start(self.artifact.package_name, self.artifact.main_activity)
        elif component is ComponentKind.WALLPAPER:
            device.shell(["am", "start", "-a", LIVE_WALLPAPER_CHOOSER])
        # Watch faces are picked by the user on the watch itself.

    def _superseded(self, resolved: Target) -> bool:
        # close() may run while this thread is still waiting on the target
        if not self._closed.is_set():
            return False
        logger.info(
            "Session for %s closed; not launching on %s", self.artifact.package_name, resolved.serial
        )
        return True

    def _fail(self, exc: BaseException) -> bool:
        if self._closed.is_set():
            logger.info("Launch of %s ended after close: %s", self.artifact.package_name, exc)
            return False
        logger.error("Launch of %s failed: %s", self.artifact.package_name, exc)
        self.listener.stop_indeterminate()
        self.listener.status_error(self.messages.text("status.launch_failed", exc))
        return False


@dataclass
class LaunchSession:
    artifact: BuildArtifact
    component: ComponentKind
    is_emulator: bool
    runner: Runner


RunnerFactory = Callable[[BuildArtifact, Listener], Runner]


class SessionController:
    def __init__(
        self,
        listener: Listener,
        runner_factory: Optional[RunnerFactory] = None,
        *,
        settings: Optional[Settings] = None,
        messages: Optional[MessageCatalog] = None,
    ) -> None:
        self.listener = listener
        self.settings = settings or Settings()
        self.messages = messages or MessageCatalog()
        self._runner_factory = runner_factory or self._adb_runner
        self._session: Optional[LaunchSession] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> Optional[LaunchSession]:
        return self._session

    def launch(
        self,
        target_handle: "concurrent.futures.Future[Target]",
        artifact: BuildArtifact,
        component_kind: ComponentKind,
        is_emulator: bool,
    ) -> bool:
        """Replace any running session and block until the new launch settles."""
        with self._lock:
            self._teardown()
            runner = self._runner_factory(artifact, self.listener)
            self._session = LaunchSession(artifact, component_kind, is_emulator, runner)
        return runner.launch(target_handle, component_kind, is_emulator)

    def stop(self) -> None:
        self.listener.status_notice("")
        self.listener.stop_indeterminate()
        with self._lock:
            self._teardown()

    def _teardown(self) -> None:
        if self._session is None:
            return
        logger.debug("Closing session for %s", self._session.artifact.package_name)
        self._session.runner.close()
        self._session = None

    def _adb_runner(self, artifact: BuildArtifact, listener: Listener) -> AdbRunner:
        return AdbRunner(
            artifact, listener, timeout=self.settings.launch_timeout, messages=self.messages
        )
