# SPDX-License-Identifier: MIT
"""
The deployment pipeline.

``deploy_to_emulator`` and ``deploy_to_device`` run the same strictly ordered
steps: SDK check, provisioning (emulator only), build, target resolution,
launch. This module is the one place where a :class:`~avdeploy.errors.DeployError`
becomes user-visible output.
"""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config import AVD_NAME_PREF, Preferences, Settings
from .devices import AndroidDevices, TargetResolver
from .errors import (
    BuildFailed,
    DeployError,
    LaunchFailed,
    NoTargetsFound,
    SdkUnavailable,
    UserCancelled,
)
from .interfaces import Builder, Listener, Prompts
from .messages import DISTRIBUTING_APPS_URL, MessageCatalog
from .models import BuildArtifact, ComponentKind, Sketch, TargetRequest
from .notices import NoticeGate
from .provision import VirtualDeviceProvisioner
from .sdk import SdkAcquisitionGuard, SdkLocator, SdkStateHolder
from .session import RunnerFactory, SessionController

logger = logging.getLogger(__name__)

LAUNCHER_ICONS = (
    "launcher_36.png",
    "launcher_48.png",
    "launcher_72.png",
    "launcher_96.png",
    "launcher_144.png",
    "launcher_192.png",
)
OLD_LAUNCHER_ICONS = (
    "icon-36.png",
    "icon-48.png",
    "icon-72.png",
    "icon-96.png",
    "icon-144.png",
    "icon-192.png",
)
WATCHFACE_ICONS = ("preview_circular.png", "preview_rectangular.png")

BuildFactory = Callable[[Sketch], Builder]


def date_stamp(stamp: Optional[float] = None) -> str:
    """``yymmdd.HHMM`` for *stamp* (default: now), used in export folder names."""
    return time.strftime("%y%m%d.%H%M", time.localtime(stamp))


def _unexpected(exc: Exception) -> DeployError:
    """Wrap a failure no step translated so it is still reported once."""
    logger.exception("Unexpected failure during deployment")
    error = DeployError(str(exc) or type(exc).__name__)
    error.__cause__ = exc
    return error


def _icon_files(folder: Path, names: Sequence[str], alt_names: Sequence[str] = ()) -> List[Path]:
    files = []
    for i, name in enumerate(names):
        path = folder / name
        if not path.exists() and i < len(alt_names):
            path = folder / alt_names[i]
        files.append(path)
    return files


class DeploymentPipeline:
    def __init__(
        self,
        *,
        listener: Listener,
        prompts: Prompts,
        guard: SdkAcquisitionGuard,
        provisioner: VirtualDeviceProvisioner,
        resolver: TargetResolver,
        session: SessionController,
        notices: NoticeGate,
        preferences: Preferences,
        build_factory: BuildFactory,
        settings: Optional[Settings] = None,
        messages: Optional[MessageCatalog] = None,
        ui_context: object = None,
    ) -> None:
        self.listener = listener
        self.prompts = prompts
        self.guard = guard
        self.provisioner = provisioner
        self.resolver = resolver
        self.session = session
        self.notices = notices
        self.preferences = preferences
        self.build_factory = build_factory
        self.settings = settings or Settings()
        self.messages = messages or MessageCatalog()
        self.ui_context = ui_context

    # ---------------------------------------------------------------- entry points
    def deploy_to_emulator(self, sketch: Sketch, avd_name: Optional[str] = None) -> None:
        if avd_name is None:
            avd_name = self.preferences.get(AVD_NAME_PREF)
        self.listener.start_indeterminate()
        try:
            self._require_sdk()
            try:
                avd_name, image_id = self.provisioner.ensure_emulator_ready(avd_name)
            except DeployError as exc:
                exc.phase = exc.phase or "provision"
                raise
            logger.info("Deploying %s to AVD %s (%s)", sketch.name, avd_name, image_id)
            self.preferences.set(AVD_NAME_PREF, avd_name)

            artifact = self._build(sketch)
            target = self._resolve(TargetRequest.emulator(avd_name, wear=artifact.wear))
            self._launch(target, artifact, is_emulator=True)
        except DeployError as exc:
            self._finish(exc)
        except Exception as exc:
            self._finish(_unexpected(exc))

    def deploy_to_device(self, sketch: Sketch) -> None:
        text = self.messages.text
        self.listener.start_indeterminate()
        try:
            self._require_sdk()
            wear = sketch.component is ComponentKind.WATCHFACE
            if not self.resolver.list_attached(wear):
                raise NoTargetsFound(
                    text("status.no_devices"),
                    phase="resolve",
                    detail=text("dialog.no_devices_body"),
                )

            artifact = self._build(sketch)
            target = self._resolve(TargetRequest.hardware(wear=artifact.wear))
            self._launch(target, artifact, is_emulator=False)
            self.notices.show_post_build_message(artifact.component)
        except DeployError as exc:
            self._finish(exc)
        except Exception as exc:
            self._finish(_unexpected(exc))

    def stop(self) -> None:
        self.session.stop()

    def select_component(self, kind: ComponentKind) -> None:
        self.notices.show_select_component_message(kind)

    # ---------------------------------------------------------------- export checks
    def search_path(self) -> str:
        """Class path for code completion: ``android.jar`` plus the core library."""
        if self.guard.holder.get() is None:
            self.guard.ensure_valid_sdk(self.ui_context)
        sdk = self.guard.holder.get()
        if sdk is None:
            logger.info(self.messages.text("sdk.info.no_search_path"))
            return ""
        parts = [str(sdk.android_jar)]
        if self.settings.core_library is not None:
            parts.append(str(self.settings.core_library.resolve()))
        return os.pathsep.join(parts)

    def check_package_name(self, sketch: Sketch, package_name: str) -> bool:
        default = f"{self.settings.base_package}.{sketch.name.lower()}"
        if package_name.lower() == default.lower():
            self.prompts.show_message(
                self.messages.text("dialog.cannot_export_package_title"),
                self.messages.text("dialog.cannot_export_package_body", DISTRIBUTING_APPS_URL),
            )
            return False
        return True

    def check_app_icons(self, sketch: Sketch) -> bool:
        icons = _icon_files(sketch.folder, LAUNCHER_ICONS, OLD_LAUNCHER_ICONS)
        if sketch.component is ComponentKind.WATCHFACE:
            icons += _icon_files(sketch.folder, WATCHFACE_ICONS)
        missing = [p.name for p in icons if not p.exists()]
        if missing:
            logger.info("Missing icons for %s: %s", sketch.name, ", ".join(missing))
            self.prompts.show_message(
                self.messages.text("dialog.cannot_use_default_icons_title"),
                self.messages.text("dialog.cannot_use_default_icons_body", DISTRIBUTING_APPS_URL),
            )
            return False
        return True

    # ---------------------------------------------------------------- steps
    def _require_sdk(self) -> None:
        self.guard.ensure_valid_sdk(self.ui_context)
        if self.guard.holder.get() is not None:
            return
        if self.guard.state.user_cancelled:
            raise UserCancelled("SDK selection cancelled", phase="sdk")
        raise SdkUnavailable(
            self.messages.text("sdk.warn.cannot_load_title"), phase="sdk"
        ) from self.guard.state.last_error

    def _build(self, sketch: Sketch) -> BuildArtifact:
        text = self.messages.text
        self.listener.status_notice(text("status.starting_build"))
        builder = self.build_factory(sketch)

        self.listener.status_notice(text("status.building"))
        apk = builder.build("debug")
        if apk is None:
            raise BuildFailed(text("status.build_failed"), phase="build")
        return BuildArtifact(
            apk=Path(apk),
            package_name=builder.package_name,
            component=builder.component_kind(),
            wear=builder.is_wear(),
        )

    def _resolve(self, request: TargetRequest):
        try:
            return self.resolver.resolve(request)
        except RuntimeError as exc:
            raise LaunchFailed(str(exc), phase="resolve") from exc

    def _launch(self, target, artifact: BuildArtifact, *, is_emulator: bool) -> None:
        if not self.session.launch(target, artifact, artifact.component, is_emulator):
            raise LaunchFailed(
                self.messages.text("status.launch_failed", artifact.package_name),
                phase="launch",
            )

    def _finish(self, exc: DeployError) -> None:
        self.listener.stop_indeterminate()
        if isinstance(exc, UserCancelled):
            logger.info("Deployment cancelled: %s", exc)
            self.listener.status_notice("")
            return
        logger.error("Deployment failed (%s): %s", exc.phase or "deploy", exc)
        self.listener.status_error(exc.message)
        if exc.advisory:
            self.prompts.show_warning(exc.title, exc.describe(), exc)


def build_pipeline(
    listener: Listener,
    prompts: Prompts,
    build_factory: BuildFactory,
    *,
    settings: Optional[Settings] = None,
    messages: Optional[MessageCatalog] = None,
    devices: Optional[AndroidDevices] = None,
    runner_factory: Optional[RunnerFactory] = None,
    ui_context: object = None,
) -> DeploymentPipeline:
    """Wire the concrete adapters into a ready-to-use pipeline."""
    settings = settings or Settings.from_env()
    messages = messages or MessageCatalog()
    preferences = Preferences(settings.preferences_file)
    resolver = TargetResolver(devices or AndroidDevices(settings))
    guard = SdkAcquisitionGuard(
        SdkStateHolder(),
        SdkLocator(prompts, preferences, messages),
        prompts,
        publish=resolver.set_sdk,
        messages=messages,
        settings=settings,
    )
    return DeploymentPipeline(
        listener=listener,
        prompts=prompts,
        guard=guard,
        provisioner=VirtualDeviceProvisioner(
            resolver.devices, prompts, settings=settings, messages=messages
        ),
        resolver=resolver,
        session=SessionController(
            listener, runner_factory, settings=settings, messages=messages
        ),
        notices=NoticeGate(prompts, messages=messages),
        preferences=preferences,
        build_factory=build_factory,
        settings=settings,
        messages=messages,
        ui_context=ui_context,
    )
