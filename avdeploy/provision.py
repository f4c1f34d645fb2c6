# SPDX-License-Identifier: MIT
"""Makes sure an emulator, a system image and an AVD exist before a launch."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from .config import Settings
from .errors import EmulatorUnavailable, ProvisioningFailed, UserCancelled
from .interfaces import DeviceManagement, Prompts
from .messages import MessageCatalog

logger = logging.getLogger(__name__)


class VirtualDeviceProvisioner:
    def __init__(
        self,
        devices: DeviceManagement,
        prompts: Prompts,
        *,
        settings: Optional[Settings] = None,
        messages: Optional[MessageCatalog] = None,
    ) -> None:
        self.devices = devices
        self.prompts = prompts
        self.settings = settings or Settings()
        self.messages = messages or MessageCatalog()

    def ensure_emulator_ready(self, requested_avd_name: Optional[str]) -> Tuple[str, str]:
        """
        Return ``(avd_name, image_id)`` for an AVD that exists on disk.

        Raises:
            UserCancelled: a download or the default-AVD fallback was declined.
            EmulatorUnavailable: the emulator or a system image failed to download.
            ProvisioningFailed: ``avdmanager`` could not create the AVD.
        """
        text = self.messages.text
        self._ensure_emulator()
        image_id = self._resolve_image()

        create = not requested_avd_name
        if requested_avd_name and not self.devices.avd_exists(requested_avd_name):
            logger.info("AVD %s not found", requested_avd_name)
            if not self.prompts.confirm(
                text("avd.dialog.not_found_title"),
                text("avd.dialog.not_found_body", requested_avd_name),
            ):
                raise UserCancelled(text("avd.error.not_found_declined", requested_avd_name))
            create = True

        if not create:
            return requested_avd_name, image_id

        name = self.settings.default_avd_name
        logger.info("Creating default AVD %s", name)
        if not self.devices.create_avd(name, self.settings.avd_profile, image_id):
            raise ProvisioningFailed(text("avd.error.cannot_create", name))
        return name, image_id

    def _ensure_emulator(self) -> None:
        text = self.messages.text
        if self.devices.emulator_installed():
            return
        if not self.prompts.confirm(
            text("emulator.dialog.install_title"), text("emulator.dialog.install_body")
        ):
            raise UserCancelled(text("emulator.error.install_declined"))
        if not self.devices.install_emulator():
            raise EmulatorUnavailable(text("emulator.error.install_failed"))

    def _resolve_image(self) -> str:
        text = self.messages.text
        images = self.devices.list_images()
        if images:
            return images[0].package_id

        default_id = self.settings.default_image_id
        self.prompts.show_message(
            text("image.dialog.missing_title"), text("image.dialog.missing_body", default_id)
        )
        if not self.prompts.confirm(
            text("image.dialog.download_title"), text("image.dialog.download_body", default_id)
        ):
            raise UserCancelled(text("image.error.download_declined"))
        image_id = self.devices.install_default_image()
        if not image_id:
            raise EmulatorUnavailable(text("image.error.download_failed", default_id))
        return image_id
