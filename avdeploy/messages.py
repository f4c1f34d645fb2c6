# SPDX-License-Identifier: MIT
"""User-facing strings, overridable from a ``key = value`` properties file."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

BLUETOOTH_DEBUG_URL = "https://developer.android.com/training/wearables/apps/debugging.html"
DISTRIBUTING_APPS_URL = "https://developer.android.com/studio/publish"

DEFAULT_TEXT: Mapping[str, str] = {
    "sdk.warn.cannot_load_title": "Cannot load the Android SDK",
    "sdk.warn.cannot_load_body": "The Android SDK could not be loaded.\n%s",
    "sdk.warn.broken_folder": "The SDK folder looks broken and will be located again.\n%s",
    "sdk.info.no_search_path": "No Android SDK; the search path is empty.",
    "sdk.dialog.choose_folder": "Select the folder of your Android SDK",
    "emulator.dialog.install_title": "Emulator not installed",
    "emulator.dialog.install_body": "The Android emulator is not installed. Download it now?",
    "emulator.error.install_declined": "Emulator download declined.",
    "emulator.error.install_failed": "The emulator could not be downloaded.",
    "image.dialog.missing_title": "No system image",
    "image.dialog.missing_body": (
        "A system image is needed to create an emulator.\n"
        "The default image %s will be downloaded."
    ),
    "image.dialog.download_title": "Download system image",
    "image.dialog.download_body": "Download %s now?",
    "image.error.download_declined": "System image download declined.",
    "image.error.download_failed": "The system image %s could not be downloaded.",
    "avd.dialog.not_found_title": "Emulator not found",
    "avd.dialog.not_found_body": (
        "The emulator %s does not exist anymore.\nCreate and use a default emulator instead?"
    ),
    "avd.error.not_found_declined": "The selected emulator %s was not found.",
    "avd.error.cannot_create": "The emulator %s could not be created.",
    "status.starting_build": "Starting build...",
    "status.building": "Building the project...",
    "status.build_failed": "Build failed.",
    "status.no_devices": "No devices found.",
    "status.waiting_device": "Waiting for the device to become available...",
    "status.installing": "Installing %s...",
    "status.launched_device": "Sketch launched on the device.",
    "status.launched_emulator": "Sketch launched in the emulator.",
    "status.launch_failed": "Launch failed: %s",
    "dialog.no_devices_title": "No devices found",
    "dialog.no_devices_body": (
        "No Android device could be found. Connect a device with USB debugging enabled."
    ),
    "dialog.watchface_debug_title": "Watch face debugging",
    "dialog.watchface_debug_body": (
        "Watch faces are installed through the paired phone. "
        "Enable Bluetooth debugging first:\n%s"
    ),
    "dialog.wallpaper_installed_title": "Wallpaper installed",
    "dialog.wallpaper_installed_body": (
        "The live wallpaper is installed. Select it in the wallpaper chooser."
    ),
    "dialog.watchface_installed_title": "Watch face installed",
    "dialog.watchface_installed_body": (
        "The watch face is installed. Long-press the watch screen to select it."
    ),
    "dialog.cannot_export_package_title": "Package name not set",
    "dialog.cannot_export_package_body": (
        "Set a unique package name before exporting. See:\n%s"
    ),
    "dialog.cannot_use_default_icons_title": "Custom icons missing",
    "dialog.cannot_use_default_icons_body": (
        "Add your own launcher icons to the sketch folder before exporting. See:\n%s"
    ),
}


class MessageCatalog:
    def __init__(self, strings: Mapping[str, str] | None = None) -> None:
        self._strings = dict(DEFAULT_TEXT)
        if strings:
            self._strings.update(strings)

    def load(self, path: Path) -> None:
        """Merge a ``key = value`` properties file over the current strings."""
        for raw in Path(path).read_text(encoding="utf-8").splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, value = (s.strip() for s in line.split("=", 1))
            self._strings[key] = value.replace("\\n", "\n").replace("\\'", "'")

    def text(self, key: str, *args: object) -> str:
        value = self._strings.get(key)
        if value is None:
            logger.debug("No text for %r", key)
            return key
        return value % args if args else value
