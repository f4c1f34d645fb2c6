# SPDX-License-Identifier: MIT
"""
Runtime configuration.

``Settings`` is read once from ``AVDEPLOY_*`` environment variables.
``Preferences`` is the small persisted key-value store (last used AVD, chosen
SDK folder) that survives between runs.
"""
from __future__ import annotations

import json
import logging
import os
import platform
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

AVD_NAME_PREF = "android.emulator.avd.name"
SDK_PATH_PREF = "android.sdk.path"


def _default_abi() -> str:
    return "arm64-v8a" if platform.machine().lower() in ("arm64", "aarch64") else "x86_64"


@dataclass(frozen=True, slots=True)
class Settings:
    preferences_file: Path = Path.home() / ".avdeploy" / "preferences.json"
    default_avd_name: str = "avdeploy_phone"
    avd_profile: str = "pixel_5"
    image_api: str = "android-33"
    image_tag: str = "google_apis"
    image_abi: str = _default_abi()
    boot_timeout: float = 300.0
    device_timeout: float = 60.0
    launch_timeout: float = 600.0
    sdk_poll_interval: float = 0.01
    revalidate_retry_delay: float = 0.5
    base_package: str = "avdeploy.sketch"
    core_library: Optional[Path] = None

    @property
    def default_image_id(self) -> str:
        return f"system-images;{self.image_api};{self.image_tag};{self.image_abi}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        base = cls()

        def _float(name: str, default: float) -> float:
            raw = env.get(name)
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a number", name, raw)
                return default

        core = env.get("AVDEPLOY_CORE_LIBRARY")
        return cls(
            preferences_file=Path(
                env.get("AVDEPLOY_PREFS", str(base.preferences_file))
            ).expanduser(),
            default_avd_name=env.get("AVDEPLOY_DEFAULT_AVD", base.default_avd_name),
            avd_profile=env.get("AVDEPLOY_AVD_PROFILE", base.avd_profile),
            image_api=env.get("AVDEPLOY_IMAGE_API", base.image_api),
            image_tag=env.get("AVDEPLOY_IMAGE_TAG", base.image_tag),
            image_abi=env.get("AVDEPLOY_IMAGE_ABI", base.image_abi),
            boot_timeout=_float("AVDEPLOY_BOOT_TIMEOUT", base.boot_timeout),
            device_timeout=_float("AVDEPLOY_DEVICE_TIMEOUT", base.device_timeout),
            launch_timeout=_float("AVDEPLOY_LAUNCH_TIMEOUT", base.launch_timeout),
            sdk_poll_interval=_float("AVDEPLOY_SDK_POLL_INTERVAL", base.sdk_poll_interval),
            revalidate_retry_delay=_float(
                "AVDEPLOY_REVALIDATE_RETRY_DELAY", base.revalidate_retry_delay
            ),
            base_package=env.get("AVDEPLOY_BASE_PACKAGE", base.base_package),
            core_library=Path(core).expanduser() if core else None,
        )


class Preferences:
    """Thread-safe JSON key-value store, written through on every ``set``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._values: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._values is None:
            try:
                self._values = json.loads(self.path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                self._values = {}
            except (OSError, ValueError) as exc:
                logger.warning("Cannot read preferences %s: %s", self.path, exc)
                self._values = {}
        return self._values

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            values = self._load()
            values[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
        logger.debug("Preference %s = %r", key, value)
