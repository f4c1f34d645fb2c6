# SPDX-License-Identifier: MIT
"""Dataclass models passed between the deployment components."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


class ComponentKind(enum.Enum):
    APP = "app"
    WALLPAPER = "wallpaper"
    WATCHFACE = "watchface"


class TargetKind(enum.Enum):
    DEVICE = "device"
    EMULATOR = "emulator"


@dataclass(frozen=True, slots=True)
class Sketch:
    name: str
    folder: Path
    component: ComponentKind = ComponentKind.APP


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    apk: Path
    package_name: str
    component: ComponentKind = ComponentKind.APP
    wear: bool = False
    main_activity: str = ".MainActivity"


@dataclass(frozen=True, slots=True)
class SystemImage:
    api: str
    tag: str
    abi: str
    present: bool = True

    @property
    def package_id(self) -> str:
        return f"system-images;{self.api};{self.tag};{self.abi}"

    @classmethod
    def from_package_id(cls, package_id: str, *, present: bool = True) -> "SystemImage":
        parts = package_id.split(";")
        if len(parts) != 4 or parts[0] != "system-images":
            raise ValueError(f"Not a system image package: {package_id!r}")
        return cls(api=parts[1], tag=parts[2], abi=parts[3], present=present)


@dataclass(frozen=True, slots=True)
class TargetRequest:
    kind: TargetKind
    avd_name: Optional[str] = None
    wear: bool = False

    @classmethod
    def hardware(cls, *, wear: bool = False) -> "TargetRequest":
        return cls(TargetKind.DEVICE, wear=wear)

    @classmethod
    def emulator(cls, avd_name: str, *, wear: bool = False) -> "TargetRequest":
        if not avd_name:
            raise ValueError("An emulator request needs an AVD name")
        return cls(TargetKind.EMULATOR, avd_name=avd_name, wear=wear)


@dataclass(frozen=True, slots=True)
class Target:
    """A connected device or booted emulator, ready for installation."""

    serial: str
    model: str = ""
    is_emulator: bool = False
    is_wear: bool = False
    device: Any = field(default=None, compare=False, repr=False)
