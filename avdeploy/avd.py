# SPDX-License-Identifier: MIT
"""
Thin wrappers around the SDK command-line tools used for provisioning
(`avdmanager`, `sdkmanager`, `emulator`).

* Parsers for ``avdmanager list device``, ``avdmanager list avd`` and
  ``sdkmanager --list_installed``
* :class:`AvdManager` runs the tools of one :class:`~android_sdk_utils.AndroidSDK`
"""
from __future__ import annotations

###############################################################################
# Standard library
###############################################################################
import logging
import re
import shlex
import subprocess
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import ClassVar, Final, Iterable, Iterator, List, Optional

from android_sdk_utils import AndroidSDK

from .models import SystemImage

logger = logging.getLogger(__name__)

# sdkmanager asks to accept each license; avdmanager asks about a custom profile.
_ACCEPT_LICENSES: Final = b"y\n" * 16
_NO_CUSTOM_PROFILE: Final = b"no\n"


###############################################################################
# Exceptions
###############################################################################
class AndroidToolNotFound(RuntimeError):
    """Raised when a required SDK tool is not installed."""


class BootTimeoutError(TimeoutError):
    """Raised when an AVD fails to report sys.boot_completed within timeout."""


###############################################################################
# Helper wrappers
###############################################################################
def _run(
    cmd: List[str], *, timeout: float | None = None, input: bytes | None = None
) -> subprocess.CompletedProcess[bytes]:
    # On Windows, any on-disk file without .exe/.com gets launched via cmd.exe
    if sys.platform.startswith("win") and cmd:
        exe_path = Path(cmd[0])
        if exe_path.is_file() and exe_path.suffix.lower() not in {".exe", ".com"}:
            cmd = ["cmd", "/c", *cmd]

    logger.debug("$ %s", " ".join(map(shlex.quote, cmd)))
    try:
        return subprocess.run(
            cmd,
            input=input,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        # Callers decide from the return code; the output is still useful
        logger.debug("Command %r exited %d", e.cmd, e.returncode)
        return subprocess.CompletedProcess(
            args=e.cmd,
            returncode=e.returncode,
            stdout=e.stdout or b"",
            stderr=e.stderr or b"",
        )


###############################################################################
# Hardware profiles
###############################################################################
@dataclass(frozen=True, slots=True)
class HardwareProfile:
    id: int = -1
    id_alias: Optional[str] = None
    name: Optional[str] = None
    oem: Optional[str] = None
    tag: str = ""

    _ID_RE: ClassVar[Final[re.Pattern[str]]] = re.compile(r"id: (\d+) or \"([^\"]+)\"")

    def is_empty(self) -> bool:
        return self.id == -1

    @classmethod
    def _parse(cls, lines: Iterable[str]) -> Iterator["HardwareProfile"]:
        cur: HardwareProfile | None = None
        mapping = {"NAME": "name", "OEM": "oem", "TAG": "tag"}
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            if line.startswith("---------"):
                if cur and not cur.is_empty():
                    yield cur
                cur = HardwareProfile()
                continue
            if cur is None:
                cur = HardwareProfile()
            if m := cls._ID_RE.match(line):
                cur = replace(cur, id=int(m[1]), id_alias=m[2])
                continue
            if ":" in line:
                k, v = (s.strip() for s in line.split(":", 1))
                if attr := mapping.get(k.upper()):
                    cur = replace(cur, **{attr: v})
        if cur and not cur.is_empty():
            yield cur


###############################################################################
# AVD records
###############################################################################
class AVD:
    """One entry of ``avdmanager list avd``."""

    __slots__ = ("name", "device", "path", "target", "skin", "sdcard_size", "based_on", "abi")

    def __init__(
        self,
        *,
        name: str = "invalid",
        device: str | None = None,
        path: str | None = None,
        target: str | None = None,
        skin: str | None = None,
        sdcard_size: str | None = None,
        based_on: str | None = None,
        abi: str | None = None,
    ) -> None:
        self.name = name
        self.device = device
        self.path = path
        self.target = target
        self.skin = skin
        self.sdcard_size = sdcard_size
        self.based_on = based_on
        self.abi = abi

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AVD {self.name!r}>"

    def is_empty(self) -> bool:
        return self.name == "invalid"


_AVD_SECTION: Final = re.compile(r"^----+")
_BASED_ON_RE: Final = re.compile(r"(?P<android>.+?)\s+Tag/ABI:\s+(?P<abi>.+)$")


def _parse_avd_list(lines: Iterable[str]) -> Iterator[AVD]:
    current = AVD()
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if _AVD_SECTION.match(line):
            if not current.is_empty():
                yield current
            current = AVD()
            continue
        if ":" not in line:
            continue

        key, value = (s.strip() for s in line.split(":", 1))
        match key.upper():
            case "NAME":
                current.name = value
            case "DEVICE":
                # "pixel_5 (Google)" -> "pixel_5"
                current.device = value.split()[0] if value else None
            case "PATH":
                current.path = value
            case "TARGET":
                current.target = value
            case "SKIN":
                current.skin = value
            case "SDCARD":
                current.sdcard_size = value
            case "BASED ON":
                if m := _BASED_ON_RE.match(value):
                    current.based_on = m["android"].strip()
                    current.abi = m["abi"].strip()
    if not current.is_empty():
        yield current


###############################################################################
# Installed system images
###############################################################################
def _parse_installed_images(lines: Iterable[str]) -> Iterator[SystemImage]:
    """Pick the ``system-images;…`` rows out of ``sdkmanager --list_installed``."""
    seen: set[str] = set()
    for raw in lines:
        path = raw.split("|", 1)[0].strip()
        if not path.startswith("system-images;") or path in seen:
            continue
        try:
            image = SystemImage.from_package_id(path)
        except ValueError:
            logger.debug("Skipping malformed package row %r", raw)
            continue
        seen.add(path)
        yield image


###############################################################################
# Tool runner
###############################################################################
class AvdManager:
    """Runs the provisioning tools that belong to one SDK installation."""

    def __init__(self, sdk: AndroidSDK) -> None:
        self.sdk = sdk

    # ---------------------------------------------------------------- listings
    def list_profiles(self) -> List[HardwareProfile]:
        cp = _run([str(self.sdk.avdmanager), "list", "device"])
        return list(HardwareProfile._parse(cp.stdout.decode().splitlines()))

    def list_avds(self) -> List[AVD]:
        output = _run([str(self.sdk.avdmanager), "list", "avd"]).stdout.decode().splitlines()
        return list(_parse_avd_list(output))

    def get_by_name(self, name: str) -> AVD | None:
        return next((a for a in self.list_avds() if a.name == name), None)

    def list_images(self) -> List[SystemImage]:
        cp = _run([str(self.sdk.sdkmanager), "--list_installed"])
        return list(_parse_installed_images(cp.stdout.decode().splitlines()))

    # ---------------------------------------------------------------- packages
    def install_package(self, package: str, *, timeout: float | None = None) -> bool:
        logger.info("Installing SDK package %s", package)
        cp = _run(
            [str(self.sdk.sdkmanager), "--install", package],
            input=_ACCEPT_LICENSES,
            timeout=timeout,
        )
        if cp.returncode != 0:
            logger.error("sdkmanager failed for %s: %s", package, cp.stderr.decode().strip())
            return False
        return True

    # ---------------------------------------------------------------- CRUD
    def create(
        self,
        *,
        name: str,
        package: str,
        device: HardwareProfile | int | str,
        sdcard: str | None = None,
        tag: str | None = None,
        abi: str | None = None,
        force: bool = False,
    ) -> AVD:
        if isinstance(device, HardwareProfile):
            dev_id = str(device.id)
        elif isinstance(device, int):
            dev_id = str(device)
        else:
            match = next(
                (d for d in self.list_profiles() if device in (d.id_alias, d.name)),
                None,
            )
            if match is None:
                raise ValueError(f"Unknown device profile '{device}'")
            dev_id = str(match.id)

        cmd: List[str] = [str(self.sdk.avdmanager)]
        cmd += ["create", "avd", "-n", name, "--package", package, "--device", dev_id]
        for flag, value in {"--sdcard": sdcard, "--tag": tag, "--abi": abi}.items():
            if value:
                cmd.extend([flag, str(value)])
        if force:
            cmd.append("--force")

        cp = _run(cmd, input=_NO_CUSTOM_PROFILE)
        avd = self.get_by_name(name)
        if cp.returncode != 0 or avd is None:
            raise RuntimeError(
                f"AVD creation failed for {name!r}: {cp.stderr.decode().strip()}"
            )
        return avd

    # ---------------------------------------------------------------- runtime control
    def start(
        self, name: str, *, port: int, extra_emulator_args: str | None = None
    ) -> subprocess.Popen[bytes]:
        emulator = self.sdk.emulator_path()
        if emulator is None:
            raise AndroidToolNotFound(f"No emulator installed under {self.sdk.root}")

        cmd = [str(emulator), "-avd", name, "-port", str(port)]
        if extra_emulator_args:
            cmd.extend(shlex.split(extra_emulator_args))

        logger.info("Starting emulator (%s) on port %d", name, port)
        logger.debug("$ %s", " ".join(map(shlex.quote, cmd)))
        return subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
