# SPDX-License-Identifier: MIT
from __future__ import annotations

import logging
import os
import re
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

_TOOLS = ("adb", "emulator", "avdmanager", "sdkmanager")
_PLATFORM_RE = re.compile(r"^android-(\d+)")


class BadSDKError(RuntimeError):
    """Raised when a folder does not hold a usable Android SDK."""


# ---------- Core helper ------------------------------------------------------
def find_android_tool(tool: str) -> Path:
    """
    Locate an Android command-line tool (adb, emulator, avdmanager, sdkmanager)
    on any OS.

    Search order (first hit wins):
      1. Explicit env vars: ANDROID_{TOOL.upper()} (e.g. ANDROID_SDKMANAGER)
      2. Anything already on the PATH
      3. $ANDROID_SDK_ROOT / $ANDROID_HOME
      4. Typical default SDK locations for the current platform
      5. User-supplied fallback directories via FIND_ANDROID_EXTRA_DIRS env var
    Raises:
        FileNotFoundError if nothing is found.
    """
    if tool not in _TOOLS:
        raise ValueError(f"Unsupported tool: {tool}")

    explicit = os.getenv(f"ANDROID_{tool.upper()}")
    if explicit and Path(explicit).expanduser().is_file():
        return Path(explicit).expanduser()

    path_hit = shutil.which(tool) or shutil.which(_windows_name(tool))
    if path_hit:
        return Path(path_hit)

    for root in _env_sdk_roots():
        p = _scan_sdk(root, tool)
        if p:
            return p

    for candidate_root in _default_sdk_roots():
        p = _scan_sdk(candidate_root, tool)
        if p:
            return p

    for root in _extra_dirs():
        p = _scan_sdk(root, tool, deep=True)
        if p:
            return p

    raise FileNotFoundError(
        f"Could not locate {tool}. "
        "Install Android SDK Platform-Tools / Emulator or set ANDROID_SDK_ROOT."
    )


# ---------- SDK handle -------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AndroidSDK:
    """A validated SDK installation. Build it with :meth:`from_root`."""

    root: Path
    android_jar: Path
    adb: Path
    avdmanager: Path
    sdkmanager: Path

    @classmethod
    def from_root(cls, root: str | os.PathLike[str]) -> "AndroidSDK":
        """
        Validate the layout under *root* and return a handle for it.

        Raises:
            BadSDKError when a required piece is missing.
            OSError when the folder cannot be read.
        """
        root = Path(root).expanduser()
        if not root.is_dir():
            raise BadSDKError(f"{root} is not a directory")

        jar = _latest_platform_jar(root)
        if jar is None:
            raise BadSDKError(f"No platforms/android-*/android.jar under {root}")

        adb = _scan_sdk(root, "adb")
        if adb is None:
            raise BadSDKError(f"platform-tools are missing from {root}")

        avdmanager = _scan_sdk(root, "avdmanager")
        sdkmanager = _scan_sdk(root, "sdkmanager")
        if avdmanager is None or sdkmanager is None:
            raise BadSDKError(f"cmdline-tools are missing from {root}")

        return cls(
            root=root,
            android_jar=jar,
            adb=adb,
            avdmanager=avdmanager,
            sdkmanager=sdkmanager,
        )

    def emulator_path(self) -> Optional[Path]:
        # Looked up every time: the emulator package can be installed later.
        return _scan_sdk(self.root, "emulator")


def load_sdk() -> Optional[AndroidSDK]:
    """
    Return the first SDK that validates among the env and default roots.

    Falls back to the installation that ``adb`` belongs to when only
    ``ANDROID_ADB``, ``PATH`` or ``FIND_ANDROID_EXTRA_DIRS`` point at the SDK.
    """
    for root in [*_env_sdk_roots(), *_default_sdk_roots()]:
        try:
            return AndroidSDK.from_root(root)
        except (BadSDKError, OSError):
            continue

    try:
        adb = find_android_tool("adb")
    except FileNotFoundError:
        return None
    # <root>/platform-tools/adb
    root = adb.resolve().parent.parent
    try:
        return AndroidSDK.from_root(root)
    except (BadSDKError, OSError) as exc:
        logger.debug("%s is not inside a usable SDK: %s", adb, exc)
        return None


# ---------- Helpers ----------------------------------------------------------
def _windows_name(tool: str) -> str:
    """Return the executable name for Windows builds."""
    if sys.platform.startswith("win"):
        # avdmanager/sdkmanager are .bat; emulator & adb are .exe
        return f"{tool}.bat" if tool in ("avdmanager", "sdkmanager") else f"{tool}.exe"
    return tool


def _env_sdk_roots() -> list[Path]:
    roots = []
    for var in ("ANDROID_SDK_ROOT", "ANDROID_HOME"):
        value = os.getenv(var)
        if value:
            roots.append(Path(value).expanduser())
    return roots


def _extra_dirs() -> list[Path]:
    extra = os.getenv("FIND_ANDROID_EXTRA_DIRS", "")
    return [Path(r).expanduser() for r in map(str.strip, extra.split(",")) if r]


def _scan_sdk(root: Path, tool: str, deep: bool = False) -> Optional[Path]:
    """Search the SDK tree for the requested tool."""
    root = root.expanduser()
    exe = _windows_name(tool)
    cmdline: Iterable[Path] = (
        sorted((root / "cmdline-tools").glob("*/bin"), reverse=True)
        if (root / "cmdline-tools").exists()
        else []
    )
    subdirs: dict[str, list[Path]] = {
        "adb": [root / "platform-tools"],
        "emulator": [root / "emulator"],
        # Legacy tools/bin is the pre-cmdline-tools location
        "avdmanager": [*cmdline, root / "tools" / "bin"],
        "sdkmanager": [*cmdline, root / "tools" / "bin"],
    }

    for d in subdirs[tool]:
        cand = d / exe
        if cand.is_file():
            return cand

    if deep:
        for cand in root.rglob(exe):
            return cand
    return None


def _latest_platform_jar(root: Path) -> Optional[Path]:
    platforms = root / "platforms"
    if not platforms.is_dir():
        return None
    best: tuple[int, Path] | None = None
    for entry in platforms.iterdir():
        m = _PLATFORM_RE.match(entry.name)
        jar = entry / "android.jar"
        if m and jar.is_file():
            level = int(m[1])
            if best is None or level > best[0]:
                best = (level, jar)
    return best[1] if best else None


def _default_sdk_roots() -> list[Path]:
    """Return typical SDK install roots for each OS."""
    home = Path.home()
    if sys.platform.startswith("darwin"):
        return [
            home / "Library" / "Android" / "sdk",
            home / "Android" / "Sdk",
        ]
    elif sys.platform.startswith("win"):
        return [
            Path(os.environ.get("LOCALAPPDATA", "")) / "Android" / "Sdk",
            home / "AppData" / "Local" / "Android" / "Sdk",
        ]
    else:
        return [
            home / "Android" / "Sdk",
            Path("/opt/android-sdk"),
        ]
