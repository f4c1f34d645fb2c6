# SPDX-License-Identifier: MIT
"""
Tests for android_sdk_utils
---------------------------

Scenarios covered
1. Unsupported tool            → ValueError
2. Explicit env-var hit
3. PATH hit (shutil.which)
4. ANDROID_SDK_ROOT hit, incl. sdkmanager under cmdline-tools
5. Default-root hit
6. Extra-dirs hit
7. Nothing found               → FileNotFoundError
8. AndroidSDK.from_root: valid layout, newest platform, broken layouts
9. load_sdk picks the first root that validates, then the SDK adb lives in
"""
from __future__ import annotations

import os
import shutil

import pytest

import android_sdk_utils._android_sdk_utils as at
from android_sdk_utils import AndroidSDK, BadSDKError, load_sdk
from conftest import make_dummy_exe, make_sdk

find_android_tool = at.find_android_tool

_DISCOVERY_VARS = (
    "ANDROID_SDK_ROOT",
    "ANDROID_HOME",
    "ANDROID_ADB",
    "ANDROID_SDKMANAGER",
    "PATH",
    "FIND_ANDROID_EXTRA_DIRS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in _DISCOVERY_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(at, "_default_sdk_roots", lambda: [])
    # an empty PATH still falls back to os.defpath
    monkeypatch.setattr(shutil, "which", lambda *_: None)
    return monkeypatch


# ---------------------------------------------------------------- find_android_tool
def test_invalid_tool_raises():
    with pytest.raises(ValueError):
        find_android_tool("zipalign")


def test_env_var_hit(tmp_path, monkeypatch):
    dummy = make_dummy_exe(tmp_path, "adb")
    monkeypatch.setenv("ANDROID_ADB", str(dummy))
    assert find_android_tool("adb") == dummy


def test_path_hit(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    dummy = make_dummy_exe(bin_dir, "adb")

    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.getenv('PATH', '')}")
    monkeypatch.delenv("ANDROID_ADB", raising=False)
    assert find_android_tool("adb") == dummy


def test_sdk_root_hit(tmp_path, clean_env):
    sdk = tmp_path / "sdk"
    dummy = make_dummy_exe(sdk / "platform-tools", "adb")
    clean_env.setenv("ANDROID_SDK_ROOT", str(sdk))
    assert find_android_tool("adb") == dummy


def test_sdkmanager_under_cmdline_tools(tmp_path, clean_env):
    sdk = tmp_path / "sdk"
    dummy = make_dummy_exe(sdk / "cmdline-tools" / "latest" / "bin", "sdkmanager")
    clean_env.setenv("ANDROID_HOME", str(sdk))
    assert find_android_tool("sdkmanager") == dummy


def test_default_root_hit(tmp_path, clean_env):
    default_sdk = tmp_path / "default"
    dummy = make_dummy_exe(default_sdk / "platform-tools", "adb")
    clean_env.setattr(at, "_default_sdk_roots", lambda: [default_sdk])
    assert find_android_tool("adb") == dummy


def test_extra_dirs_hit(tmp_path, clean_env):
    extra_root = tmp_path / "extrasdk"
    dummy = make_dummy_exe(extra_root / "deep" / "nest" / "platform-tools", "adb")
    clean_env.setenv("FIND_ANDROID_EXTRA_DIRS", str(extra_root))
    assert find_android_tool("adb") == dummy


def test_not_found_raises(clean_env):
    with pytest.raises(FileNotFoundError):
        find_android_tool("adb")


# ---------------------------------------------------------------- AndroidSDK
def test_from_root_valid_layout(tmp_path):
    root = make_sdk(tmp_path / "sdk")
    sdk = AndroidSDK.from_root(root)
    assert sdk.root == root
    assert sdk.android_jar == root / "platforms" / "android-33" / "android.jar"
    assert sdk.adb.parent.name == "platform-tools"
    assert sdk.emulator_path() is not None


def test_from_root_prefers_newest_platform(tmp_path):
    root = make_sdk(tmp_path / "sdk", api=30)
    newer = root / "platforms" / "android-34"
    newer.mkdir()
    (newer / "android.jar").write_bytes(b"PK")
    assert AndroidSDK.from_root(root).android_jar == newer / "android.jar"


def test_emulator_is_looked_up_live(tmp_path):
    root = make_sdk(tmp_path / "sdk", emulator=False)
    sdk = AndroidSDK.from_root(root)
    assert sdk.emulator_path() is None
    make_dummy_exe(root / "emulator", "emulator")
    assert sdk.emulator_path() is not None


def test_from_root_missing_folder(tmp_path):
    with pytest.raises(BadSDKError):
        AndroidSDK.from_root(tmp_path / "nope")


def test_from_root_missing_platform(tmp_path):
    root = make_sdk(tmp_path / "sdk")
    shutil.rmtree(root / "platforms")
    with pytest.raises(BadSDKError, match="android.jar"):
        AndroidSDK.from_root(root)


def test_from_root_missing_cmdline_tools(tmp_path):
    root = make_sdk(tmp_path / "sdk")
    shutil.rmtree(root / "cmdline-tools")
    with pytest.raises(BadSDKError, match="cmdline-tools"):
        AndroidSDK.from_root(root)


def test_load_sdk_skips_broken_roots(tmp_path, clean_env):
    broken = tmp_path / "broken"
    broken.mkdir()
    good = make_sdk(tmp_path / "good")
    clean_env.setenv("ANDROID_SDK_ROOT", str(broken))
    clean_env.setattr(at, "_default_sdk_roots", lambda: [good])
    assert load_sdk().root == good


def test_load_sdk_none_found(clean_env):
    assert load_sdk() is None


def test_load_sdk_follows_adb(tmp_path, clean_env):
    root = make_sdk(tmp_path / "sdk")
    clean_env.setenv("ANDROID_ADB", str(root / "platform-tools" / at._windows_name("adb")))
    assert load_sdk().root == root.resolve()


def test_load_sdk_ignores_stray_adb(tmp_path, clean_env):
    stray = make_dummy_exe(tmp_path / "bin", "adb")
    clean_env.setattr(shutil, "which", lambda name: str(stray) if name.startswith("adb") else None)
    assert load_sdk() is None
