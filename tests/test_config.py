# SPDX-License-Identifier: MIT
"""Settings, persisted preferences and the message catalog."""
from __future__ import annotations

from pathlib import Path

from avdeploy.config import AVD_NAME_PREF, Preferences, Settings
from avdeploy.messages import MessageCatalog


# ---------------------------------------------------------------- Settings
def test_from_env_defaults():
    settings = Settings.from_env({})
    assert settings.default_avd_name == "avdeploy_phone"
    assert settings.avd_profile == "pixel_5"
    assert settings.core_library is None
    assert settings.default_image_id.startswith("system-images;android-33;google_apis;")


def test_from_env_overrides(tmp_path):
    settings = Settings.from_env(
        {
            "AVDEPLOY_PREFS": str(tmp_path / "p.json"),
            "AVDEPLOY_DEFAULT_AVD": "ci_phone",
            "AVDEPLOY_IMAGE_API": "android-34",
            "AVDEPLOY_IMAGE_ABI": "arm64-v8a",
            "AVDEPLOY_BOOT_TIMEOUT": "42",
            "AVDEPLOY_CORE_LIBRARY": str(tmp_path / "core.zip"),
        }
    )
    assert settings.preferences_file == tmp_path / "p.json"
    assert settings.default_avd_name == "ci_phone"
    assert settings.default_image_id == "system-images;android-34;google_apis;arm64-v8a"
    assert settings.boot_timeout == 42.0
    assert settings.core_library == tmp_path / "core.zip"


def test_from_env_ignores_bad_numbers():
    assert Settings.from_env({"AVDEPLOY_BOOT_TIMEOUT": "soon"}).boot_timeout == 300.0


# ---------------------------------------------------------------- Preferences
def test_preferences_round_trip(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    Preferences(path).set(AVD_NAME_PREF, "phone1")
    assert Preferences(path).get(AVD_NAME_PREF) == "phone1"


def test_preferences_missing_or_corrupt(tmp_path):
    assert Preferences(tmp_path / "none.json").get("x", "dflt") == "dflt"
    corrupt = tmp_path / "bad.json"
    corrupt.write_text("{not json")
    assert Preferences(corrupt).get("x") is None


# ---------------------------------------------------------------- MessageCatalog
def test_text_formats_arguments():
    catalog = MessageCatalog()
    assert catalog.text("avd.error.cannot_create", "demo") == "The emulator demo could not be created."


def test_unknown_key_falls_back_to_key():
    assert MessageCatalog().text("no.such.key") == "no.such.key"


def test_load_properties_file(tmp_path: Path):
    props = tmp_path / "mode.properties"
    props.write_text(
        "# comment\n"
        "\n"
        "status.building = Compilando...\n"
        "custom.key = first line\\nit\\'s second\n"
        "not a pair\n",
        encoding="utf-8",
    )
    catalog = MessageCatalog()
    catalog.load(props)
    assert catalog.text("status.building") == "Compilando..."
    assert catalog.text("custom.key") == "first line\nit's second"
    assert catalog.text("status.build_failed") == "Build failed."
