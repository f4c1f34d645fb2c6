# SPDX-License-Identifier: MIT
"""Android SDK discovery and the validated SDK handle."""

from ._android_sdk_utils import AndroidSDK, BadSDKError, find_android_tool, load_sdk

__all__: list[str] = ["AndroidSDK", "BadSDKError", "find_android_tool", "load_sdk"]
