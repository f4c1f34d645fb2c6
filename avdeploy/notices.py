# SPDX-License-Identifier: MIT
"""First-time advisories, each shown at most once per ``NotificationFlags``."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .interfaces import Prompts
from .messages import BLUETOOTH_DEBUG_URL, MessageCatalog
from .models import ComponentKind


@dataclass
class NotificationFlags:
    watchface_debug_shown: bool = False
    wallpaper_installed_shown: bool = False
    watchface_installed_shown: bool = False


class NoticeGate:
    def __init__(
        self,
        prompts: Prompts,
        flags: Optional[NotificationFlags] = None,
        messages: Optional[MessageCatalog] = None,
    ) -> None:
        self.prompts = prompts
        self.flags = flags or NotificationFlags()
        self.messages = messages or MessageCatalog()

    def show_select_component_message(self, kind: ComponentKind) -> None:
        if kind is ComponentKind.WATCHFACE and not self.flags.watchface_debug_shown:
            self._show("watchface_debug", BLUETOOTH_DEBUG_URL)
            self.flags.watchface_debug_shown = True

    def show_post_build_message(self, kind: ComponentKind) -> None:
        if kind is ComponentKind.WALLPAPER and not self.flags.wallpaper_installed_shown:
            self._show("wallpaper_installed")
            self.flags.wallpaper_installed_shown = True
        if kind is ComponentKind.WATCHFACE and not self.flags.watchface_installed_shown:
            self._show("watchface_installed")
            self.flags.watchface_installed_shown = True

    def _show(self, category: str, *args: object) -> None:
        self.prompts.show_message(
            self.messages.text(f"dialog.{category}_title"),
            self.messages.text(f"dialog.{category}_body", *args),
        )
