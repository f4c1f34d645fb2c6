# SPDX-License-Identifier: MIT
"""Headless listener and prompts, for running the pipeline from a terminal."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ConsoleListener:
    """Listener that reports progress and status through logging."""

    def __init__(self) -> None:
        self.busy = False
        self.status = ""

    def start_indeterminate(self) -> None:
        self.busy = True

    def stop_indeterminate(self) -> None:
        self.busy = False

    def status_notice(self, text: str) -> None:
        self.status = text
        if text:
            logger.info(text)

    def status_error(self, text: str) -> None:
        self.status = text
        logger.error(text)


class ConsolePrompts:
    def __init__(self, ask: Callable[[str], str] = input) -> None:
        self._ask = ask

    def confirm(self, title: str, body: str) -> bool:
        while True:
            answer = self._ask(f"{title}\n{body} [y/n] ").strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no", ""):
                return False

    def show_message(self, title: str, body: str) -> None:
        logger.info("%s: %s", title, body)

    def show_warning(self, title: str, body: str, exc: Optional[BaseException] = None) -> None:
        logger.warning("%s: %s", title, body, exc_info=exc)

    def choose_directory(self, title: str) -> Optional[Path]:
        answer = self._ask(f"{title} (empty to cancel): ").strip()
        return Path(answer).expanduser() if answer else None
