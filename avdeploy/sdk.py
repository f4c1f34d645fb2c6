# SPDX-License-Identifier: MIT
"""
SDK state and single-flight acquisition.

* :class:`SdkStateHolder` owns the current :class:`~android_sdk_utils.AndroidSDK`.
* :class:`SdkAcquisitionGuard` validates or acquires it, one round at a time;
  concurrent callers wait for the round in flight and inherit its outcome.
* :class:`SdkLocator` is the concrete toolchain collaborator.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from android_sdk_utils import AndroidSDK, BadSDKError, load_sdk

from .config import SDK_PATH_PREF, Preferences, Settings
from .errors import SdkUnavailable, UserCancelled
from .interfaces import Prompts, Toolchain
from .messages import MessageCatalog

logger = logging.getLogger(__name__)

# Re-validation errors that mean the folder itself is broken, no retry.
_STRUCTURAL_ERRORS = (BadSDKError, FileNotFoundError, NotADirectoryError)


class SdkStateHolder:
    """Holds the current SDK handle. ``replace`` is the only mutator."""

    def __init__(self, sdk: Optional[AndroidSDK] = None) -> None:
        self._lock = threading.Lock()
        self._sdk = sdk

    def get(self) -> Optional[AndroidSDK]:
        with self._lock:
            return self._sdk

    def replace(self, sdk: Optional[AndroidSDK]) -> None:
        with self._lock:
            self._sdk = sdk


@dataclass
class AcquisitionState:
    checking: bool = False
    user_cancelled: bool = False
    last_error: Optional[BaseException] = None


class SdkAcquisitionGuard:
    def __init__(
        self,
        holder: SdkStateHolder,
        toolchain: Toolchain,
        prompts: Prompts,
        *,
        state: Optional[AcquisitionState] = None,
        publish: Optional[Callable[[AndroidSDK], None]] = None,
        messages: Optional[MessageCatalog] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.holder = holder
        self.toolchain = toolchain
        self.prompts = prompts
        self.state = state or AcquisitionState()
        self.publish = publish
        self.messages = messages or MessageCatalog()
        self.settings = settings or Settings()
        self._cond = threading.Condition()

    def reset_cancellation(self) -> None:
        with self._cond:
            self.state.user_cancelled = False

    def ensure_valid_sdk(
        self, ui_context: object = None, *, interrupt: Optional[threading.Event] = None
    ) -> None:
        """
        Make sure the holder contains a usable SDK, acquiring one if needed.

        If another round is in flight this waits for it, in slices of
        ``settings.sdk_poll_interval``, and returns without doing work. Setting
        *interrupt* ends such a wait early with no side effects.
        """
        with self._cond:
            if self.state.checking:
                while self.state.checking:
                    if interrupt is not None and interrupt.is_set():
                        logger.debug("SDK wait interrupted")
                        return
                    self._cond.wait(self.settings.sdk_poll_interval)
                return
            if self.state.user_cancelled:
                logger.debug("SDK search was cancelled by the user; skipping")
                return
            self.state.checking = True

        try:
            self._check(ui_context)
        finally:
            with self._cond:
                self.state.checking = False
                self._cond.notify_all()

    # ---------------------------------------------------------------- internals
    def _check(self, ui_context: object) -> None:
        current = self.holder.get()
        if current is not None:
            sdk = self._revalidate(current)
            if sdk is not None:
                self._store(sdk)
                return
            self.holder.replace(None)

        cause: Optional[BaseException] = None
        sdk = None
        try:
            sdk = self.toolchain.load_non_interactive()
            if sdk is None:
                sdk = self.toolchain.locate_interactive(ui_context)
        except UserCancelled as exc:
            with self._cond:
                self.state.user_cancelled = True
            cause = exc
        except Exception as exc:  # any toolchain failure ends this round only
            cause = exc

        if sdk is None:
            with self._cond:
                self.state.last_error = cause
            if isinstance(cause, UserCancelled):
                logger.info("SDK search cancelled by the user")
                return
            reason = str(cause) if cause is not None else "SDK not found"
            logger.error("Cannot load the Android SDK: %s", reason)
            self.prompts.show_warning(
                self.messages.text("sdk.warn.cannot_load_title"),
                self.messages.text("sdk.warn.cannot_load_body", reason),
                cause,
            )
            return
        self._store(sdk)

    def _revalidate(self, current: AndroidSDK) -> Optional[AndroidSDK]:
        try:
            return self.toolchain.revalidate(current.root)
        except _STRUCTURAL_ERRORS as exc:
            error: BaseException = exc
        except OSError as exc:
            logger.info("SDK re-validation failed (%s); retrying once", exc)
            time.sleep(self.settings.revalidate_retry_delay)
            try:
                return self.toolchain.revalidate(current.root)
            except (BadSDKError, OSError) as again:
                error = again

        logger.warning("Broken SDK folder %s: %s", current.root, error)
        self.prompts.show_warning(
            self.messages.text("sdk.warn.cannot_load_title"),
            self.messages.text("sdk.warn.broken_folder", error),
        )
        return None

    def _store(self, sdk: AndroidSDK) -> None:
        self.holder.replace(sdk)
        with self._cond:
            self.state.last_error = None
        if self.publish is not None:
            self.publish(sdk)
        logger.info("Using Android SDK at %s", sdk.root)


class SdkLocator:
    """Toolchain collaborator backed by ``android_sdk_utils`` and the prompts."""

    def __init__(
        self,
        prompts: Prompts,
        preferences: Preferences,
        messages: Optional[MessageCatalog] = None,
    ) -> None:
        self.prompts = prompts
        self.preferences = preferences
        self.messages = messages or MessageCatalog()

    def load_non_interactive(self) -> Optional[AndroidSDK]:
        stored = self.preferences.get(SDK_PATH_PREF)
        if stored:
            try:
                return AndroidSDK.from_root(stored)
            except (BadSDKError, OSError) as exc:
                logger.info("Stored SDK path %s is not usable: %s", stored, exc)
        return load_sdk()

    def locate_interactive(self, ui_context: object = None) -> AndroidSDK:
        folder = self.prompts.choose_directory(self.messages.text("sdk.dialog.choose_folder"))
        if folder is None:
            raise UserCancelled("SDK selection cancelled")
        try:
            sdk = AndroidSDK.from_root(folder)
        except BadSDKError as exc:
            raise SdkUnavailable(f"{folder} is not an Android SDK", phase="sdk") from exc
        self.preferences.set(SDK_PATH_PREF, str(sdk.root))
        return sdk

    def revalidate(self, root: Path) -> AndroidSDK:
        return AndroidSDK.from_root(root)
