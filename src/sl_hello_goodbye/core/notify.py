"""Notification sinks.

The presence state machine only needs ``show`` (returning an opaque handle)
and ``close``. On Linux desktops ``notify-send --print-id`` gives us the
notification id, and the freedesktop ``CloseNotification`` method (called
through ``gdbus``) takes it down again.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import shutil
from typing import Any, Protocol

LOGGER = logging.getLogger(__name__)

APP_NAME = "sl-hello-goodbye"

_DBUS_DEST = "org.freedesktop.Notifications"
_DBUS_PATH = "/org/freedesktop/Notifications"
_DBUS_CLOSE = "org.freedesktop.Notifications.CloseNotification"


class Notifier(Protocol):
    """Notification sink interface."""

    async def show(self, title: str, body: str) -> Any:
        """Display a notification and return a handle for ``close`` (or None)."""
        ...

    async def close(self, handle: Any) -> None:
        """Take down a notification previously returned by ``show``."""
        ...


class DesktopNotifier:
    """libnotify notifications via the ``notify-send`` and ``gdbus`` executables."""

    def __init__(
        self,
        *,
        app_name: str = APP_NAME,
        notify_send: str | None = None,
        gdbus: str | None = None,
    ) -> None:
        self.app_name = app_name
        self._notify_send = notify_send or shutil.which("notify-send")
        self._gdbus = gdbus or shutil.which("gdbus")

    @property
    def available(self) -> bool:
        return self._notify_send is not None

    async def _run(self, *args: str) -> tuple[int, str, str]:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        out, err = await proc.communicate()
        return (
            proc.returncode if proc.returncode is not None else -1,
            out.decode("utf-8", errors="replace"),
            err.decode("utf-8", errors="replace"),
        )

    async def show(self, title: str, body: str) -> int | None:
        if self._notify_send is None:
            LOGGER.warning("notify-send not found; dropping notification %r", title)
            return None
        try:
            code, out, err = await self._run(
                self._notify_send, "--app-name", self.app_name, "--print-id", title, body
            )
        except OSError as exc:
            LOGGER.warning("notify-send failed: %s", exc)
            return None
        if code != 0:
            LOGGER.warning("notify-send exited with %s: %s", code, err.strip())
            return None
        try:
            return int(out.split()[0])
        except (IndexError, ValueError):
            LOGGER.warning("notify-send printed no notification id: %r", out)
            return None

    async def close(self, handle: Any) -> None:
        if handle is None:
            return
        if self._gdbus is None:
            LOGGER.debug("gdbus not found; cannot close notification %s", handle)
            return
        try:
            code, _, err = await self._run(
                self._gdbus,
                "call",
                "--session",
                "--dest",
                _DBUS_DEST,
                "--object-path",
                _DBUS_PATH,
                "--method",
                _DBUS_CLOSE,
                str(handle),
            )
        except OSError as exc:
            LOGGER.warning("closing notification %s failed: %s", handle, exc)
            return
        if code != 0:
            LOGGER.warning("closing notification %s failed: %s", handle, err.strip())


class LoggingNotifier:
    """Writes notifications to the log instead of the desktop."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)

    async def show(self, title: str, body: str) -> int:
        handle = next(self._ids)
        LOGGER.warning("[notification %s] %s: %s", handle, title, body.replace("\n", " / "))
        return handle

    async def close(self, handle: Any) -> None:
        LOGGER.info("[notification %s] closed", handle)


def default_notifier() -> Notifier:
    """Desktop notifications when available, log output otherwise."""
    desktop = DesktopNotifier()
    if desktop.available:
        return desktop
    LOGGER.warning("notify-send not found; notifications go to the log")
    return LoggingNotifier()
