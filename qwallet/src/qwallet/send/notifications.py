"""
Send outcome notifications.

A notification stays open for a fixed display window and then closes itself.
Only an explicit dismissal or the timeout closes it; a stray pointer action
elsewhere (click-away) is ignored.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from qwallet.constants import NOTIFICATION_HISTORY, NOTIFICATION_WINDOW


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class CloseReason(str, Enum):
    TIMEOUT = "timeout"
    EXPLICIT = "explicit"
    CLICKAWAY = "clickaway"


@dataclass
class Notification:
    kind: NotificationKind
    code: str
    detail: str | None = None
    open: bool = True


class NotificationCenter:
    """One notification slot per kind, each with its own auto-dismiss timer."""

    def __init__(
        self,
        window: float = NOTIFICATION_WINDOW,
        on_change: Callable[[Notification], None] | None = None,
        history: int = NOTIFICATION_HISTORY,
    ):
        self.window = window
        self.on_change = on_change
        # most recent notifications, oldest dropped first
        self.shown: deque[Notification] = deque(maxlen=history)
        self._current: dict[NotificationKind, Notification] = {}
        self._timers: dict[NotificationKind, asyncio.TimerHandle] = {}

    def show(self, kind: NotificationKind, code: str, detail: str | None = None) -> Notification:
        """Open a notification, replacing any open one of the same kind."""
        self._cancel_timer(kind)
        notification = Notification(kind=kind, code=code, detail=detail)
        self._current[kind] = notification
        self.shown.append(notification)

        loop = asyncio.get_running_loop()
        self._timers[kind] = loop.call_later(self.window, self.close, kind, CloseReason.TIMEOUT)
        self._notify(notification)
        return notification

    def close(self, kind: NotificationKind, reason: CloseReason = CloseReason.EXPLICIT) -> bool:
        """Close the open notification of ``kind``. Returns False if ignored."""
        if reason == CloseReason.CLICKAWAY:
            return False
        notification = self._current.pop(kind, None)
        self._cancel_timer(kind)
        if notification is None:
            return False
        notification.open = False
        self._notify(notification)
        return True

    def is_open(self, kind: NotificationKind) -> bool:
        return kind in self._current

    def current(self, kind: NotificationKind) -> Notification | None:
        return self._current.get(kind)

    def clear(self) -> None:
        for kind in list(self._current):
            self.close(kind)

    def _cancel_timer(self, kind: NotificationKind) -> None:
        timer = self._timers.pop(kind, None)
        if timer is not None:
            timer.cancel()

    def _notify(self, notification: Notification) -> None:
        if self.on_change is not None:
            self.on_change(notification)
