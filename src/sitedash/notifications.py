# src/sitedash/notifications.py
"""
Single-slot transient notification state.

There is no queue: `show()` always replaces whatever is visible. Each
`show()` starts a fresh auto-dismiss timer and cancels the previous one,
and every timer also checks the generation it was armed for, so a stale
timer can never hide a newer notification.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict

from sitedash.app_logger import get_logger

log = get_logger("notifications")

DEFAULT_DURATION = 6.0


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    visible: bool = False
    message: str = ""
    severity: Severity = Severity.INFO


NotificationListener = Callable[[Notification], None]


class NotificationRelay:
    def __init__(self, duration: Optional[float] = DEFAULT_DURATION) -> None:
        # duration=None disables auto-dismiss
        self.duration = duration
        self._state = Notification()
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[NotificationListener] = []

    @property
    def state(self) -> Notification:
        return self._state

    @property
    def visible(self) -> bool:
        return self._state.visible

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def show(self, message: str, severity: Severity | str = Severity.INFO) -> Notification:
        self._cancel_timer()
        self._generation += 1
        self._set(Notification(visible=True, message=message, severity=Severity(severity)))
        self._arm_timer(self._generation)
        return self._state

    def show_success(self, message: str) -> Notification:
        return self.show(message, Severity.SUCCESS)

    def show_error(self, message: str) -> Notification:
        return self.show(message, Severity.ERROR)

    def show_warning(self, message: str) -> Notification:
        return self.show(message, Severity.WARNING)

    def show_info(self, message: str) -> Notification:
        return self.show(message, Severity.INFO)

    def dismiss(self) -> None:
        """Hide the notification; the message stays readable."""
        self._cancel_timer()
        if self._state.visible:
            self._set(self._state.model_copy(update={"visible": False}))

    def close(self) -> None:
        self._cancel_timer()

    # ---- internals ---------------------------------------------------
    def _arm_timer(self, generation: int) -> None:
        if self.duration is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.debug("no running loop; notification will not auto-dismiss")
            return
        self._timer = loop.call_later(self.duration, self._expire, generation)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._timer = None
        if self._state.visible:
            self._set(self._state.model_copy(update={"visible": False}))

    def _set(self, state: Notification) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                log.exception("notification listener failed")
