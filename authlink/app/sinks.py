# authlink/app/sinks.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from authlink.core.results import StatusCode
from authlink.interfaces.status_sink import StatusEvent, StatusSink


class LoggingStatusSink(StatusSink):
    """Logs every StatusEvent; failures at WARNING, the rest at INFO."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger("authlink.status")

    def on_status(self, event: StatusEvent) -> None:
        level = logging.WARNING if event.code.is_failure else logging.INFO
        self._log.log(level, "STATUS code=%s peer=%s reason=%s", event.code.value, event.peer, event.reason)

    def close(self) -> None:
        return None


class PrintStatusSink(StatusSink):
    """
    Console rendering of status text (what the connection/auth labels of a UI
    would show). Connection codes and auth codes go to separate lines.
    """

    _AUTH_CODES = frozenset({
        StatusCode.SENT,
        StatusCode.AUTH_ERROR,
        StatusCode.AUTH_UNAVAILABLE,
        StatusCode.NOT_CONNECTED,
        StatusCode.WRITE_FAILED,
    })

    def __init__(self, *, write: Callable[[str], None] = print):
        self._write = write

    def on_status(self, event: StatusEvent) -> None:
        label = "Auth" if event.code in self._AUTH_CODES else "Link"
        self._write(f"[{label}] {event.reason}")

    def close(self) -> None:
        return None
