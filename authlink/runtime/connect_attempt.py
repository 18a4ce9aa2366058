from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Optional

from authlink.transport.base import Channel, TransportProvider
from authlink.transport.errors import TransportUnavailableError


class AttemptAbandoned(Exception):
    """The attempt was given up (teardown or timeout) before it completed."""


class ConnectAttempt(threading.Thread):
    """
    One background resolve + open of a transport channel.

    The outcome is published through `future`. If the attempt is abandoned,
    a channel that opens afterwards is closed immediately instead.
    """

    def __init__(
        self,
        provider: TransportProvider,
        address: str,
        timeout_s: Optional[float],
        *,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(daemon=True, name=f"authlink-connect-{address}")
        self.provider = provider
        self.address = address
        self.timeout_s = timeout_s
        self.future: "Future[Channel]" = Future()
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._abandoned = False

    @property
    def abandoned(self) -> bool:
        with self._lock:
            return self._abandoned

    def run(self) -> None:
        try:
            if not self.provider.is_available():
                raise TransportUnavailableError(f"transport '{self.provider.driver}' not available")
            handle = self.provider.resolve(self.address)
            self._log.debug("CONNECT_RESOLVED peer=%s handle=%s", self.address, self.provider.describe(handle))
            channel = self.provider.open(handle, self.timeout_s)
        except BaseException as e:
            with self._lock:
                if not self.future.done():
                    self.future.set_exception(e)
            return

        with self._lock:
            if not self._abandoned:
                self.future.set_result(channel)
                return

        self._log.info("CONNECT_LATE_SUCCESS_DISCARDED peer=%s", self.address)
        self._close_quietly(channel)

    def abandon(self) -> None:
        """Give up on this attempt; any channel it produced or will produce is closed."""
        late: Optional[Channel] = None
        with self._lock:
            if self._abandoned:
                return
            self._abandoned = True
            if not self.future.done():
                self.future.set_exception(AttemptAbandoned(self.address))
            elif self.future.exception() is None:
                # opened between the waiter giving up and this call
                late = self.future.result()

        if late is not None:
            self._log.info("CONNECT_LATE_SUCCESS_DISCARDED peer=%s", self.address)
            self._close_quietly(late)

    def _close_quietly(self, channel: Channel) -> None:
        try:
            self.provider.close(channel)
        except Exception:
            self._log.exception("Failed to close discarded channel")
