# authlink/runtime/forwarder.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from authlink.auth.request import AuthRequest
from authlink.core.results import LinkResult, StatusCode
from authlink.model.outcome import AuthOutcome, OutcomeKind
from authlink.runtime.session import Session
from authlink.transport.base import Channel
from authlink.transport.errors import TransportIOError


class ResultForwarder:
    """
    Writes authentication outcomes to a Session's channel as one line each:
    SUCCEEDED -> "Authenticated\\n", FAILED -> "Failed\\n". ERROR outcomes are
    never written (the peripheral has no token for them).

    send() is safe to call from the foreground context: the write itself runs
    on the link's I/O worker and is joined with `write_timeout_s`.
    """

    def __init__(self, *, write_timeout_s: Optional[float] = 2.0, logger: Optional[logging.Logger] = None):
        self.write_timeout_s = write_timeout_s
        self._log = logger or logging.getLogger(__name__)

    def send(self, outcome: AuthOutcome, session: Session) -> LinkResult:
        if outcome.kind is OutcomeKind.ERROR:
            reason = f"Authentication error: {outcome.message or 'unknown'}"
            session.notify(StatusCode.AUTH_ERROR, reason)
            return LinkResult.failure(StatusCode.AUTH_ERROR, reason)

        data = outcome.encode()
        assert data is not None
        token = outcome.token

        cause: Optional[BaseException] = None
        with session.exclusive_channel() as channel:
            if channel is not None:
                cause = self._write(session, channel, data)
                if cause is not None:
                    session.invalidate(channel, f"Failed to send data to peripheral: {cause}")

        # events go out after the write lock is released; sinks may send again
        if channel is None:
            self._log.info("FORWARD_SKIPPED_NOT_CONNECTED peer=%s token=%s", session.peer_address, token)
            reason = f"Not connected to {session.peer_address}"
            session.notify(StatusCode.NOT_CONNECTED, reason)
            return LinkResult.failure(StatusCode.NOT_CONNECTED, reason)

        if cause is not None:
            reason = f"Failed to send data to peripheral: {cause}"
            self._log.warning("FORWARD_WRITE_FAILED peer=%s token=%s cause=%s", session.peer_address, token, cause)
            session.notify(StatusCode.WRITE_FAILED, reason, token=token)
            return LinkResult.failure(StatusCode.WRITE_FAILED, reason, cause=cause, token=token)

        sent = f"Sent to peripheral: {token}"
        self._log.info("FORWARD_SENT peer=%s token=%s", session.peer_address, token)
        session.notify(StatusCode.SENT, sent, token=token)
        return LinkResult.success(StatusCode.SENT, sent, token=token)

    def _write(self, session: Session, channel: Channel, data: bytes) -> Optional[BaseException]:
        """One write on the link's worker; returns the failure, or None once flushed."""
        try:
            pending = session.submit_io(_write_line, channel, data)
        except Exception as e:
            return e

        try:
            pending.result(timeout=self.write_timeout_s)
        except FutureTimeoutError:
            # never let a queued write run later against a released channel
            pending.cancel()
            return TransportIOError(f"write did not complete within {self.write_timeout_s}s")
        except Exception as e:
            return e
        return None

    def forward(self, request: AuthRequest, session: Session) -> "Future[LinkResult]":
        """
        Make this forwarder the single continuation of `request`.

        The returned Future resolves with send()'s result, or is cancelled if
        the request is cancelled before its outcome is delivered.
        """
        done: "Future[LinkResult]" = Future()
        fired = threading.Event()

        def _continuation(outcome: AuthOutcome) -> None:
            if fired.is_set():
                self._log.warning("FORWARD_DUPLICATE_IGNORED request_id=%d", request.request_id)
                return
            fired.set()
            try:
                done.set_result(self.send(outcome, session))
            except BaseException as e:
                done.set_exception(e)

        request.on_outcome(_continuation)
        request.on_cancel(done.cancel)
        return done


def _write_line(channel: Channel, data: bytes) -> None:
    written = channel.write(data)
    if written is not None and written != len(data):
        raise TransportIOError(f"short write ({written}/{len(data)} bytes)")
    channel.flush()
