# authlink/runtime/session.py
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional

from authlink.core.errors import InvalidAddressError
from authlink.core.results import LinkResult, StatusCode
from authlink.interfaces.permission_gate import PermissionGate
from authlink.interfaces.status_sink import StatusEvent, StatusSink
from authlink.model.address import normalize_address
from authlink.runtime.connect_attempt import AttemptAbandoned, ConnectAttempt
from authlink.runtime.gates import AlwaysGranted
from authlink.runtime.state import SessionState, SessionStatus
from authlink.transport.base import Channel, TransportProvider
from authlink.transport.errors import (
    TransportError,
    TransportIOError,
    TransportResolveError,
    TransportSecurityError,
    TransportTimeoutError,
    TransportUnavailableError,
)


class Session:
    """
    Lifecycle of one point-to-point link to a single peer.

    States: IDLE -> CONNECTING -> CONNECTED -> CLOSED, with FAILED reachable
    from CONNECTING (open failed / timed out) and CONNECTED (write failed).
    FAILED and CLOSED accept a new connect().

    Invariant: a channel is held if and only if state is CONNECTED.

    Transport opens run on a ConnectAttempt thread; channel writes run on the
    link's own I/O worker, created on CONNECTED and retired with the
    channel (see submit_io). Failures are returned as
    LinkResult values and each one is announced with one StatusEvent.
    """

    def __init__(
        self,
        peer_address: str,
        provider: TransportProvider,
        *,
        gate: Optional[PermissionGate] = None,
        sinks: Iterable[StatusSink] = (),
        connect_timeout_s: Optional[float] = 10.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._peer = normalize_address(peer_address)
        self._provider = provider
        self._gate = gate or AlwaysGranted()
        self._connect_timeout_s = connect_timeout_s
        self._log = logger or logging.getLogger(__name__)

        # lock order: write lock, then state lock
        self._lock = threading.RLock()
        self._write_lock = threading.Lock()

        self._state = SessionState.IDLE
        self._channel: Optional[Channel] = None
        self._attempt: Optional[ConnectAttempt] = None
        self._generation = 0
        self._connected_monotonic: Optional[float] = None
        self._last_error: Optional[str] = None

        self._sinks: List[StatusSink] = list(sinks)
        self._io: Optional[ThreadPoolExecutor] = None
        self._closed_for_good = False

    # ---------------- queries ----------------
    @property
    def peer_address(self) -> str:
        return self._peer

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def is_connected(self) -> bool:
        with self._lock:
            return self._state is SessionState.CONNECTED

    def status(self) -> SessionStatus:
        with self._lock:
            connected_for = (
                time.monotonic() - self._connected_monotonic
                if self._connected_monotonic is not None
                else None
            )
            return SessionStatus(
                peer=self._peer,
                state=self._state,
                driver=self._provider.driver,
                has_channel=self._channel is not None,
                connected_for_s=connected_for,
                last_error=self._last_error,
            )

    # ---------------- sinks ----------------
    def add_sink(self, sink: StatusSink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    def remove_sink(self, sink: StatusSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def notify(self, code: StatusCode, reason: str, **details: Any) -> None:
        """Fan a StatusEvent out to every sink, on the calling thread."""
        event = StatusEvent(code=code, reason=reason, peer=self._peer, details=details)
        with self._lock:
            sinks = list(self._sinks)

        for sink in sinks:
            try:
                sink.on_status(event)
            except Exception:
                self._log.exception("STATUS_SINK_ERROR code=%s", code.value)

    # ---------------- connect ----------------
    def connect(self, peer_address: Optional[str] = None, *, timeout_s: Optional[float] = None) -> LinkResult:
        """
        Open the link; blocks the caller until connected, failed or timed out.

        Call this off any UI thread (or use connect_async()).
        """
        if peer_address is not None and normalize_address(peer_address) != self._peer:
            raise InvalidAddressError(
                f"Session is bound to {self._peer}, not {peer_address}.",
                hint="Create a new Session for another peer.",
                details={"peer": self._peer, "requested": peer_address},
            )

        timeout = self._connect_timeout_s if timeout_s is None else timeout_s

        with self._lock:
            shut = self._closed_for_good
            if self._state is SessionState.CONNECTING:
                rejected = True
            elif self._state is SessionState.CONNECTED:
                self._log.debug("SESSION_CONNECT_NOOP peer=%s already connected", self._peer)
                return LinkResult.success(StatusCode.CONNECTED, f"Already connected to {self._peer}")
            else:
                rejected = False

        if shut:
            return self._refuse_closed()

        if rejected:
            return self._report(StatusCode.ALREADY_CONNECTING, "A connect attempt is already in progress")

        if not self._gate.has_authority():
            self._log.warning("SESSION_PERMISSION_DENIED peer=%s", self._peer)
            return self._report(
                StatusCode.PERMISSION_DENIED,
                "Permission to use the transport not granted",
            )

        with self._lock:
            shut = self._closed_for_good
            rejected = self._state is SessionState.CONNECTING
            if not (shut or rejected):
                self._generation += 1
                gen = self._generation
                attempt = ConnectAttempt(self._provider, self._peer, timeout, logger=self._log)
                self._attempt = attempt
                self._state = SessionState.CONNECTING
                self._last_error = None

        if shut:
            return self._refuse_closed()

        if rejected:
            return self._report(StatusCode.ALREADY_CONNECTING, "A connect attempt is already in progress")

        self._log.info("SESSION_CONNECT peer=%s driver=%s timeout_s=%s", self._peer, self._provider.driver, timeout)
        self.notify(StatusCode.CONNECTING, f"Connecting to {self._peer}")
        attempt.start()

        try:
            channel = attempt.future.result(timeout=timeout)
        except FutureTimeoutError:
            attempt.abandon()
            return self._finish_failed(
                gen,
                attempt,
                StatusCode.TRANSPORT_TIMEOUT,
                f"Timed out after {timeout}s connecting to {self._peer}",
                cause=None,
                failure="timeout",
            )
        except AttemptAbandoned:
            return self._cancelled(gen, attempt)
        except TransportTimeoutError as e:
            return self._finish_failed(
                gen, attempt, StatusCode.TRANSPORT_TIMEOUT, f"Timed out connecting to {self._peer}: {e}",
                cause=e, failure="timeout",
            )
        except TransportError as e:
            failure = _failure_kind(e)
            return self._finish_failed(
                gen, attempt, StatusCode.TRANSPORT_OPEN_FAILED, _describe_failure(failure, self._peer, e),
                cause=e, failure=failure,
            )
        except Exception as e:
            self._log.exception("TRANSPORT_OPEN_UNEXPECTED peer=%s", self._peer)
            return self._finish_failed(
                gen, attempt, StatusCode.TRANSPORT_OPEN_FAILED, f"Failed to connect to {self._peer}: {e}",
                cause=e, failure="io",
            )

        with self._lock:
            stale = gen != self._generation or self._state is not SessionState.CONNECTING
            if not stale:
                self._attempt = None
                self._channel = channel
                self._io = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"authlink-io-{gen}")
                self._state = SessionState.CONNECTED
                self._connected_monotonic = time.monotonic()

        if stale:
            return self._cancelled(gen, attempt)

        self._log.info("SESSION_CONNECTED peer=%s", self._peer)
        self.notify(StatusCode.CONNECTED, f"Connected to {self._peer}")
        return LinkResult.success(StatusCode.CONNECTED, f"Connected to {self._peer}")

    def connect_async(self, peer_address: Optional[str] = None, *, timeout_s: Optional[float] = None) -> "Future[LinkResult]":
        """Run connect() on a background thread; the Future resolves to its LinkResult."""
        fut: "Future[LinkResult]" = Future()

        def _run() -> None:
            try:
                fut.set_result(self.connect(peer_address, timeout_s=timeout_s))
            except BaseException as e:
                fut.set_exception(e)

        threading.Thread(target=_run, daemon=True, name="authlink-connect-async").start()
        return fut

    def _finish_failed(
        self,
        gen: int,
        attempt: ConnectAttempt,
        code: StatusCode,
        reason: str,
        *,
        cause: Optional[BaseException],
        failure: str,
    ) -> LinkResult:
        with self._lock:
            stale = gen != self._generation or self._state is not SessionState.CONNECTING
            if not stale:
                self._attempt = None
                self._state = SessionState.FAILED
                self._last_error = reason

        if stale:
            return self._cancelled(gen, attempt)

        self._log.warning("TRANSPORT_OPEN_FAILED peer=%s code=%s failure=%s reason=%s", self._peer, code.value, failure, reason)
        self.notify(code, reason, failure=failure)
        return LinkResult.failure(code, reason, cause=cause, failure=failure)

    def _cancelled(self, gen: int, attempt: ConnectAttempt) -> LinkResult:
        # teardown() already announced CLOSED; make sure nothing stays open
        attempt.abandon()
        self._log.info("SESSION_CONNECT_CANCELLED peer=%s generation=%d", self._peer, gen)
        return LinkResult.failure(StatusCode.CLOSED, "Connect cancelled by teardown", failure="cancelled")

    def _refuse_closed(self) -> LinkResult:
        self._log.warning("SESSION_CONNECT_AFTER_CLOSE peer=%s", self._peer)
        return self._report(StatusCode.CLOSED, "Session has been closed", failure="closed")

    # ---------------- teardown ----------------
    def teardown(self) -> LinkResult:
        """
        Close the link. Idempotent; cancels an in-flight connect, releases the
        channel at most once and announces CLOSED on every call.
        """
        with self._lock:
            self._generation += 1
            previous = self._state
            attempt, self._attempt = self._attempt, None
            channel, self._channel = self._channel, None
            io, self._io = self._io, None
            self._state = SessionState.CLOSED
            self._connected_monotonic = None

        if attempt is not None:
            attempt.abandon()

        if channel is not None:
            self._release(channel, io)

        self._log.info("SESSION_TEARDOWN peer=%s previous=%s released=%s", self._peer, previous.value, channel is not None)
        self.notify(StatusCode.CLOSED, "Connection closed", previous=previous.value)
        return LinkResult.success(StatusCode.CLOSED, "Connection closed")

    def close(self) -> None:
        """Teardown for good (process shutdown); later connect() calls are refused."""
        with self._lock:
            self._closed_for_good = True
        self.teardown()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- write path (used by ResultForwarder) ----------------
    @contextmanager
    def exclusive_channel(self) -> Iterator[Optional[Channel]]:
        """
        Hold the session's write right; yields the live channel, or None when
        not CONNECTED at entry.
        """
        with self._write_lock:
            with self._lock:
                channel = self._channel if self._state is SessionState.CONNECTED else None
            yield channel

    def submit_io(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        """
        Run blocking channel I/O on the current link's I/O worker.

        Each link gets a fresh worker, so a write stuck on a dead channel
        cannot hold up the next link.
        """
        with self._lock:
            io = self._io
        if io is None:
            raise TransportIOError("no live link to write to")
        return io.submit(fn, *args)

    def invalidate(self, channel: Channel, reason: str) -> bool:
        """
        Mark the link broken after a failed write: CONNECTED -> FAILED and release
        `channel`. Returns False if the channel was already detached (e.g. by
        a concurrent teardown).
        """
        with self._lock:
            if self._channel is not channel:
                return False
            self._channel = None
            io, self._io = self._io, None
            self._state = SessionState.FAILED
            self._connected_monotonic = None
            self._last_error = reason

        self._log.warning("SESSION_INVALIDATED peer=%s reason=%s", self._peer, reason)
        self._release(channel, io)
        return True

    # ---------------- internals ----------------
    def _release(self, channel: Channel, io: Optional[ThreadPoolExecutor]) -> None:
        try:
            self._provider.close(channel)
        except Exception:
            self._log.exception("Failed to close channel")

        if io is not None:
            # a write stuck in the old worker is abandoned with its channel
            io.shutdown(wait=False, cancel_futures=True)

    def _report(self, code: StatusCode, reason: str, **details: Any) -> LinkResult:
        self.notify(code, reason, **details)
        return LinkResult.failure(code, reason, **details)


def _failure_kind(e: TransportError) -> str:
    if isinstance(e, TransportSecurityError):
        return "security"
    if isinstance(e, TransportUnavailableError):
        return "unavailable"
    if isinstance(e, TransportResolveError):
        return "resolve"
    return "io"


def _describe_failure(failure: str, peer: str, e: Exception) -> str:
    if failure == "security":
        return f"Security error connecting to {peer}: missing transport permissions ({e})"
    if failure == "unavailable":
        return f"Transport not available: {e}"
    if failure == "resolve":
        return f"Cannot resolve {peer}: {e}"
    return f"Failed to connect to {peer}: {e}"
