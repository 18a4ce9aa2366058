# authlink/app/controller.py
from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Iterable, Optional

from authlink.app.config import AuthLinkConfig
from authlink.auth.oracle import AuthAvailability, AuthOracle
from authlink.auth.request import AuthRequest
from authlink.core.results import LinkResult, StatusCode
from authlink.interfaces.permission_gate import PermissionGate
from authlink.interfaces.status_sink import StatusSink
from authlink.runtime.dispatch import CallbackQueue
from authlink.runtime.forwarder import ResultForwarder
from authlink.runtime.gates import AlwaysGranted, DeviceAccessGate
from authlink.runtime.session import Session
from authlink.runtime.state import SessionStatus
from authlink.transport.factory import ConfiguredTransport


def gate_for(transport: ConfiguredTransport, *, logger: Optional[logging.Logger] = None) -> PermissionGate:
    """Pick the permission gate matching a configured transport."""
    port = transport.params.get("port")
    if transport.meta.driver == "serial" and port:
        return DeviceAccessGate(str(port), logger=logger)
    return AlwaysGranted()


class AuthLinkController:
    """
    App-level controller: one Session, one ResultForwarder, one Auth Oracle.

    UI/CLI events map to connect(), authenticate() and stop(). Auth outcomes
    are delivered on `callbacks` (the foreground CallbackQueue); the owner
    thread must pump it for forwarding to happen.
    """

    def __init__(
        self,
        config: AuthLinkConfig,
        *,
        transport: ConfiguredTransport,
        oracle: Optional[AuthOracle] = None,
        gate: Optional[PermissionGate] = None,
        sinks: Iterable[StatusSink] = (),
        callbacks: Optional[CallbackQueue] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._transport = transport
        self._oracle = oracle
        self._gate = gate or gate_for(transport, logger=self._log)
        self._sinks = list(sinks)
        self._callbacks = callbacks or CallbackQueue()

        self._session = Session(
            config.peer_address,
            transport.provider,
            gate=self._gate,
            sinks=self._sinks,
            connect_timeout_s=config.connect_timeout_s,
            logger=self._log,
        )
        self._forwarder = ResultForwarder(write_timeout_s=config.write_timeout_s, logger=self._log)
        self._pending_auth: Optional[AuthRequest] = None

    @property
    def config(self) -> AuthLinkConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._session

    @property
    def callbacks(self) -> CallbackQueue:
        return self._callbacks

    @property
    def transport(self) -> ConfiguredTransport:
        return self._transport

    def start(self) -> None:
        """Ask for transport authority up front, as an app would on launch."""
        if not self._gate.has_authority():
            self._gate.request_authority()

    def stop(self) -> None:
        self.cancel_authentication()
        try:
            self._session.close()
        except Exception:
            self._log.exception("SESSION_CLOSE_ERROR")

        for s in self._sinks:
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR")

    def __enter__(self) -> "AuthLinkController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------------- link ----------------
    def connect(self) -> LinkResult:
        return self._session.connect()

    def connect_async(self) -> "Future[LinkResult]":
        return self._session.connect_async()

    def disconnect(self) -> LinkResult:
        return self._session.teardown()

    def status(self) -> SessionStatus:
        return self._session.status()

    # ---------------- authentication ----------------
    def authenticate(self) -> "Future[LinkResult]":
        """
        Start one authentication; its outcome is forwarded to the peripheral.

        A still-pending earlier request is cancelled first. The returned Future
        resolves once the outcome has been handled on the callback queue.
        """
        if self._oracle is None:
            raise RuntimeError("AuthLinkController has no auth oracle configured")

        availability = self._oracle.availability()
        if availability is not AuthAvailability.AVAILABLE:
            reason = availability.message
            self._session.notify(StatusCode.AUTH_UNAVAILABLE, reason, availability=availability.value)
            fut: "Future[LinkResult]" = Future()
            fut.set_result(LinkResult.failure(StatusCode.AUTH_UNAVAILABLE, reason, availability=availability.value))
            return fut

        self.cancel_authentication()

        request = AuthRequest(callback_executor=self._callbacks.post, logger=self._log)
        self._pending_auth = request
        result = self._forwarder.forward(request, self._session)
        self._log.info("AUTH_START request_id=%d", request.request_id)
        self._oracle.authenticate(request)
        return result

    def cancel_authentication(self) -> bool:
        request, self._pending_auth = self._pending_auth, None
        if request is None:
            return False
        return request.cancel()

    def send_outcome(self, outcome) -> LinkResult:
        """Forward a fixed outcome directly (bench testing the peripheral)."""
        return self._forwarder.send(outcome, self._session)
