# authlink/auth/request.py
from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, List, Optional

from authlink.model.outcome import AuthOutcome

Continuation = Callable[[AuthOutcome], Any]
Executor = Callable[[Callable[[], None]], None]

_ids = itertools.count(1)


def _inline(fn: Callable[[], None]) -> None:
    fn()


class AuthRequest:
    """
    One user-initiated authentication attempt.

    Contract:
      - deliver() is first-wins; later outcomes are ignored.
      - exactly one continuation may be registered (on_outcome); it runs at
        most once, on `callback_executor` (the foreground context).
      - cancel() before the continuation starts suppresses delivery entirely.
    """

    def __init__(
        self,
        *,
        callback_executor: Optional[Executor] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.request_id = next(_ids)
        self.created_at = time.perf_counter()
        self.future: "Future[AuthOutcome]" = Future()
        self._executor = callback_executor or _inline
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._continuation: Optional[Continuation] = None
        self._dispatched = False
        self._started = False
        self._cancelled = False
        self._cancel_cbs: List[Callable[[], Any]] = []

    # ---------------- producer side (oracle) ----------------
    def deliver(self, outcome: AuthOutcome) -> bool:
        with self._lock:
            if self._cancelled or self.future.done():
                self._log.debug("AUTH_DELIVERY_IGNORED request_id=%d kind=%s", self.request_id, outcome.kind.value)
                return False
            self.future.set_result(outcome)

        self._log.info("AUTH_OUTCOME request_id=%d kind=%s", self.request_id, outcome.kind.value)
        self._dispatch()
        return True

    # ---------------- consumer side ----------------
    def on_outcome(self, cb: Continuation) -> None:
        with self._lock:
            if self._continuation is not None:
                raise RuntimeError(f"AuthRequest {self.request_id} already has a continuation")
            self._continuation = cb
        self._dispatch()

    def cancel(self) -> bool:
        """Returns True if delivery was suppressed, False if it already started."""
        with self._lock:
            if self._started:
                return False
            if self._cancelled:
                return True
            self._cancelled = True
            self.future.cancel()
            cbs, self._cancel_cbs = self._cancel_cbs, []
        self._log.info("AUTH_CANCELLED request_id=%d", self.request_id)
        for cb in cbs:
            try:
                cb()
            except Exception:
                self._log.exception("AUTH_CANCEL_CALLBACK_ERROR request_id=%d", self.request_id)
        return True

    def on_cancel(self, cb: Callable[[], Any]) -> None:
        """Run `cb` if this request gets cancelled (immediately if it already was)."""
        with self._lock:
            if not self._cancelled:
                self._cancel_cbs.append(cb)
                return
        cb()

    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> AuthOutcome:
        return self.future.result(timeout=timeout)

    # ---------------- internals ----------------
    def _dispatch(self) -> None:
        with self._lock:
            if self._dispatched or self._cancelled or self._continuation is None or not self.future.done():
                return
            self._dispatched = True
            cb = self._continuation

        self._executor(lambda: self._run(cb))

    def _run(self, cb: Continuation) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._started = True
            outcome = self.future.result()

        try:
            cb(outcome)
        except Exception:
            self._log.exception("AUTH_CONTINUATION_ERROR request_id=%d", self.request_id)
