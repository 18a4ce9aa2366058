from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Optional


class CallbackQueue:
    """
    Foreground execution context (the "main thread" of a UI).

    Any thread may post() a callable; the owning thread runs them in order
    with run_pending() / run_until(). Usable directly as an AuthRequest
    callback executor.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._owner: Optional[int] = None

    def post(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    __call__ = post

    def on_owner_thread(self) -> bool:
        return self._owner == threading.get_ident()

    def run_pending(self, timeout: float = 0.0) -> int:
        """Run queued callbacks; wait up to `timeout` for the first one. Returns the count run."""
        self._owner = threading.get_ident()
        ran = 0
        block = timeout > 0
        while True:
            try:
                fn = self._queue.get(block=block, timeout=timeout if block else None)
            except queue.Empty:
                return ran
            block = False
            fn()
            ran += 1

    def run_until(self, done: Callable[[], bool], timeout: Optional[float] = None, poll_s: float = 0.05) -> bool:
        """Pump callbacks until done() is true or the timeout expires. Returns done()."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not done():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            self.run_pending(timeout=poll_s)
        return True
