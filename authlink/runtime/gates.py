# authlink/runtime/gates.py
from __future__ import annotations

import logging
import os
from concurrent.futures import Future
from typing import Optional


def _resolved(value: bool) -> "Future[bool]":
    fut: "Future[bool]" = Future()
    fut.set_result(value)
    return fut


class AlwaysGranted:
    """Gate for transports that need no extra authority (e.g. RFCOMM sockets)."""

    def has_authority(self) -> bool:
        return True

    def request_authority(self) -> "Future[bool]":
        return _resolved(True)


class StaticGate:
    """Fixed answer; `grant()` flips it, as an approved OS prompt would."""

    def __init__(self, granted: bool = False):
        self._granted = bool(granted)

    def has_authority(self) -> bool:
        return self._granted

    def grant(self) -> None:
        self._granted = True

    def revoke(self) -> None:
        self._granted = False

    def request_authority(self) -> "Future[bool]":
        return _resolved(self._granted)


class DeviceAccessGate:
    """
    Read/write access to a serial device node (/dev/rfcommN needs the
    'dialout' or 'uucp' group on most distros).

    A node that does not exist yet is not treated as a permission problem;
    the open itself will report it.
    """

    def __init__(self, path: str, *, logger: Optional[logging.Logger] = None):
        self.path = path
        self._log = logger or logging.getLogger(__name__)

    def has_authority(self) -> bool:
        if not os.path.exists(self.path):
            return True
        return os.access(self.path, os.R_OK | os.W_OK)

    def request_authority(self) -> "Future[bool]":
        granted = self.has_authority()
        if not granted:
            self._log.warning(
                "PERMISSION_MISSING path=%s hint=add your user to the group owning the device and log in again",
                self.path,
            )
        return _resolved(granted)
