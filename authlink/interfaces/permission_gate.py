from __future__ import annotations

from concurrent.futures import Future
from typing import Protocol


class PermissionGate(Protocol):
    """Whether this process may use the transport at all."""

    def has_authority(self) -> bool: ...

    def request_authority(self) -> "Future[bool]":
        """Ask for authority; the outcome arrives later through the Future."""
        ...
