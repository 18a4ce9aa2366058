# authlink/core/results.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import LinkFailure


class StatusCode(str, Enum):
    # failures (returned to the caller, never raised)
    PERMISSION_DENIED = "permission_denied"
    ALREADY_CONNECTING = "already_connecting"
    TRANSPORT_OPEN_FAILED = "transport_open_failed"
    TRANSPORT_TIMEOUT = "transport_timeout"
    NOT_CONNECTED = "not_connected"
    WRITE_FAILED = "write_failed"

    # informational transitions
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"
    SENT = "sent"
    AUTH_ERROR = "auth_error"
    AUTH_UNAVAILABLE = "auth_unavailable"

    @property
    def is_failure(self) -> bool:
        return self in _FAILURES


_FAILURES = frozenset({
    StatusCode.PERMISSION_DENIED,
    StatusCode.ALREADY_CONNECTING,
    StatusCode.TRANSPORT_OPEN_FAILED,
    StatusCode.TRANSPORT_TIMEOUT,
    StatusCode.NOT_CONNECTED,
    StatusCode.WRITE_FAILED,
})


@dataclass(frozen=True)
class LinkResult:
    """
    Typed result of a Session or ResultForwarder operation.

    `cause` carries the underlying exception for TRANSPORT_OPEN_FAILED and
    WRITE_FAILED; `details` holds small machine-readable context such as
    {"failure": "security"}.
    """
    ok: bool
    code: StatusCode
    reason: str = ""
    cause: Optional[BaseException] = None
    details: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, code: StatusCode, reason: str = "", **details: Any) -> "LinkResult":
        return cls(ok=True, code=code, reason=reason, details=details)

    @classmethod
    def failure(
        cls,
        code: StatusCode,
        reason: str,
        *,
        cause: Optional[BaseException] = None,
        **details: Any,
    ) -> "LinkResult":
        return cls(ok=False, code=code, reason=reason, cause=cause, details=details)

    def raise_for_error(self) -> "LinkResult":
        if not self.ok:
            raise LinkFailure(
                self.reason or self.code.value,
                code=self.code.value,
                hint=str(self.cause) if self.cause is not None else None,
                details=dict(self.details),
            )
        return self

    def __bool__(self) -> bool:
        return self.ok
