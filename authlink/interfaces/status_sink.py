# authlink/interfaces/status_sink.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

from authlink.core.results import StatusCode


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class StatusEvent:
    """
    Observable transition or failure (what a UI would show).
    Fire-and-forget: nothing in the core keeps a reference after emitting it.
    """
    code: StatusCode
    reason: str
    peer: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=dict)
    ts_utc: str = field(default_factory=_now_utc)

    def as_dict(self) -> dict:
        out = {
            "code": self.code.value,
            "reason": self.reason,
            "peer": self.peer,
            "details": dict(self.details) or None,
            "ts_utc": self.ts_utc,
        }
        return {k: v for k, v in out.items() if v is not None}


class StatusSink(Protocol):
    """
    on_status() is called synchronously on the thread that produced the
    transition; implementations must return quickly.
    """
    def on_status(self, event: StatusEvent) -> None: ...
    def close(self) -> None: ...
