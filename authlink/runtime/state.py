# authlink/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass(frozen=True)
class SessionStatus:
    """
    A snapshot of the session, safe to share across threads.
    """
    peer: str
    state: SessionState
    driver: str
    has_channel: bool
    connected_for_s: Optional[float] = None
    last_error: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.state is SessionState.CONNECTED
