# authlink/model/outcome.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERROR = "error"


# Tokens understood by the peripheral firmware. ERROR has no token.
WIRE_TOKENS = {
    OutcomeKind.SUCCEEDED: "Authenticated",
    OutcomeKind.FAILED: "Failed",
}


@dataclass(frozen=True)
class AuthOutcome:
    """Terminal result of one authentication attempt."""

    kind: OutcomeKind
    message: Optional[str] = None

    @classmethod
    def succeeded(cls) -> "AuthOutcome":
        return cls(OutcomeKind.SUCCEEDED)

    @classmethod
    def failed(cls) -> "AuthOutcome":
        return cls(OutcomeKind.FAILED)

    @classmethod
    def error(cls, message: str) -> "AuthOutcome":
        return cls(OutcomeKind.ERROR, str(message))

    @property
    def token(self) -> Optional[str]:
        return WIRE_TOKENS.get(self.kind)

    def encode(self) -> Optional[bytes]:
        """Wire form (one newline-terminated line), or None if not forwardable."""
        tok = self.token
        if tok is None:
            return None
        return (tok + "\n").encode("utf-8")
