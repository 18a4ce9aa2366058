from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from .request import AuthRequest


class AuthAvailability(str, Enum):
    AVAILABLE = "available"
    NO_HARDWARE = "no_hardware"
    HW_UNAVAILABLE = "hw_unavailable"
    NONE_ENROLLED = "none_enrolled"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    AuthAvailability.AVAILABLE: "Authentication available",
    AuthAvailability.NO_HARDWARE: "No authentication hardware available",
    AuthAvailability.HW_UNAVAILABLE: "Authentication hardware unavailable",
    AuthAvailability.NONE_ENROLLED: "No credentials enrolled",
}


class AuthOracle(ABC):
    """
    Opaque verifier. authenticate() returns immediately and later delivers
    exactly one AuthOutcome to the request (from any thread).
    """

    def availability(self) -> AuthAvailability:
        return AuthAvailability.AVAILABLE

    @abstractmethod
    def authenticate(self, request: AuthRequest) -> None: ...
