from .dispatch import CallbackQueue
from .forwarder import ResultForwarder
from .gates import AlwaysGranted, DeviceAccessGate, StaticGate
from .session import Session
from .state import SessionState, SessionStatus

__all__ = [
    "CallbackQueue",
    "ResultForwarder",
    "AlwaysGranted",
    "DeviceAccessGate",
    "StaticGate",
    "Session",
    "SessionState",
    "SessionStatus",
]
