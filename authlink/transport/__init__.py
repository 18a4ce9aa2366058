from .base import Channel, TransportProvider
from .errors import (
    TransportError,
    TransportIOError,
    TransportOpenError,
    TransportResolveError,
    TransportSecurityError,
    TransportTimeoutError,
    TransportUnavailableError,
)
from .factory import ConfiguredTransport, TransportFactory
from .registry import TransportDriverRegistry

__all__ = [
    "Channel",
    "TransportProvider",
    "TransportError",
    "TransportIOError",
    "TransportOpenError",
    "TransportResolveError",
    "TransportSecurityError",
    "TransportTimeoutError",
    "TransportUnavailableError",
    "ConfiguredTransport",
    "TransportFactory",
    "TransportDriverRegistry",
]
