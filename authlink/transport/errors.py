# authlink/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for transport-layer failures."""

class TransportUnavailableError(TransportError):
    """No usable adapter/radio on this host (or it is switched off)."""

class TransportResolveError(TransportError):
    """Peer address could not be mapped to a connectable handle."""

class TransportOpenError(TransportError):
    pass

class TransportSecurityError(TransportOpenError):
    """Open refused because the process lacks authority (EACCES/EPERM)."""

class TransportIOError(TransportError):
    pass

class TransportTimeoutError(TransportOpenError):
    """Open did not complete within the allowed time."""
