# authlink/core/errors.py
from __future__ import annotations


class AuthLinkError(Exception):
    """
    Base class for all expected operational errors in authlink that are raised
    (configuration, programming errors, failed results converted on request).

    Session and forwarder failures are *returned* as LinkResult; see
    authlink.core.results.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no radio access yet)
# ---------------------------------------------------------------------------

class TransportConfigError(AuthLinkError):
    """
    Transport configuration is invalid or inconsistent with metadata.

    Examples:
      - unknown transport type id / label
      - unknown driver key
      - invalid / missing transport parameters
    """
    code = "transport_config_error"


class PeerConfigError(AuthLinkError):
    """
    Peer selection is invalid.

    Examples:
      - unknown peer label
      - no peer given and no default configured
      - peers.yml malformed
    """
    code = "peer_config_error"


class InvalidAddressError(AuthLinkError, ValueError):
    """A device address is not six hex octets."""
    code = "invalid_address"


# ---------------------------------------------------------------------------
# Link failures (raised only on explicit request)
# ---------------------------------------------------------------------------

class LinkFailure(AuthLinkError):
    """
    A failed LinkResult converted to an exception via raise_for_error().

    `code` is set per instance to the result's status code value.
    """

    def __init__(self, message: str, *, code: str, hint: str | None = None, details: dict | None = None):
        super().__init__(message, hint=hint, details=details)
        self.code = code
