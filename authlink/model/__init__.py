from .address import is_valid_address, normalize_address
from .outcome import AuthOutcome, OutcomeKind
from .peer import Peer
from .transport import TransportType
from .loader import MetadataLoader

__all__ = ["AuthOutcome",
           "OutcomeKind",
           "Peer",
           "TransportType",
           "MetadataLoader",
           "is_valid_address",
           "normalize_address"]
