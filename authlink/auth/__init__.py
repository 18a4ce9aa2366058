from .oracle import AuthAvailability, AuthOracle
from .passphrase import PassphraseAuthOracle
from .request import AuthRequest

__all__ = ["AuthAvailability", "AuthOracle", "AuthRequest", "PassphraseAuthOracle"]
