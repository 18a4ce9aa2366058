# authlink/auth/passphrase.py
from __future__ import annotations

import getpass
import hmac
import logging
import threading
from typing import Callable, Optional

from authlink.model.outcome import AuthOutcome
from authlink.utils.hashing import sha256_text

from .oracle import AuthAvailability, AuthOracle
from .request import AuthRequest


class PassphraseAuthOracle(AuthOracle):
    """
    Local check of a passphrase against a stored SHA-256 hex digest.

    Reading happens on a background thread so the foreground context stays
    responsive; empty input or an aborted prompt is an ERROR outcome.
    """

    def __init__(
        self,
        passphrase_sha256: Optional[str],
        *,
        prompt: str = "Passphrase: ",
        read_secret: Callable[[str], str] = getpass.getpass,
        logger: Optional[logging.Logger] = None,
    ):
        self._digest = passphrase_sha256.strip().lower() if passphrase_sha256 else None
        self._prompt = prompt
        self._read_secret = read_secret
        self._log = logger or logging.getLogger(__name__)

    def availability(self) -> AuthAvailability:
        if not self._digest:
            return AuthAvailability.NONE_ENROLLED
        return AuthAvailability.AVAILABLE

    def authenticate(self, request: AuthRequest) -> None:
        threading.Thread(
            target=self._verify,
            args=(request,),
            daemon=True,
            name=f"authlink-passphrase-{request.request_id}",
        ).start()

    def _verify(self, request: AuthRequest) -> None:
        try:
            secret = self._read_secret(self._prompt)
        except (EOFError, KeyboardInterrupt):
            request.deliver(AuthOutcome.error("cancelled by user"))
            return
        except Exception as e:
            self._log.exception("PASSPHRASE_READ_FAILED")
            request.deliver(AuthOutcome.error(str(e)))
            return

        if not secret:
            request.deliver(AuthOutcome.error("empty passphrase"))
            return

        if self._digest and hmac.compare_digest(sha256_text(secret), self._digest):
            request.deliver(AuthOutcome.succeeded())
        else:
            request.deliver(AuthOutcome.failed())
