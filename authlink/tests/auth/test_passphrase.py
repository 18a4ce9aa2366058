from __future__ import annotations

from authlink.auth.oracle import AuthAvailability
from authlink.auth.passphrase import PassphraseAuthOracle
from authlink.auth.request import AuthRequest
from authlink.model.outcome import OutcomeKind
from authlink.utils.hashing import sha256_text

DIGEST = sha256_text("open sesame")


def _run(oracle):
    req = AuthRequest()
    oracle.authenticate(req)
    return req.result(timeout=2.0)


def test_not_enrolled_without_digest():
    assert PassphraseAuthOracle(None).availability() is AuthAvailability.NONE_ENROLLED
    assert PassphraseAuthOracle(DIGEST).availability() is AuthAvailability.AVAILABLE


def test_correct_passphrase_succeeds():
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        return "open sesame"

    out = _run(PassphraseAuthOracle(DIGEST.upper(), prompt="PIN: ", read_secret=read))
    assert out.kind is OutcomeKind.SUCCEEDED
    assert prompts == ["PIN: "]


def test_wrong_passphrase_fails():
    out = _run(PassphraseAuthOracle(DIGEST, read_secret=lambda p: "guess"))
    assert out.kind is OutcomeKind.FAILED


def test_empty_passphrase_is_error():
    out = _run(PassphraseAuthOracle(DIGEST, read_secret=lambda p: ""))
    assert out.kind is OutcomeKind.ERROR
    assert out.message == "empty passphrase"


def test_aborted_prompt_is_error():
    def read(prompt):
        raise EOFError()

    out = _run(PassphraseAuthOracle(DIGEST, read_secret=read))
    assert out.kind is OutcomeKind.ERROR
    assert out.message == "cancelled by user"
