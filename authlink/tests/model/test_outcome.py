from __future__ import annotations

from authlink.model.outcome import AuthOutcome, OutcomeKind


def test_succeeded_encodes_authenticated_line():
    assert AuthOutcome.succeeded().encode() == b"Authenticated\n"


def test_failed_encodes_failed_line():
    assert AuthOutcome.failed().encode() == b"Failed\n"


def test_error_has_no_wire_form():
    o = AuthOutcome.error("sensor locked out")
    assert o.kind is OutcomeKind.ERROR
    assert o.message == "sensor locked out"
    assert o.token is None
    assert o.encode() is None
