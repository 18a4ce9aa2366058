from __future__ import annotations

import logging
import os

from authlink.runtime.gates import AlwaysGranted, DeviceAccessGate, StaticGate


def test_always_granted():
    g = AlwaysGranted()
    assert g.has_authority() is True
    assert g.request_authority().result(timeout=0) is True


def test_static_gate_grant_and_revoke():
    g = StaticGate(False)
    assert g.request_authority().result(timeout=0) is False
    g.grant()
    assert g.has_authority() is True
    g.revoke()
    assert g.has_authority() is False


def test_device_gate_missing_node_is_not_a_permission_problem(tmp_path):
    g = DeviceAccessGate(str(tmp_path / "rfcomm0"))
    assert g.has_authority() is True


def test_device_gate_denied_logs_hint(tmp_path, monkeypatch, caplog):
    node = tmp_path / "rfcomm0"
    node.write_bytes(b"")
    monkeypatch.setattr(os, "access", lambda path, mode: False)
    g = DeviceAccessGate(str(node))

    with caplog.at_level(logging.WARNING):
        assert g.request_authority().result(timeout=0) is False

    assert "PERMISSION_MISSING" in caplog.text
