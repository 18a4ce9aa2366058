from __future__ import annotations

import errno
import socket
from types import SimpleNamespace

import pytest

import authlink.transport.rfcomm as rf_mod
from authlink.transport.errors import (
    TransportIOError,
    TransportOpenError,
    TransportSecurityError,
    TransportTimeoutError,
    TransportUnavailableError,
)


class FakeSocket:
    def __init__(self, family, kind, proto):
        self.args = (family, kind, proto)
        self.timeouts = []
        self.connected_to = None
        self.sent = []
        self.closed = 0
        self.raise_on_connect = None
        self.raise_on_send = None

    def settimeout(self, t):
        self.timeouts.append(t)

    def connect(self, addr):
        if self.raise_on_connect is not None:
            raise self.raise_on_connect
        self.connected_to = addr

    def sendall(self, data):
        if self.raise_on_send is not None:
            raise self.raise_on_send
        self.sent.append(data)

    def recv(self, n):
        raise socket.timeout()

    def close(self):
        self.closed += 1


def _fake_socket_module(monkeypatch, *, connect_error=None, bluetooth=True):
    made = []

    def factory(family, kind, proto):
        s = FakeSocket(family, kind, proto)
        s.raise_on_connect = connect_error
        made.append(s)
        return s

    ns = SimpleNamespace(SOCK_STREAM=1, socket=factory, timeout=socket.timeout)
    if bluetooth:
        ns.AF_BLUETOOTH = 31
        ns.BTPROTO_RFCOMM = 3
    monkeypatch.setattr(rf_mod, "socket", ns)
    return made


def test_open_connects_to_address_and_channel(monkeypatch):
    made = _fake_socket_module(monkeypatch)
    p = rf_mod.RfcommSocketProvider(channel=1)

    handle = p.resolve("00:22:12:01:4A:6F")
    ch = p.open(handle, timeout_s=5.0)

    s = made[0]
    assert s.args == (31, 1, 3)
    assert s.connected_to == ("00:22:12:01:4A:6F", 1)
    assert s.timeouts == [5.0, None]
    assert ch.write(b"Authenticated\n") == 14
    assert s.sent == [b"Authenticated\n"]
    assert ch.read(4) == b""


def test_open_timeout_maps_to_transport_timeout(monkeypatch):
    made = _fake_socket_module(monkeypatch, connect_error=socket.timeout("timed out"))

    with pytest.raises(TransportTimeoutError):
        rf_mod.RfcommSocketProvider().open(("AA:BB:CC:DD:EE:FF", 1), timeout_s=0.1)
    assert made[0].closed == 1


def test_open_permission_error_maps_to_security(monkeypatch):
    _fake_socket_module(monkeypatch, connect_error=PermissionError(errno.EACCES, "denied"))

    with pytest.raises(TransportSecurityError):
        rf_mod.RfcommSocketProvider().open(("AA:BB:CC:DD:EE:FF", 1))


def test_open_host_down_maps_to_open_error(monkeypatch):
    _fake_socket_module(monkeypatch, connect_error=OSError(errno.EHOSTDOWN, "Host is down"))

    with pytest.raises(TransportOpenError) as ei:
        rf_mod.RfcommSocketProvider().open(("AA:BB:CC:DD:EE:FF", 1))
    assert not isinstance(ei.value, (TransportSecurityError, TransportTimeoutError))


def test_unavailable_without_bluetooth_sockets(monkeypatch):
    _fake_socket_module(monkeypatch, bluetooth=False)
    p = rf_mod.RfcommSocketProvider()

    assert p.is_available() is False
    with pytest.raises(TransportUnavailableError):
        p.open(("AA:BB:CC:DD:EE:FF", 1))


def test_channel_write_error_and_close():
    s = FakeSocket(31, 1, 3)
    s.raise_on_send = BrokenPipeError(errno.EPIPE, "Broken pipe")
    ch = rf_mod.SocketChannel(s)

    with pytest.raises(TransportIOError):
        ch.write(b"Failed\n")

    ch.close()
    ch.close()
    assert s.closed == 1
    assert ch.is_open() is False
