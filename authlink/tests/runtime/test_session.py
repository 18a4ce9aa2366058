from __future__ import annotations

import threading
import time

import pytest

from authlink.core.errors import InvalidAddressError
from authlink.core.results import StatusCode
from authlink.runtime.gates import StaticGate
from authlink.runtime.session import Session
from authlink.runtime.state import SessionState
from authlink.transport.base import Channel, TransportProvider
from authlink.transport.errors import (
    TransportIOError,
    TransportOpenError,
    TransportSecurityError,
    TransportTimeoutError,
)

PEER = "AA:BB:CC:DD:EE:FF"


class FakeChannel(Channel):
    def __init__(self):
        self.written = []
        self.close_calls = 0
        self.closed = threading.Event()

    def write(self, data: bytes) -> int:
        self.written.append(data)
        return len(data)

    def flush(self) -> None:
        pass

    def read(self, n: int) -> bytes:
        return b""

    def close(self) -> None:
        self.close_calls += 1
        self.closed.set()

    def is_open(self) -> bool:
        return not self.closed.is_set()


class FakeProvider(TransportProvider):
    driver = "fake"

    def __init__(self, *, open_error=None, available=True, block=False):
        self.open_error = open_error
        self.available = available
        self.open_calls = 0
        self.release_calls = 0
        self.entered = threading.Event()
        self.proceed = threading.Event()
        if not block:
            self.proceed.set()
        self.channels = []

    def is_available(self) -> bool:
        return self.available

    def resolve(self, address: str):
        return address

    def open(self, handle, timeout_s=None) -> Channel:
        self.open_calls += 1
        self.entered.set()
        self.proceed.wait(5.0)
        if self.open_error is not None:
            raise self.open_error
        ch = FakeChannel()
        self.channels.append(ch)
        return ch

    def close(self, channel: Channel) -> None:
        self.release_calls += 1
        channel.close()


class RecordingSink:
    def __init__(self):
        self.events = []
        self.closed = False

    def on_status(self, event) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    def codes(self):
        return [e.code for e in self.events]


class BrokenSink:
    def on_status(self, event) -> None:
        raise RuntimeError("sink exploded")

    def close(self) -> None:
        pass


def _session(provider, *, granted=True, sink=None, **kw):
    sink = sink or RecordingSink()
    s = Session(PEER, provider, gate=StaticGate(granted), sinks=[sink], **kw)
    return s, sink


def _assert_channel_iff_connected(s: Session):
    st = s.status()
    assert st.has_channel == (st.state is SessionState.CONNECTED)


def test_connect_with_authority_reaches_connected():
    provider = FakeProvider()
    s, sink = _session(provider)

    res = s.connect("aa:bb:cc:dd:ee:ff")

    assert res.ok is True
    assert res.code is StatusCode.CONNECTED
    assert s.state is SessionState.CONNECTED
    assert s.is_connected() is True
    assert sink.codes() == [StatusCode.CONNECTING, StatusCode.CONNECTED]
    assert sink.events[-1].peer == PEER
    _assert_channel_iff_connected(s)
    s.close()


def test_connect_without_authority_stays_idle_and_never_touches_transport():
    provider = FakeProvider()
    s, sink = _session(provider, granted=False)

    res = s.connect()

    assert res.ok is False
    assert res.code is StatusCode.PERMISSION_DENIED
    assert s.state is SessionState.IDLE
    assert sink.codes() == [StatusCode.PERMISSION_DENIED]
    assert provider.open_calls == 0
    _assert_channel_iff_connected(s)
    s.close()


def test_connect_for_other_peer_is_rejected():
    s, _ = _session(FakeProvider())
    with pytest.raises(InvalidAddressError):
        s.connect("11:22:33:44:55:66")
    with pytest.raises(InvalidAddressError):
        s.connect("not-an-address")
    s.close()


def test_connect_when_connected_is_noop():
    provider = FakeProvider()
    s, sink = _session(provider)
    s.connect()

    res = s.connect()

    assert res.ok is True
    assert provider.open_calls == 1
    assert sink.codes() == [StatusCode.CONNECTING, StatusCode.CONNECTED]
    s.close()


def test_second_connect_while_connecting_is_rejected():
    provider = FakeProvider(block=True)
    s, sink = _session(provider)

    pending = s.connect_async()
    assert provider.entered.wait(2.0)

    res = s.connect()
    assert res.code is StatusCode.ALREADY_CONNECTING
    assert s.state is SessionState.CONNECTING

    provider.proceed.set()
    assert pending.result(timeout=2.0).code is StatusCode.CONNECTED
    assert provider.open_calls == 1
    assert StatusCode.ALREADY_CONNECTING in sink.codes()
    s.close()


@pytest.mark.parametrize(
    "error, failure",
    [
        (TransportSecurityError("EACCES"), "security"),
        (TransportOpenError("Host is down"), "io"),
    ],
)
def test_open_failure_moves_to_failed_with_kind(error, failure):
    s, sink = _session(FakeProvider(open_error=error))

    res = s.connect()

    assert res.code is StatusCode.TRANSPORT_OPEN_FAILED
    assert res.details["failure"] == failure
    assert res.cause is error
    assert s.state is SessionState.FAILED
    assert sink.codes() == [StatusCode.CONNECTING, StatusCode.TRANSPORT_OPEN_FAILED]
    assert sink.events[-1].details["failure"] == failure
    assert s.status().last_error == res.reason
    _assert_channel_iff_connected(s)
    s.close()


def test_driver_timeout_is_reported_as_transport_timeout():
    s, _ = _session(FakeProvider(open_error=TransportTimeoutError("timed out")))

    res = s.connect()

    assert res.code is StatusCode.TRANSPORT_TIMEOUT
    assert s.state is SessionState.FAILED
    s.close()


def test_unavailable_transport_fails_without_open():
    provider = FakeProvider(available=False)
    s, _ = _session(provider)

    res = s.connect()

    assert res.code is StatusCode.TRANSPORT_OPEN_FAILED
    assert res.details["failure"] == "unavailable"
    assert provider.open_calls == 0
    s.close()


def test_connect_timeout_fails_and_late_channel_is_closed():
    provider = FakeProvider(block=True)
    s, sink = _session(provider)

    res = s.connect(timeout_s=0.05)

    assert res.code is StatusCode.TRANSPORT_TIMEOUT
    assert res.details["failure"] == "timeout"
    assert s.state is SessionState.FAILED

    provider.proceed.set()
    deadline = time.monotonic() + 2.0
    while not provider.channels and time.monotonic() < deadline:
        time.sleep(0.01)
    assert provider.channels[0].closed.wait(2.0)
    assert s.state is SessionState.FAILED
    _assert_channel_iff_connected(s)
    s.close()


def test_teardown_during_connect_discards_late_success():
    provider = FakeProvider(block=True)
    s, sink = _session(provider)

    pending = s.connect_async()
    assert provider.entered.wait(2.0)

    s.teardown()
    provider.proceed.set()

    res = pending.result(timeout=2.0)
    assert res.ok is False
    assert res.code is StatusCode.CLOSED
    assert res.details["failure"] == "cancelled"

    deadline = time.monotonic() + 2.0
    while not provider.channels and time.monotonic() < deadline:
        time.sleep(0.01)
    assert provider.channels[0].closed.wait(2.0)
    assert s.state is SessionState.CLOSED
    assert s.is_connected() is False
    assert StatusCode.CONNECTED not in sink.codes()
    _assert_channel_iff_connected(s)
    s.close()


def test_teardown_is_idempotent():
    provider = FakeProvider()
    s, sink = _session(provider)
    s.connect()

    for _ in range(3):
        assert s.teardown().code is StatusCode.CLOSED

    assert provider.release_calls == 1
    assert provider.channels[0].close_calls == 1
    assert sink.codes().count(StatusCode.CLOSED) == 3
    assert s.state is SessionState.CLOSED
    _assert_channel_iff_connected(s)
    s.close()


def test_teardown_from_idle_emits_closed():
    provider = FakeProvider()
    s, sink = _session(provider)

    s.teardown()

    assert s.state is SessionState.CLOSED
    assert provider.release_calls == 0
    assert sink.codes() == [StatusCode.CLOSED]
    s.close()


@pytest.mark.parametrize("first", ["failed", "closed"])
def test_reconnect_after_failed_or_closed(first):
    provider = FakeProvider(open_error=TransportOpenError("nope") if first == "failed" else None)
    s, _ = _session(provider)
    s.connect()
    if first == "closed":
        s.teardown()

    provider.open_error = None
    res = s.connect()

    assert res.code is StatusCode.CONNECTED
    assert s.state is SessionState.CONNECTED
    assert provider.open_calls == 2
    s.close()


def test_invalidate_releases_channel_once():
    provider = FakeProvider()
    s, _ = _session(provider)
    s.connect()
    ch = provider.channels[0]

    assert s.invalidate(ch, "broken pipe") is True
    assert s.invalidate(ch, "broken pipe") is False

    assert s.state is SessionState.FAILED
    assert provider.release_calls == 1
    _assert_channel_iff_connected(s)

    s.teardown()
    assert provider.release_calls == 1
    s.close()


def test_broken_sink_does_not_break_state_machine():
    provider = FakeProvider()
    good = RecordingSink()
    s = Session(PEER, provider, gate=StaticGate(True), sinks=[BrokenSink(), good])

    assert s.connect().ok is True
    assert good.codes() == [StatusCode.CONNECTING, StatusCode.CONNECTED]
    s.close()


def test_status_snapshot_reports_uptime_only_when_connected():
    s, _ = _session(FakeProvider())
    assert s.status().connected_for_s is None

    s.connect()
    st = s.status()
    assert st.connected is True
    assert st.driver == "fake"
    assert st.connected_for_s is not None and st.connected_for_s >= 0.0

    s.teardown()
    assert s.status().connected_for_s is None
    s.close()


def test_connect_after_close_is_refused():
    provider = FakeProvider()
    s, sink = _session(provider)
    s.connect()
    s.close()
    sink.events.clear()

    res = s.connect()

    assert res.ok is False
    assert res.code is StatusCode.CLOSED
    assert res.details["failure"] == "closed"
    assert provider.open_calls == 1
    assert s.state is SessionState.CLOSED
    assert sink.codes() == [StatusCode.CLOSED]
    assert sink.events[0].details["failure"] == "closed"
    _assert_channel_iff_connected(s)


def test_no_io_worker_without_a_live_link():
    s, _ = _session(FakeProvider())
    with pytest.raises(TransportIOError):
        s.submit_io(lambda: None)

    s.connect()
    assert s.submit_io(lambda: 42).result(timeout=1.0) == 42

    s.teardown()
    with pytest.raises(TransportIOError):
        s.submit_io(lambda: None)
    s.close()
