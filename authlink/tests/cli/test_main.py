from __future__ import annotations

import pytest

import authlink.cli.commands as commands
from authlink.app.runner import start_run
from authlink.cli.args import parse_args
from authlink.cli.main import main
from authlink.core.context import Context
from authlink.transport.base import Channel, TransportProvider
from authlink.transport.registry import TransportDriverRegistry


class FakeChannel(Channel):
    def __init__(self):
        self.written = []
        self.close_calls = 0

    def write(self, data): self.written.append(data); return len(data)
    def flush(self): pass
    def read(self, n): return b""
    def close(self): self.close_calls += 1
    def is_open(self): return self.close_calls == 0


class FakeRfcomm(TransportProvider):
    driver = "rfcomm"
    instances: list = []

    def __init__(self, channel: int = 1):
        self.channel_no = channel
        self.channels = []
        FakeRfcomm.instances.append(self)

    def is_available(self): return True
    def resolve(self, address): return (address, self.channel_no)

    def open(self, handle, timeout_s=None):
        ch = FakeChannel()
        self.channels.append(ch)
        return ch


@pytest.fixture
def fake_link(monkeypatch):
    FakeRfcomm.instances = []
    ctx = Context.load(drivers=TransportDriverRegistry({"rfcomm": FakeRfcomm, "serial": FakeRfcomm}))
    monkeypatch.setattr(commands, "start_run", lambda cfg: start_run(cfg, context=ctx, echo=print))
    return FakeRfcomm.instances


def test_transports_lists_catalog(capsys):
    assert main(["transports"]) == 0
    out = capsys.readouterr().out
    assert "serial (id=1, driver=serial)" in out
    assert "rfcomm (id=2, driver=rfcomm)" in out
    assert "key: channel" in out


def test_peers_marks_default(capsys):
    assert main(["peers"]) == 0
    assert "hc05 (default): 00:22:12:01:4A:6F via rfcomm" in capsys.readouterr().out


def test_unknown_peer_exits_1(capsys):
    assert main(["connect", "--peer", "attic"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: Unknown peer 'attic'." in out
    assert "Hint:" in out


def test_parse_args_builds_transport_overrides():
    args, _, type_id, overrides, peer = parse_args(
        ["send", "--outcome", "failed", "--transport", "serial",
         "--address", "98-d3-31-f5-2a-10", "--port", "/dev/rfcomm0", "--baudrate", "38400"]
    )
    assert args.cmd == "send"
    assert type_id == 1
    assert overrides == {"port": "/dev/rfcomm0", "baudrate": 38400}
    assert peer.address == "98:D3:31:F5:2A:10"


def test_parse_args_defaults_to_peer_transport():
    _, _, type_id, overrides, peer = parse_args(["connect"])
    assert type_id == 2
    assert overrides == {}
    assert peer.label == "hc05"


def test_flag_of_other_transport_is_usage_error():
    with pytest.raises(SystemExit) as ei:
        parse_args(["connect", "--transport", "rfcomm", "--baudrate", "9600"])
    assert ei.value.code == 2


def test_send_forwards_outcome_end_to_end(fake_link, capsys):
    assert main(["send", "--outcome", "succeeded", "--channel", "4"]) == 0

    (provider,) = fake_link
    assert provider.channel_no == 4
    assert provider.channels[0].written == [b"Authenticated\n"]
    assert provider.channels[0].close_calls == 1

    out = capsys.readouterr().out
    assert "[Link] Connected to 00:22:12:01:4A:6F" in out
    assert "[Auth] Sent to peripheral: Authenticated" in out


def test_connect_prints_status(fake_link, capsys):
    assert main(["connect"]) == 0
    out = capsys.readouterr().out
    assert "State:     connected (driver=rfcomm)" in out
