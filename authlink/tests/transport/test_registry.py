from __future__ import annotations

import pytest

from authlink.transport.base import Channel, TransportProvider
from authlink.transport.errors import TransportError
from authlink.transport.registry import TransportDriverRegistry
from authlink.transport.rfcomm import RfcommSocketProvider
from authlink.transport.serial_port import SerialPortProvider


class DummyProvider(TransportProvider):
    driver = "dummy"

    def __init__(self, *, x: int = 0):
        self.x = x

    def is_available(self) -> bool: return True
    def resolve(self, address: str): return address
    def open(self, handle, timeout_s=None) -> Channel: raise NotImplementedError


def test_registry_has_and_get_class_case_insensitive():
    reg = TransportDriverRegistry({"DUMMY": DummyProvider})

    assert reg.has("dummy") is True
    assert reg.has("DUMMY") is True
    assert reg.has("DuMmY") is True

    cls = reg.get_class("dummy")
    assert cls is DummyProvider


def test_registry_get_class_unknown_raises():
    reg = TransportDriverRegistry({})
    with pytest.raises(TransportError):
        reg.get_class("serial")


def test_registry_create_instantiates_with_params():
    reg = TransportDriverRegistry({"dummy": DummyProvider})

    p = reg.create("DUMMY", x=42)
    assert isinstance(p, DummyProvider)
    assert p.x == 42


def test_default_registry_knows_builtin_drivers():
    reg = TransportDriverRegistry.default()
    assert reg.get_class("serial") is SerialPortProvider
    assert reg.get_class("rfcomm") is RfcommSocketProvider


def test_registry_of_uses_provider_driver_keys():
    reg = TransportDriverRegistry.of(DummyProvider, SerialPortProvider)
    assert reg.known() == ["dummy", "serial"]
    assert reg.get_class("Serial") is SerialPortProvider


def test_unknown_driver_error_lists_known_drivers():
    reg = TransportDriverRegistry({"dummy": DummyProvider})
    with pytest.raises(TransportError, match="known: dummy"):
        reg.create("rfcomm")
