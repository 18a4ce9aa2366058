from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Channel(ABC):
    """
    Duplex byte stream to the remote peripheral.

    Contract:
      - write(data) returns the number of bytes written.
      - read(n) returns 0..n bytes; b"" when nothing arrived before the timeout.
      - close() is safe to call more than once.
    """

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()


class TransportProvider(ABC):
    """
    Abstract radio/serial stack (serial port, RFCOMM socket, etc.).

    Contract:
      - is_available() reports whether the adapter can be used at all.
      - resolve(address) maps a normalized peer address to a driver handle,
        raising TransportResolveError when the peer is unknown.
      - open(handle, timeout_s) blocks until a Channel is ready or raises a
        TransportOpenError (TransportSecurityError for authority problems).
      - close(channel) releases a channel previously returned by open().
    """

    #: Driver key used by the registry and in transports.yml
    driver: str = "unknown"

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def resolve(self, address: str) -> Any: ...

    @abstractmethod
    def open(self, handle: Any, timeout_s: float | None = None) -> Channel: ...

    def close(self, channel: Channel) -> None:
        channel.close()

    def describe(self, handle: Any) -> str:
        return str(handle)
