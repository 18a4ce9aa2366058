# authlink/transport/rfcomm.py
from __future__ import annotations

import errno
import socket
from typing import Optional, Tuple

from .base import Channel, TransportProvider
from .errors import (
    TransportIOError,
    TransportOpenError,
    TransportSecurityError,
    TransportTimeoutError,
    TransportUnavailableError,
)


class SocketChannel(Channel):
    """Channel over a connected RFCOMM stream socket."""

    def __init__(self, sock: socket.socket):
        self.sock: Optional[socket.socket] = sock

    def is_open(self) -> bool:
        return self.sock is not None

    def write(self, data: bytes) -> int:
        if self.sock is None:
            raise TransportIOError("write while channel closed")

        try:
            self.sock.sendall(data)
            return len(data)
        except OSError as e:
            raise TransportIOError(f"rfcomm write failed: {e}") from None

    def flush(self) -> None:
        # stream sockets have no user-space buffer
        if self.sock is None:
            raise TransportIOError("flush while channel closed")

    def read(self, n: int) -> bytes:
        if self.sock is None:
            raise TransportIOError("read while channel closed")

        try:
            return self.sock.recv(n)
        except socket.timeout:
            return b""
        except OSError as e:
            raise TransportIOError(f"rfcomm read failed: {e}") from None

    def close(self) -> None:
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None


class RfcommSocketProvider(TransportProvider):
    """
    Native Bluetooth RFCOMM sockets (Linux/BlueZ, via the socket module).

    No pairing or SDP lookup is done here: HC-05 modules expose SPP on
    channel 1, which is the default.
    """

    driver = "rfcomm"

    def __init__(self, channel: int = 1):
        self.channel = int(channel)

    @staticmethod
    def _new_socket() -> socket.socket:
        family = getattr(socket, "AF_BLUETOOTH", None)
        proto = getattr(socket, "BTPROTO_RFCOMM", None)
        if family is None or proto is None:
            raise TransportUnavailableError("Bluetooth sockets not supported on this platform")
        try:
            return socket.socket(family, socket.SOCK_STREAM, proto)
        except OSError as e:
            raise TransportUnavailableError(f"Bluetooth adapter unavailable: {e}") from None

    def is_available(self) -> bool:
        try:
            self._new_socket().close()
        except TransportUnavailableError:
            return False
        return True

    def resolve(self, address: str) -> Tuple[str, int]:
        return (address, self.channel)

    def describe(self, handle: Tuple[str, int]) -> str:
        return f"{handle[0]} ch{handle[1]}"

    def open(self, handle: Tuple[str, int], timeout_s: float | None = None) -> SocketChannel:
        sock = self._new_socket()
        try:
            sock.settimeout(timeout_s)
            sock.connect(handle)
            # blocking writes from here on, bounded by the caller
            sock.settimeout(None)
        except socket.timeout:
            sock.close()
            raise TransportTimeoutError(f"rfcomm connect to {self.describe(handle)} timed out") from None
        except PermissionError as e:
            sock.close()
            raise TransportSecurityError(f"rfcomm connect not permitted: {e}") from None
        except OSError as e:
            sock.close()
            if e.errno in (errno.EACCES, errno.EPERM):
                raise TransportSecurityError(f"rfcomm connect not permitted: {e}") from None
            raise TransportOpenError(f"rfcomm connect to {self.describe(handle)} failed: {e}") from None

        return SocketChannel(sock)
