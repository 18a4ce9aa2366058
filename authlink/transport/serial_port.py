# authlink/transport/serial_port.py
from __future__ import annotations

import errno
import sys
from typing import Optional

import serial
from serial import SerialException
from serial.tools import list_ports

from .base import Channel, TransportProvider
from .errors import (
    TransportIOError,
    TransportOpenError,
    TransportResolveError,
    TransportSecurityError,
)

# Serial Port Profile service class, shows up in Windows Bluetooth COM hwids
SPP_UUID = "00001101-0000-1000-8000-00805F9B34FB"

_SECURITY_ERRNOS = (errno.EACCES, errno.EPERM)


def list_candidates():
    """Return a list of pyserial port info objects (for error messages/UI)."""
    return list(list_ports.comports())


def is_bluetooth_port(p) -> bool:
    if SPP_UUID in (p.hwid or "").upper():
        return True
    desc = " ".join(filter(None, [p.device, p.description])).lower()
    return "rfcomm" in desc or "bluetooth" in desc


def _compact(address: str) -> str:
    return address.replace(":", "").upper()


class SerialChannel(Channel):
    """Channel over an open pyserial port."""

    def __init__(self, ser: serial.Serial):
        self.ser: Optional[serial.Serial] = ser

    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def write(self, data: bytes) -> int:
        if self.ser is None:
            raise TransportIOError("write while channel closed")

        try:
            return self.ser.write(data)
        except SerialException as e:
            raise TransportIOError(f"serial write failed (peer gone?): {e}") from None

    def flush(self) -> None:
        if self.ser is None:
            raise TransportIOError("flush while channel closed")

        try:
            self.ser.flush()
        except SerialException as e:
            raise TransportIOError(f"serial flush failed: {e}") from None

    def read(self, n: int) -> bytes:
        if self.ser is None:
            raise TransportIOError("read while channel closed")

        try:
            buf = b""
            while len(buf) < n:
                chunk = self.ser.read(n - len(buf))
                if not chunk:
                    # timeout reached → return whatever is collected
                    break
                buf += chunk
            return buf
        except SerialException as e:
            raise TransportIOError(f"serial read failed: {e}") from None

    def close(self) -> None:
        if self.ser is not None:
            try:
                self.ser.close()
            finally:
                self.ser = None


class SerialPortProvider(TransportProvider):
    """
    Bluetooth SPP link exposed by the OS as a serial port (pyserial).

    On Linux the peer is bound with `rfcomm bind` and appears as /dev/rfcommN;
    on Windows it is an outgoing Bluetooth COM port whose hwid embeds the
    peer address. When `port` is given it is used as-is, otherwise the
    address is matched against the enumerated ports.
    """

    driver = "serial"

    def __init__(
        self,
        port: Optional[str] = None,
        baudrate: int = 9600,
        write_timeout: float = 2.0,
        exclusive: bool = True,
    ):
        self.port = port
        self.baudrate = baudrate
        self.write_timeout = write_timeout
        self.exclusive = exclusive

    def is_available(self) -> bool:
        if self.port:
            return True
        return bool(list_candidates())

    def resolve(self, address: str) -> str:
        if self.port:
            return self.port

        want = _compact(address)
        for p in list_candidates():
            if want in (p.hwid or "").upper():
                return p.device

        listing = "\n".join(
            f"- {p.device} {(p.description or '')}".strip() for p in list_candidates()
        ) or "(no serial ports found)"
        raise TransportResolveError(
            f"no serial port bound to {address}; pass --port explicitly.\nCandidates:\n{listing}"
        )

    def open(self, handle: str, timeout_s: float | None = None) -> SerialChannel:
        kwargs = dict(
            baudrate=self.baudrate,
            timeout=timeout_s,
            write_timeout=self.write_timeout,
        )
        if self.exclusive and sys.platform != "win32":
            # Windows doesn’t support this flag.
            kwargs["exclusive"] = True

        try:
            ser = serial.Serial(handle, **kwargs)
            ser.reset_input_buffer()
            ser.reset_output_buffer()
        except PermissionError as e:
            raise TransportSecurityError(f"access to {handle!r} denied: {e}") from None
        except SerialException as e:
            if getattr(e, "errno", None) in _SECURITY_ERRNOS:
                raise TransportSecurityError(f"access to {handle!r} denied: {e}") from None
            raise TransportOpenError(f"could not open serial port {handle!r}: {e}") from None

        return SerialChannel(ser)
