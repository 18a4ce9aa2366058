# authlink/model/address.py
from __future__ import annotations

import re

from authlink.core.errors import InvalidAddressError

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:-])(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}$")


def is_valid_address(address: object) -> bool:
    return isinstance(address, str) and _MAC_RE.match(address.strip()) is not None


def normalize_address(address: str) -> str:
    """
    Return the canonical form of a Bluetooth device address.

    Accepts ':' or '-' separators in any case; returns upper-case, ':'-separated.
    Raises InvalidAddressError for anything else.
    """
    if not is_valid_address(address):
        raise InvalidAddressError(
            f"Malformed device address {address!r}.",
            hint="Expected six hex octets, e.g. 00:22:12:01:4A:6F",
            details={"address": address},
        )
    return address.strip().replace("-", ":").upper()
