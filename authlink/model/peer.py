from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .address import normalize_address


@dataclass(frozen=True)
class Peer:
    """A known remote peripheral (catalog entry from peers.yml)."""

    label: str
    address: str
    description: str = ""
    transport: Optional[str] = None

    @classmethod
    def create(
        cls,
        label: str,
        address: str,
        *,
        description: str = "",
        transport: Optional[str] = None,
    ) -> "Peer":
        return cls(
            label=str(label),
            address=normalize_address(address),
            description=str(description),
            transport=str(transport) if transport else None,
        )
