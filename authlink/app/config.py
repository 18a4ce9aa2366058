from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class AuthLinkConfig:
    metadata_dir: Optional[str]
    transport_type_id: int
    peer_address: str
    transport_overrides: dict = field(default_factory=dict)
    connect_timeout_s: float = 10.0
    write_timeout_s: float = 2.0
    status_log_path: Optional[str] = None
    passphrase_sha256: Optional[str] = None
