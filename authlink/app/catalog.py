# authlink/app/catalog.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from authlink.core.context import Context
from authlink.core.errors import PeerConfigError, TransportConfigError
from authlink.model.address import is_valid_address, normalize_address
from authlink.model.peer import Peer
from authlink.model.transport import TransportType


@dataclass(frozen=True, slots=True)
class CatalogIndex:
    """
    App-facing view of transports.yml + peers.yml (read-only).

    Notes:
      - Use `from_context()` when a Context is already loaded.
      - `load()` is a convenience for cli/tests.
    """
    _transports: Mapping[int, TransportType]
    _peers: Mapping[str, Peer]
    _default_peer: Optional[str] = None

    @classmethod
    def from_context(cls, context: Context) -> "CatalogIndex":
        return cls(
            _transports=context.transport_factory.transports(),
            _peers=dict(context.peers),
            _default_peer=context.default_peer,
        )

    @classmethod
    def load(cls, *, metadata_dir: Optional[str] = None) -> "CatalogIndex":
        return cls.from_context(Context.load(metadata_dir))

    # ---------------- transports ----------------
    def catalog(self) -> Mapping[int, TransportType]:
        """Return the raw type_id -> TransportType mapping."""
        return self._transports

    def list(self) -> list[TransportType]:
        """Return transports ordered by type_id."""
        return [self._transports[k] for k in sorted(self._transports.keys())]

    def meta_for_type_id(self, type_id: int) -> TransportType:
        meta = self._transports.get(int(type_id))
        if meta is None:
            raise TransportConfigError(
                f"Unknown transport type id '{type_id}'.",
                hint="Run: authlink transports",
            )
        return meta

    def resolve_type_id_by_label(self, label: str) -> int:
        want = label.strip().lower()

        matches = [
            int(tid)
            for tid, meta in self._transports.items()
            if str(getattr(meta, "label", "")).strip().lower() == want
        ]

        if not matches:
            known = ", ".join(sorted({str(getattr(m, "label", "")) for m in self._transports.values()}))
            raise TransportConfigError(
                f"Unknown transport '{label}'.",
                hint=f"Run: authlink transports (known: {known})",
            )
        if len(matches) > 1:
            raise TransportConfigError(
                f"Ambiguous transport label '{label}'.",
                hint="Transport labels must be unique.",
            )
        return int(matches[0])

    def schema_for_type_id(self, type_id: int) -> Mapping[str, Mapping[str, Any]]:
        meta = self.meta_for_type_id(type_id)
        params: Mapping[str, Mapping[str, Any]] = getattr(meta, "params", {}) or {}
        return params

    # ---------------- peers ----------------
    def peers(self) -> list[Peer]:
        return [self._peers[k] for k in sorted(self._peers.keys())]

    @property
    def default_peer(self) -> Optional[Peer]:
        if self._default_peer is None:
            return None
        return self._peers.get(self._default_peer.lower())

    def resolve_peer(self, selector: Optional[str] = None) -> Peer:
        """
        Resolve a peer by label or raw address; None selects the default peer.
        A raw address that is not in peers.yml yields an ad-hoc Peer.
        """
        if selector is None:
            peer = self.default_peer
            if peer is None:
                raise PeerConfigError(
                    "No peer given and no default peer configured.",
                    hint="Pass --peer <label> or --address <AA:BB:CC:DD:EE:FF>.",
                )
            return peer

        peer = self._peers.get(selector.strip().lower())
        if peer is not None:
            return peer

        if is_valid_address(selector):
            address = normalize_address(selector)
            for p in self._peers.values():
                if p.address == address:
                    return p
            return Peer(label=address, address=address)

        known = ", ".join(sorted(p.label for p in self._peers.values())) or "(none)"
        raise PeerConfigError(
            f"Unknown peer '{selector}'.",
            hint=f"Run: authlink peers (known: {known})",
        )
