from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import yaml

from authlink.core.errors import InvalidAddressError
from authlink.utils.hashing import sha256_file
from .peer import Peer
from .transport import TransportType


class MetadataLoader:
    """
    Loads all static metadata from YAML into strongly-typed model classes.

    Loads:
        - transports.yml
        - peers.yml

    After calling load_all(), exposes:
        self.transports   : dict[int, TransportType]
        self.peers        : dict[str, Peer]   (keyed by lower-case label)
        self.default_peer : Optional[str]     (label)

    Also exposes:
        self.file_hashes : dict[str, str]  (filename -> sha256)
    """

    def __init__(self, config_dir: str | Path):
        self.config_dir = Path(config_dir)
        self.transports: Dict[int, TransportType] = {}
        self.peers: Dict[str, Peer] = {}
        self.default_peer: Optional[str] = None
        self.file_hashes: Dict[str, str] = {}

    # ---------------------------------------------------------------------
    # YAML utility
    # ---------------------------------------------------------------------
    def _load_yaml(self, filename: str) -> dict:
        full_path = self.config_dir / filename
        if not full_path.exists():
            raise FileNotFoundError(f"Missing metadata file: {full_path}")

        with open(full_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    # ---------------------------------------------------------------------
    # Public entry point
    # ---------------------------------------------------------------------
    def load_all(self) -> None:
        """Load all metadata categories + compute file hashes."""
        self.transports.clear()
        self.peers.clear()
        self.default_peer = None
        self.file_hashes.clear()

        self.file_hashes["transports.yml"] = sha256_file(self.config_dir / "transports.yml")
        self.file_hashes["peers.yml"] = sha256_file(self.config_dir / "peers.yml")

        self._load_transports()
        self._load_peers()

    # ---------------------------------------------------------------------
    # Transports
    # ---------------------------------------------------------------------
    def _load_transports(self) -> None:
        data = self._load_yaml("transports.yml")

        transports = data.get("transports")
        if not isinstance(transports, dict):
            raise ValueError("transports.yml is missing 'transports' root node")

        for tid_raw, tinfo in transports.items():
            tid = int(tid_raw)
            if not isinstance(tinfo, dict):
                raise ValueError(f"Transport {tid} entry must be a mapping")

            label = tinfo.get("label")
            if not label:
                raise ValueError(f"Transport {tid} is missing 'label'")

            driver = tinfo.get("driver")
            if not driver:
                raise ValueError(f"Transport {tid} is missing 'driver'")

            key_param = tinfo.get("key_param")
            if not key_param:
                raise ValueError(f"Transport {tid} is missing 'key_param'")

            params = tinfo.get("params") or {}
            if not isinstance(params, dict):
                raise ValueError(f"Transport {tid} 'params' must be a mapping")

            if key_param not in params:
                raise ValueError(
                    f"Transport {tid} key_param '{key_param}' not defined in params"
                )

            self.transports[tid] = TransportType(
                type_id=tid,
                label=str(label),
                driver=str(driver),
                params=params,  # schema validation lives in TransportParamResolver
                key_param=str(key_param),
                description=str(tinfo.get("description", "")),
            )

    # ---------------------------------------------------------------------
    # Peers
    # ---------------------------------------------------------------------
    def _load_peers(self) -> None:
        data = self._load_yaml("peers.yml")

        peers = data.get("peers")
        if not isinstance(peers, dict):
            raise ValueError("peers.yml is missing 'peers' root node")

        for label, pinfo in peers.items():
            if not isinstance(pinfo, dict):
                raise ValueError(f"Peer '{label}' entry must be a mapping")

            address = pinfo.get("address")
            if not address:
                raise ValueError(f"Peer '{label}' is missing 'address'")

            try:
                peer = Peer.create(
                    str(label),
                    str(address),
                    description=pinfo.get("description", ""),
                    transport=pinfo.get("transport"),
                )
            except InvalidAddressError as e:
                raise ValueError(f"Peer '{label}': {e.message}") from None

            key = peer.label.lower()
            if key in self.peers:
                raise ValueError(f"Duplicate peer label '{label}'")
            self.peers[key] = peer

        default = data.get("default")
        if default is not None:
            if str(default).lower() not in self.peers:
                raise ValueError(f"Default peer '{default}' is not defined")
            self.default_peer = str(default)

    # ---------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------
    def get_transport(self, tid: int) -> Optional[TransportType]:
        return self.transports.get(tid)

    def get_peer(self, label: str) -> Optional[Peer]:
        return self.peers.get(label.lower())
