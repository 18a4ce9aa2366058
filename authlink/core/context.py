# authlink/core/context.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

from authlink.model.loader import MetadataLoader
from authlink.model.peer import Peer
from authlink.model.transport import TransportType

from authlink.transport.registry import TransportDriverRegistry
from authlink.transport.factory import TransportFactory

from authlink.core.errors import TransportConfigError

DEFAULT_METADATA_DIR = Path(__file__).resolve().parents[1] / "metadata"


@dataclass(frozen=True)
class Context:
    transports: Dict[int, TransportType]
    peers: Dict[str, Peer]
    default_peer: Optional[str]
    metadata_hashes: Dict[str, str]
    transport_factory: TransportFactory

    @classmethod
    def load(
        cls,
        metadata_dir: str | Path | None = None,
        *,
        drivers: Optional[TransportDriverRegistry] = None,
    ) -> "Context":
        """
        Load transport + peer metadata and construct a transport factory.

        `drivers` is injectable to support testing and custom driver registries.
        If not provided, the default built-in registry is used.
        """
        metadata_dir = Path(metadata_dir) if metadata_dir is not None else DEFAULT_METADATA_DIR

        ml = MetadataLoader(metadata_dir)
        try:
            ml.load_all()
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            raise TransportConfigError(
                "Failed to load metadata.",
                hint=str(e),
                details={"metadata_dir": str(metadata_dir)},
            ) from None
        except Exception as e:
            raise TransportConfigError(
                "Unexpected error while loading metadata.",
                hint=str(e),
                details={"metadata_dir": str(metadata_dir)},
            ) from None

        drivers = drivers or TransportDriverRegistry.default()
        factory = TransportFactory(ml.transports, drivers)

        return cls(
            transports=ml.transports,
            peers=ml.peers,
            default_peer=ml.default_peer,
            metadata_hashes=dict(ml.file_hashes),
            transport_factory=factory,
        )
