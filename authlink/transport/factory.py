# authlink/transport/factory.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from authlink.core.errors import TransportConfigError
from authlink.model.transport import TransportType
from authlink.transport.base import TransportProvider
from authlink.transport.errors import TransportError
from authlink.transport.params import TransportParamResolver
from authlink.transport.registry import TransportDriverRegistry


@dataclass(frozen=True)
class ConfiguredTransport:
    """A provider ready to hand to a Session, plus the settings it was built from."""

    provider: TransportProvider
    params: Dict[str, Any]
    meta: TransportType

    @property
    def key_param_value(self) -> str:
        value = self.params.get(self.meta.key_param)
        return "" if value is None else str(value)

    @property
    def link_name(self) -> str:
        """`label` or `label:key` (e.g. "serial:/dev/rfcomm0") for logs and status."""
        key = self.key_param_value
        return f"{self.meta.label}:{key}" if key else self.meta.label


class TransportFactory:
    """
    Turns a transports.yml entry and CLI overrides into a ConfiguredTransport.

    Nothing here opens a port or socket; the Session does that on connect().
    Every failure surfaces as TransportConfigError so the CLI can print one
    message with a hint.
    """

    def __init__(self, transports: Mapping[int, TransportType], drivers: TransportDriverRegistry):
        self._transports = transports
        self._drivers = drivers
        self._params = TransportParamResolver(transports)

    def transports(self) -> Mapping[int, TransportType]:
        return dict(self._transports)

    def create(self, type_id: int, overrides: Optional[Dict[str, Any]] = None) -> ConfiguredTransport:
        # unknown type ids and bad params are reported by the resolver
        params = self._params.resolve(type_id, overrides)
        meta = self._transports[int(type_id)]

        try:
            provider = self._drivers.create(meta.driver, **params)
        except (TransportError, TypeError) as e:
            raise TransportConfigError(
                f"Cannot build transport '{meta.label}' with driver '{meta.driver}'.",
                hint=str(e),
                details={"type_id": meta.type_id, "driver": meta.driver, "params": params},
            ) from None

        return ConfiguredTransport(provider=provider, params=params, meta=meta)
