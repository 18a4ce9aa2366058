# authlink/transport/registry.py
from __future__ import annotations

from typing import Dict, List, Mapping, Type

from .base import TransportProvider
from .errors import TransportError
from .rfcomm import RfcommSocketProvider
from .serial_port import SerialPortProvider

BUILTIN_PROVIDERS = (SerialPortProvider, RfcommSocketProvider)


class TransportDriverRegistry:
    """
    Which provider class answers to a transports.yml `driver:` key.

    Built-in radios register under their class `driver` attribute ("serial"
    for a bound /dev/rfcommN, "rfcomm" for a raw Bluetooth socket). Tests and
    embedders hand Context.load(drivers=...) their own mapping so that no
    real radio is touched. Keys compare case-insensitively.
    """

    def __init__(self, drivers: Mapping[str, Type[TransportProvider]]):
        self._by_key: Dict[str, Type[TransportProvider]] = {}
        for key, provider_cls in drivers.items():
            self._by_key[key.lower()] = provider_cls

    @classmethod
    def of(cls, *providers: Type[TransportProvider]) -> "TransportDriverRegistry":
        return cls({p.driver: p for p in providers})

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls.of(*BUILTIN_PROVIDERS)

    def known(self) -> List[str]:
        return sorted(self._by_key)

    def has(self, driver: str) -> bool:
        return driver.lower() in self._by_key

    def get_class(self, driver: str) -> Type[TransportProvider]:
        try:
            return self._by_key[driver.lower()]
        except KeyError:
            raise TransportError(
                f"No provider for driver '{driver}' (known: {', '.join(self.known()) or 'none'})"
            ) from None

    def create(self, driver: str, **params) -> TransportProvider:
        """Build an unopened provider; `params` come from TransportParamResolver."""
        return self.get_class(driver)(**params)
