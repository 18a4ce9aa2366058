from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping


@dataclass(frozen=True)
class TransportType:
    """
    One entry of transports.yml: how to reach a peer (serial port or RFCOMM
    socket) and which settings the CLI may override.

    `key_param` names the setting that tells two links of the same type apart
    (the port for serial, the RFCOMM channel for sockets).
    """

    type_id: int
    label: str
    driver: str
    params: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    key_param: str = field(default="port", kw_only=True)
    description: str = field(default="", kw_only=True)

    def ordered_params(self) -> List[str]:
        """Param names with the key param first, then schema order."""
        head = [self.key_param] if self.key_param in self.params else []
        return head + [n for n in self.params if n != self.key_param]

    def has_default(self, name: str) -> bool:
        return "default" in self.params.get(name, {})

    def summary(self) -> Dict[str, Any]:
        return {"type_id": self.type_id, "label": self.label, "driver": self.driver}
