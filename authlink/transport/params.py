# authlink/transport/params.py
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from authlink.core.errors import TransportConfigError
from authlink.model.transport import TransportType


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected str, got {type(value).__name__}")
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int, got {type(value).__name__}")
    return value


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected float, got {type(value).__name__}")
    return float(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise TypeError(f"Expected bool (or 0/1), got {type(value).__name__}")


_CASTS: Dict[str, Callable[[Any], Any]] = {
    "str": _as_str,
    "int": _as_int,
    "float": _as_float,
    "bool": _as_bool,
}


class TransportParamResolver:
    """
    Turn a TransportType param schema plus user overrides into provider kwargs.

    Schema keys: type (str|int|float|bool), default, required, choices.
    An override of None means "not given" (argparse leaves unset flags None),
    so the schema default applies. Optional params without a default are left
    out and the provider's own default wins.
    """

    def __init__(self, transports: Mapping[int, TransportType]):
        self._transports = transports

    def resolve(self, type_id: int, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        meta = self._transports.get(int(type_id))
        if not meta:
            raise TransportConfigError(
                f"No transport metadata id={type_id}.",
                hint="Check transport_type_id against transports.yml.",
                details={"type_id": int(type_id)},
            )

        given = {k: v for k, v in (overrides or {}).items() if v is not None}
        unknown = sorted(set(given) - set(meta.params))
        if unknown:
            raise TransportConfigError(
                f"Unknown transport param '{unknown[0]}' for transport '{meta.label}'.",
                hint=f"Valid params: {sorted(meta.params.keys())}",
                details={"label": meta.label, "driver": meta.driver, "param": unknown[0]},
            )

        resolved: Dict[str, Any] = {}
        for name, spec in meta.params.items():
            if name in given:
                raw = given[name]
            elif "default" in spec:
                raw = spec["default"]
            elif spec.get("required", False):
                raise TransportConfigError(
                    f"Missing required transport param '{name}' for transport '{meta.label}'.",
                    hint=f"Pass --{name.replace('_', '-')} on the command line.",
                    details={"label": meta.label, "driver": meta.driver, "param": name},
                )
            else:
                continue

            resolved[name] = self._checked(meta, name, spec, raw)

        return resolved

    @staticmethod
    def _checked(meta: TransportType, name: str, spec: Mapping[str, Any], raw: Any) -> Any:
        type_name = spec.get("type")
        cast = _CASTS.get(type_name)
        try:
            if cast is None:
                raise TypeError(f"Unknown schema type '{type_name}'")
            value = None if raw is None else cast(raw)
        except (TypeError, ValueError) as e:
            raise TransportConfigError(
                f"Invalid value for transport '{meta.label}' param '{name}'.",
                hint=str(e),
                details={"label": meta.label, "param": name, "value": raw, "expected_type": type_name},
            ) from None

        choices = spec.get("choices")
        if choices is not None and value is not None and value not in choices:
            raise TransportConfigError(
                f"Value {value!r} not allowed for transport '{meta.label}' param '{name}'.",
                hint=f"Allowed: {list(choices)}",
                details={"label": meta.label, "param": name, "value": value},
            )
        return value
