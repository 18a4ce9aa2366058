# authlink/cli/args.py
from __future__ import annotations

import argparse
import os
from typing import Any, Mapping, Optional, Tuple

from authlink.app.catalog import CatalogIndex
from authlink.model.peer import Peer


DEFAULT_TRANSPORT = "serial"
PASSPHRASE_ENV = "AUTHLINK_PASSPHRASE_SHA256"

# commands that open a link (everything but the catalog listings)
LINK_COMMANDS = ("connect", "auth", "send")


# ---------------- transport helpers (CLI-local) ----------------

def cast_type_name(type_name: Any):
    """
    Cast argparse values based on metadata schema type strings.

    NOTE: This only affects CLI parsing. TransportParamResolver still
    validates/casts strictly.
    """
    if type_name == "str":
        return str
    if type_name == "int":
        return int
    if type_name == "float":
        return float
    if type_name == "bool":

        def _to_bool(v: str) -> bool:
            s = str(v).strip().lower()
            if s in ("1", "true"):
                return True
            if s in ("0", "false"):
                return False
            raise argparse.ArgumentTypeError(f"Invalid bool literal '{v}' (use true/false)")

        return _to_bool

    return str


def is_effectively_required(spec: Mapping[str, Any]) -> bool:
    if "default" in spec:
        return False
    return bool(spec.get("required", False))


def _positive_float(v: str) -> float:
    f = float(v)
    if f <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {v}")
    return f


# ---------------- argparse (two-stage) ----------------

def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("-v", "--verbose", action="count", default=0, help="More console logging (-v, -vv).")
    p.add_argument("--metadata-dir", default=None, help="Directory with transports.yml and peers.yml.")


def _add_link_args(p: argparse.ArgumentParser, *, transport_required: bool = False) -> None:
    p.add_argument(
        "--transport",
        required=transport_required,
        default=None,
        help="Transport label (see: authlink transports). Defaults to the peer's transport.",
    )
    who = p.add_mutually_exclusive_group()
    who.add_argument("--peer", default=None, help="Peer label from peers.yml (default peer if omitted).")
    who.add_argument("--address", default=None, help="Peer device address, e.g. 00:22:12:01:4A:6F.")
    p.add_argument("--timeout", type=_positive_float, default=10.0, help="Connect timeout in seconds.")
    p.add_argument("--write-timeout", type=_positive_float, default=2.0, help="Write timeout in seconds.")
    p.add_argument("--status-log", default=None, help="Append status events as JSON lines to this file.")
    p.add_argument("--log-file", default=None, help="Also write the application log to this file.")


def _add_command_args(sub) -> dict[str, argparse.ArgumentParser]:
    parsers = {}
    for name in ("transports", "peers", "ports"):
        parsers[name] = sub.add_parser(name)
        _add_common(parsers[name])

    p_connect = sub.add_parser("connect", help="Connect, report status, disconnect.")
    p_connect.add_argument("--hold", type=float, default=0.0, help="Keep the link open for N seconds.")
    parsers["connect"] = p_connect

    p_auth = sub.add_parser("auth", help="Connect, authenticate, forward the outcome.")
    p_auth.add_argument(
        "--passphrase-sha256",
        default=os.environ.get(PASSPHRASE_ENV),
        help=f"SHA-256 hex digest of the passphrase (or set {PASSPHRASE_ENV}).",
    )
    p_auth.add_argument("--auth-timeout", type=_positive_float, default=120.0)
    parsers["auth"] = p_auth

    p_send = sub.add_parser("send", help="Connect and forward a fixed outcome.")
    p_send.add_argument("--outcome", choices=("succeeded", "failed"), required=True)
    parsers["send"] = p_send

    for name in LINK_COMMANDS:
        _add_common(parsers[name])

    return parsers


def build_base_parser() -> argparse.ArgumentParser:
    """
    Stage 1 parser: command + --transport + app-level args.
    Transport params are NOT declared here.
    """
    parser = argparse.ArgumentParser(prog="authlink")
    sub = parser.add_subparsers(dest="cmd", required=True)
    parsers = _add_command_args(sub)
    for name in LINK_COMMANDS:
        _add_link_args(parsers[name])
    return parser


def build_full_parser_for(*, catalog: CatalogIndex, transport_type_id: int) -> argparse.ArgumentParser:
    """
    Stage 2 parser: includes dynamic transport param flags based on metadata.
    """
    meta = catalog.meta_for_type_id(transport_type_id)
    params: Mapping[str, Mapping[str, Any]] = getattr(meta, "params", {}) or {}
    key_param = getattr(meta, "key_param", None)

    parser = argparse.ArgumentParser(prog="authlink")
    sub = parser.add_subparsers(dest="cmd", required=True)
    parsers = _add_command_args(sub)

    def add_transport_flags(p: argparse.ArgumentParser) -> None:
        _add_link_args(p)

        # key param first
        ordered = meta.ordered_params()
        for name in ordered:
            spec = params[name]
            p.add_argument(
                f"--{name.replace('_', '-')}",
                dest=name,
                required=is_effectively_required(spec),
                default=None,
                type=cast_type_name(spec.get("type")),
                help=f"Transport {'key param' if name == key_param else 'param'} for '{meta.label}'"
                + (f" (default: {spec['default']!r})" if "default" in spec else "")
                + ".",
            )

    for name in LINK_COMMANDS:
        add_transport_flags(parsers[name])

    return parser


def parse_args(
    argv: Optional[list[str]] = None,
) -> Tuple[argparse.Namespace, CatalogIndex, Optional[int], dict, Optional[Peer]]:
    """
    Returns: (args, catalog, transport_type_id, overrides, peer)

    - transport_type_id and peer are None for the listing commands
    - overrides contains only non-None transport param values
    """
    base_parser = build_base_parser()
    base, _unknown = base_parser.parse_known_args(argv)

    catalog = CatalogIndex.load(metadata_dir=base.metadata_dir)

    if base.cmd not in LINK_COMMANDS:
        args = base_parser.parse_args(argv)
        return args, catalog, None, {}, None

    peer = catalog.resolve_peer(base.address or base.peer)
    label = base.transport or peer.transport or DEFAULT_TRANSPORT
    type_id = catalog.resolve_type_id_by_label(label)

    full_parser = build_full_parser_for(catalog=catalog, transport_type_id=type_id)
    args = full_parser.parse_args(argv)

    params = catalog.schema_for_type_id(type_id)
    overrides = {
        name: getattr(args, name)
        for name in params.keys()
        if getattr(args, name, None) is not None
    }

    return args, catalog, type_id, overrides, peer
