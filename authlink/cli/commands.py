# authlink/cli/commands.py
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Mapping

from authlink.app.catalog import CatalogIndex
from authlink.app.config import AuthLinkConfig
from authlink.app.runner import AppRun, start_run
from authlink.model.outcome import AuthOutcome
from authlink.model.peer import Peer
from authlink.transport.serial_port import is_bluetooth_port, list_candidates

from authlink.cli.args import is_effectively_required


# ---------------- Logging ----------------

def configure_console_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)


# ---------------- Status printing ----------------

def print_status(st) -> None:
    print(f"Peer:      {st.peer}")
    print(f"State:     {st.state.value} (driver={st.driver})")
    if st.connected_for_s is not None:
        print(f"Uptime:    {st.connected_for_s:.1f}s")
    if st.last_error:
        print(f"Last err:  {st.last_error}")


# ---------------- Listing commands ----------------

def cmd_transports(*, catalog: CatalogIndex) -> int:
    transports = catalog.catalog()

    print("Available transports:\n")
    print("Usage:")
    print("  authlink <connect|auth|send> --transport <label> [--peer <label>|--address <mac>] [--<param> <value> ...]\n")

    for type_id in sorted(transports.keys()):
        t = transports[type_id]
        key = getattr(t, "key_param", None)
        params: Mapping[str, Mapping[str, Any]] = getattr(t, "params", {}) or {}

        print(f"{t.label} (id={type_id}, driver={t.driver})")
        if t.description:
            print(f"  {t.description}")
        if key:
            print(f"  key: {key}")

        others = t.ordered_params()[1:] if key in params else t.ordered_params()
        if others:
            opts = []
            for name in others:
                spec = params[name]
                if t.has_default(name):
                    opts.append(f"{name}={spec['default']!r}")
                elif is_effectively_required(spec):
                    opts.append(f"{name}=<required>")
                else:
                    opts.append(f"{name}=<optional>")
            print("  options: " + ", ".join(opts))
        print()

    return 0


def cmd_peers(*, catalog: CatalogIndex) -> int:
    peers = catalog.peers()
    if not peers:
        print("No peers configured.")
        return 0

    default = catalog.default_peer
    for p in peers:
        mark = " (default)" if default is not None and p.label == default.label else ""
        via = f" via {p.transport}" if p.transport else ""
        print(f"{p.label}{mark}: {p.address}{via}")
        if p.description:
            print(f"  {p.description}")
    return 0


def cmd_ports() -> int:
    ports = list_candidates()
    if not ports:
        print("(no serial ports found)")
        return 0

    for p in ports:
        bt = " [bluetooth]" if is_bluetooth_port(p) else ""
        print(f"{p.device}{bt} {(p.description or '')}".rstrip())
        if p.hwid:
            print(f"  hwid: {p.hwid}")
    return 0


# ---------------- Link commands ----------------

def _start_app_run(args, *, transport_type_id: int, transport_overrides: dict, peer: Peer) -> AppRun:
    cfg = AuthLinkConfig(
        metadata_dir=args.metadata_dir,
        transport_type_id=int(transport_type_id),
        peer_address=peer.address,
        transport_overrides=dict(transport_overrides),
        connect_timeout_s=float(args.timeout),
        write_timeout_s=float(args.write_timeout),
        status_log_path=args.status_log,
        passphrase_sha256=getattr(args, "passphrase_sha256", None),
    )

    if args.log_file:
        configure_file_logging(Path(args.log_file))

    return start_run(cfg)


def cmd_connect(args, *, transport_type_id: int, transport_overrides: dict, peer: Peer) -> int:
    run = _start_app_run(args, transport_type_id=transport_type_id, transport_overrides=transport_overrides, peer=peer)
    with run.controller as ctl:
        result = ctl.connect()
        print_status(ctl.status())
        if not result.ok:
            return 1

        if args.hold > 0:
            time.sleep(args.hold)
            print_status(ctl.status())
        return 0


def cmd_send(args, *, transport_type_id: int, transport_overrides: dict, peer: Peer) -> int:
    outcome = AuthOutcome.succeeded() if args.outcome == "succeeded" else AuthOutcome.failed()

    run = _start_app_run(args, transport_type_id=transport_type_id, transport_overrides=transport_overrides, peer=peer)
    with run.controller as ctl:
        if not ctl.connect().ok:
            return 1
        return 0 if ctl.send_outcome(outcome).ok else 1


def cmd_auth(args, *, transport_type_id: int, transport_overrides: dict, peer: Peer) -> int:
    run = _start_app_run(args, transport_type_id=transport_type_id, transport_overrides=transport_overrides, peer=peer)
    with run.controller as ctl:
        # connect in the background while the main thread keeps serving callbacks
        pending_link = ctl.connect_async()
        ctl.callbacks.run_until(pending_link.done, timeout=args.timeout + 1.0)
        if not pending_link.done() or not pending_link.result().ok:
            return 1

        forwarded = ctl.authenticate()
        if not ctl.callbacks.run_until(forwarded.done, timeout=args.auth_timeout):
            ctl.cancel_authentication()
            print("Authentication timed out.")
            return 1

        if forwarded.cancelled():
            return 1
        return 0 if forwarded.result().ok else 1
