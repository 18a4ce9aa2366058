# authlink/cli/main.py
from __future__ import annotations

from typing import Optional

from authlink.core.errors import AuthLinkError

from authlink.cli.args import parse_args
from authlink.cli.commands import (
    cmd_auth,
    cmd_connect,
    cmd_peers,
    cmd_ports,
    cmd_send,
    cmd_transports,
    configure_console_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args, catalog, transport_type_id, overrides, peer = parse_args(argv)
        configure_console_logging(args.verbose)

        if args.cmd == "transports":
            return cmd_transports(catalog=catalog)
        if args.cmd == "peers":
            return cmd_peers(catalog=catalog)
        if args.cmd == "ports":
            return cmd_ports()

        assert transport_type_id is not None and peer is not None

        link = dict(transport_type_id=transport_type_id, transport_overrides=overrides, peer=peer)
        if args.cmd == "connect":
            return cmd_connect(args, **link)
        if args.cmd == "auth":
            return cmd_auth(args, **link)
        if args.cmd == "send":
            return cmd_send(args, **link)

        return 2
    except AuthLinkError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
