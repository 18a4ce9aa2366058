# authlink/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from authlink.app.config import AuthLinkConfig
from authlink.app.controller import AuthLinkController
from authlink.app.sinks import LoggingStatusSink, PrintStatusSink
from authlink.auth.oracle import AuthOracle
from authlink.auth.passphrase import PassphraseAuthOracle
from authlink.core.context import Context
from authlink.core.recording.status import StatusTraceLogger
from authlink.interfaces.status_sink import StatusSink
from authlink.transport.factory import ConfiguredTransport


@dataclass(frozen=True)
class AppRun:
    controller: AuthLinkController
    context: Context
    transport: ConfiguredTransport
    status_trace: Optional[StatusTraceLogger]


def build_sinks(
    cfg: AuthLinkConfig,
    *,
    echo: Optional[Callable[[str], None]] = print,
) -> tuple[List[StatusSink], Optional[StatusTraceLogger]]:
    sinks: List[StatusSink] = [LoggingStatusSink()]
    if echo is not None:
        sinks.append(PrintStatusSink(write=echo))

    trace: Optional[StatusTraceLogger] = None
    if cfg.status_log_path:
        trace = StatusTraceLogger(
            file_path=Path(cfg.status_log_path),
            logger=logging.getLogger("authlink.status.trace"),
        )
        sinks.append(trace)
    return sinks, trace


def start_run(
    cfg: AuthLinkConfig,
    *,
    context: Optional[Context] = None,
    oracle: Optional[AuthOracle] = None,
    echo: Optional[Callable[[str], None]] = print,
) -> AppRun:
    log = logging.getLogger(__name__)

    context = context or Context.load(cfg.metadata_dir)
    created = context.transport_factory.create(
        type_id=cfg.transport_type_id,
        overrides=dict(cfg.transport_overrides),
    )
    log.info(
        "RUN_START peer=%s driver=%s link=%s params=%s",
        cfg.peer_address,
        created.meta.driver,
        created.link_name,
        dict(created.params),
    )

    sinks, trace = build_sinks(cfg, echo=echo)

    if oracle is None:
        oracle = PassphraseAuthOracle(cfg.passphrase_sha256)

    controller = AuthLinkController(
        cfg,
        transport=created,
        oracle=oracle,
        sinks=sinks,
        logger=log,
    )

    return AppRun(
        controller=controller,
        context=context,
        transport=created,
        status_trace=trace,
    )
