# authlink/core/recording/status.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from authlink.interfaces.status_sink import StatusEvent, StatusSink
from authlink.core.recording.async_writer import AsyncWriter


@dataclass
class StatusTraceLogger(StatusSink):
    """Appends every StatusEvent as one JSON line (status trace for post-mortems)."""

    file_path: Path
    logger: Optional[logging.Logger] = None
    flush_interval_s: float = 0.5

    def __post_init__(self) -> None:
        self._log = self.logger or logging.getLogger(__name__)
        self.file_path = Path(self.file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._writer: Optional[AsyncWriter] = AsyncWriter(
            path=self.file_path,
            flush_interval=self.flush_interval_s,
            logger=self._log,
        )

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    def on_status(self, event: StatusEvent) -> None:
        if self._writer is None:
            return
        self._writer.write(json.dumps(event.as_dict(), ensure_ascii=False, default=str))
