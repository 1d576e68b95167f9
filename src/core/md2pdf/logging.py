from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "core.md2pdf"


@dataclass(slots=True)
class StageTimings:
    validate_ms: float = 0.0
    compose_ms: float = 0.0
    load_ms: float = 0.0
    render_ms: float = 0.0

    @property
    def total_ms(self) -> float:
        return self.validate_ms + self.compose_ms + self.load_ms + self.render_ms


@dataclass(slots=True)
class RunLogEntry:
    run_id: str
    status: str
    error_code: str | None
    markdown_chars: int
    output_bytes: int
    page_ranges: str | None
    timings: StageTimings
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timings"] = asdict(self.timings)
        payload["timestamp"] = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.timestamp))
        return payload


class RunLogger:
    """Appends one JSON line per conversion; a ``None`` path disables it."""

    def __init__(self, log_file: Path | None) -> None:
        self._log_file = log_file
        self._lock = threading.Lock()

    @property
    def log_file(self) -> Path | None:
        return self._log_file

    def append(self, entry: RunLogEntry) -> None:
        if self._log_file is None:
            return
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._lock:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            with self._log_file.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    for handler in package_logger.handlers:
        handler.setLevel(level)


__all__ = ["RunLogEntry", "RunLogger", "StageTimings", "configure_logging"]
