"""Structured logging: console output and a JSON-lines event log."""

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from loghub.core.config import config


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        return f"{m}m {seconds % 60:.0f}s"
    if seconds >= 1:
        return f"{seconds:.1f}s"
    return f"{seconds * 1000:.0f}ms"


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class HubLogger:
    def __init__(self):
        self._file_lock = threading.Lock()
        self._log_file_handle = None
        self.events_file = config.logs_dir / "events.log" if config.logs_dir else None
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("loghub")
        self.console.setLevel(getattr(logging, config.log_level, logging.INFO))
        if not self.console.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter("%(asctime)s │ %(message)s", datefmt="%H:%M:%S")
            )
            self.console.addHandler(handler)

    def log_event(self, event: LogEvent) -> None:
        if self.events_file is None:
            return
        with self._file_lock:
            if self._log_file_handle is None:
                self.events_file.parent.mkdir(parents=True, exist_ok=True)
                self._log_file_handle = open(self.events_file, "a", encoding="utf-8")
            self._log_file_handle.write(event.to_json() + "\n")
            self._log_file_handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def search_started(self, query: str, candidates: list[str]) -> float:
        """Log the routed query; returns a start mark for search_done."""
        self.log_event(
            LogEvent(
                event_type="SEARCH_START",
                timestamp=self._timestamp(),
                data={"query": query, "candidates": candidates},
            )
        )
        self.console.info(f"Search: {query or '(defaults)'} -> {', '.join(candidates) or 'no backends'}")
        return time.monotonic()

    def backend_failed(self, source: str, kind: str, message: str) -> None:
        self.log_event(
            LogEvent(
                event_type="BACKEND_FAILED",
                timestamp=self._timestamp(),
                data={"source": source, "kind": kind, "message": message[:500]},
            )
        )
        self.console.warning(f"Backend {source} failed [{kind}]: {message[:200]}")

    def search_done(self, started: float, total: int, returned: int, failed: int) -> None:
        elapsed = time.monotonic() - started
        self.log_event(
            LogEvent(
                event_type="SEARCH_DONE",
                timestamp=self._timestamp(),
                data={
                    "total": total,
                    "returned": returned,
                    "failed_backends": failed,
                    "duration_seconds": round(elapsed, 3),
                },
            )
        )
        suffix = f", {failed} backend(s) failed" if failed else ""
        self.console.info(f"Search done: {returned} results (total {total}) in {_format_duration(elapsed)}{suffix}")

    def registry_changed(self, action: str, source: str, content_hash: str, size: int) -> None:
        self.log_event(
            LogEvent(
                event_type="REGISTRY_CHANGED",
                timestamp=self._timestamp(),
                data={"action": action, "source": source, "hash": content_hash, "size": size},
            )
        )
        self.console.info(f"Registry: {action} {source} ({content_hash[:8]}), {size} active")

    def close(self) -> None:
        with self._file_lock:
            if self._log_file_handle is not None:
                self._log_file_handle.close()
                self._log_file_handle = None


logger = HubLogger()
