import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Optional, TextIO


def parse_level(name: str) -> int:
    """Map a level name such as "info" or "WARNING" to its logging constant."""
    level = getattr(logging, name.strip().upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {name!r}")
    return level


UVICORN_LEVELS = ("critical", "error", "warning", "info", "debug")


def uvicorn_level(name: str) -> str:
    """Canonical lowercase level name for uvicorn, e.g. "warn" -> "warning"."""
    canonical = logging.getLevelName(parse_level(name)).lower()
    if canonical not in UVICORN_LEVELS:
        raise ValueError(f"log level {name!r} is not supported by uvicorn")
    return canonical


# --- Logging ---
class StructuredLogger:
    """Writes one JSON object per line: ts, level, msg and any extra fields."""

    def __init__(self, level: str = "info", stream: Optional[TextIO] = None):
        self.level = parse_level(level)
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def log(self, level: int, msg: str, **fields: Any) -> None:
        if level < self.level:
            return
        log_obj = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "msg": msg,
        }
        log_obj.update(fields)
        line = json.dumps(log_obj, default=str) + "\n"
        with self._lock:
            self.stream.write(line)
            self.stream.flush()

    def debug(self, msg: str, **fields: Any) -> None:
        self.log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self.log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self.log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self.log(logging.ERROR, msg, **fields)
