from __future__ import annotations

"""Central logging configuration.

The log file gets one JSON object per line, the console a short line per
record with the task or event it concerns. Fields passed as
``extra={"_json_<key>": value}`` show up in both.
"""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict

LOG_DIR_NAME = "logs"
LOG_FILE_BASENAME = "fortnight_planner.log"
EXTRA_PREFIX = "_json_"

# Console lines stay short; these keys name what a record is about
_CONSOLE_KEYS = ("task", "subject", "entry", "path", "error")


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k[len(EXTRA_PREFIX):]: v for k, v in record.__dict__.items() if k.startswith(EXTRA_PREFIX)}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update(record_extras(record))
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """``LEVEL module: message [task=... error=...]``"""

    def __init__(self) -> None:
        super().__init__("%(levelname)s %(module)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        tags = [f"{key}={extras[key]}" for key in _CONSOLE_KEYS if extras.get(key)]
        return f"{line} [{' '.join(tags)}]" if tags else line


def log_file_path(base_dir: Path) -> Path:
    return base_dir / LOG_DIR_NAME / LOG_FILE_BASENAME


def configure_logging(base_dir: Path, level: int = logging.INFO) -> Path:
    logfile = log_file_path(base_dir)
    logfile.parent.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    root.setLevel(level)
    # Re-running (tests, --once then daemon) must not stack handlers
    root.handlers.clear()
    handler = RotatingFileHandler(logfile, maxBytes=512_000, backupCount=5, encoding="utf-8")
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    console = logging.StreamHandler()
    console.setFormatter(ConsoleFormatter())
    root.addHandler(console)
    logging.getLogger(__name__).info("logging initialised", extra={"_json_phase": "startup", "_json_path": str(logfile)})
    return logfile


__all__ = ["ConsoleFormatter", "JsonFormatter", "configure_logging", "log_file_path", "record_extras"]
