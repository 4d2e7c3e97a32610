"""
modules/data_management/logging_utils.py

Append-only JSON-lines log for storage operations (sync, export, import,
autosave), kept apart from the console log so it can be attached to support
requests.

Public API
----------
- get_logger(file_path=None, level=logging.INFO) -> logging.Logger
- log_event(logger, op, phase, message, extra=None, level=logging.INFO)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from constants import DATA_MANAGEMENT_LOG, LOG_DIR

__all__ = ["get_logger", "log_event"]

_DEFAULT_LOG_FILE = Path(LOG_DIR) / DATA_MANAGEMENT_LOG
_LOGGER_NAME = "data_management"


class _JsonLineFormatter(logging.Formatter):
    """
    One object per line:
      {"ts":"2025-09-16T12:00:01.123Z","level":"INFO","name":"data_management","msg":"...","extra":{...}}
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra_payload", None)
        if isinstance(extra, dict):
            payload["extra"] = extra
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_logger(file_path: Optional[str | Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Logger writing JSON lines to logs/data_management.log (or `file_path`),
    mirrored to stderr at WARNING and above. Handlers are attached once.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return logger

    log_file = Path(file_path) if file_path else _DEFAULT_LOG_FILE
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), mode="a", encoding="utf-8", delay=True)
    except OSError:
        fh = None

    if fh is not None:
        fh.setLevel(level)
        fh.setFormatter(_JsonLineFormatter())
        logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setLevel(logging.WARNING if fh is not None else level)
    sh.setFormatter(_JsonLineFormatter())
    logger.addHandler(sh)
    return logger


def log_event(
    logger: logging.Logger,
    op: str,
    phase: str,
    message: str,
    extra: Dict[str, object] | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Structured event line.

    Args:
        op: "sync", "export", "import", "autosave", ...
        phase: "start", "done", "failed", "cancelled", ...
        extra: paths, sizes, storage mode; never overrides op/phase.
    """
    payload: Dict[str, object] = {"op": op, "phase": phase}
    for k, v in (extra or {}).items():
        payload.setdefault(k, v)
    logger.log(level, message, extra={"extra_payload": payload})
