"""
database/storage/fsops.py

Purpose
-------
File-system utilities with attention to atomicity and cross-platform behavior.

Public interface
----------------
- atomic_write_bytes(dest: str, data: bytes, *, verbose: bool = False, logger: Optional[logging.Logger] = None) -> None
- read_file_bytes(path: str) -> Optional[bytes]
- export_file_name(day: Optional[date] = None) -> str

Notes
-----
- Writes go to a temp file in the destination folder, are fsync'ed, then
  os.replace()'d over the target so a crash never leaves a half-written database.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from constants import DB_FILE_NAME

__all__ = [
    "atomic_write_bytes",
    "read_file_bytes",
    "export_file_name",
]

# ----------------------------
# Helpers (private)
# ----------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _log(logger: Optional[logging.Logger], verbose: bool, message: str, **fields) -> None:
    """Emit a single line of key=value fields if verbose logging is enabled."""
    if not (verbose and logger):
        return
    parts = [message]
    for k, v in fields.items():
        parts.append(f"{k}={v}")
    logger.debug(" ".join(parts))


def _fsync_dir(path: Path) -> None:
    """Best-effort fsync for a directory (important after rename/replace)."""
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        # not supported on every platform (e.g. directories on Windows)
        pass


# ----------------------------
# Public API
# ----------------------------

def atomic_write_bytes(
    dest: str,
    data: bytes,
    *,
    verbose: bool = False,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Write `data` to `dest` atomically: temp file in the same folder → fsync →
    os.replace() → fsync folder. Raises OSError on failure; the previous file
    (if any) is left untouched in that case.
    """
    dest_p = Path(dest).resolve()
    dest_p.parent.mkdir(parents=True, exist_ok=True)
    _log(logger, verbose, "atomic_write.start", ts=_now_iso(), dest=str(dest_p), size=len(data))

    fd, tmp_name = tempfile.mkstemp(prefix=".acc_", suffix=".tmp", dir=str(dest_p.parent))
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp), str(dest_p))
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    _fsync_dir(dest_p.parent)
    _log(logger, verbose, "atomic_write.replaced", ts=_now_iso(), final=str(dest_p), final_size=dest_p.stat().st_size)


def read_file_bytes(path: str) -> Optional[bytes]:
    """Whole-file read; None when the file does not exist. Other OSErrors propagate."""
    p = Path(path)
    if not p.exists():
        return None
    if not p.is_file():
        raise IsADirectoryError(f"Not a file: {p}")
    return p.read_bytes()


def export_file_name(day: Optional[date] = None) -> str:
    """Suggested export name, e.g. accounting_data_2025-09-16.db."""
    stem, _, ext = DB_FILE_NAME.rpartition(".")
    return f"{stem}_{(day or date.today()).isoformat()}.{ext}"
