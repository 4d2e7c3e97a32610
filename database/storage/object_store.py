from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional

from constants import MODE_OBJECT_STORE, OBJECT_STORE_KEY, OBJECT_STORE_SUFFIX
from .base import FilePicker, PickerMixin, StorageIdentity


class ObjectStoreAdapter(PickerMixin):
    """
    Local object-store backend. Each namespace is one store file holding
    key → blob pairs; the database buffer sits under a single fixed key.
    """

    def __init__(
        self,
        namespace: str,
        root: Path | str,
        picker: Optional[FilePicker] = None,
        logger: Optional[logging.Logger] = None,
        key: str = OBJECT_STORE_KEY,
    ) -> None:
        if not namespace or not namespace.strip():
            raise ValueError("Object store namespace cannot be empty.")
        self._namespace = namespace.strip()
        self._root = Path(root).expanduser().resolve()
        self._key = key
        self._picker = picker
        self._log = logger or logging.getLogger(__name__)

    @property
    def store_path(self) -> Path:
        return self._root / f"{self._namespace}{OBJECT_STORE_SUFFIX}"

    def _connect(self) -> sqlite3.Connection:
        self._root.mkdir(parents=True, exist_ok=True)
        con = sqlite3.connect(str(self.store_path))
        con.execute(
            "CREATE TABLE IF NOT EXISTS objects ("
            "  key   TEXT PRIMARY KEY,"
            "  value BLOB NOT NULL"
            ")"
        )
        return con

    def read(self) -> Optional[bytes]:
        if not self.store_path.exists():
            self._log.info("No object store at %s", self.store_path)
            return None
        try:
            with closing(self._connect()) as con:
                row = con.execute("SELECT value FROM objects WHERE key=?", (self._key,)).fetchone()
        except (sqlite3.Error, OSError) as exc:
            self._log.warning("Object store %s could not be read: %s", self.store_path, exc)
            return None
        return bytes(row[0]) if row else None

    def write(self, data: bytes) -> bool:
        try:
            with closing(self._connect()) as con:
                with con:
                    con.execute(
                        "INSERT INTO objects(key, value) VALUES (?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                        (self._key, sqlite3.Binary(data)),
                    )
        except (sqlite3.Error, OSError) as exc:
            self._log.error("Object store %s could not be written: %s", self.store_path, exc)
            return False
        return True

    def identity(self) -> StorageIdentity:
        return StorageIdentity(mode=MODE_OBJECT_STORE, location=f"{self._namespace}/{self._key}")
