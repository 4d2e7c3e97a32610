"""
database/controller.py

Owns the single live engine handle and its round trips to storage.

Lifecycle
---------
initialize()  -> load the stored buffer, or create a fresh database, apply the
                 schema, run the one-time legacy migration and persist it.
save()        -> serialize the whole engine and hand the bytes to the adapter.
import_bytes  -> parse first, swap after: the old handle survives a bad file.

Repositories borrow the handle per call through require_handle(); they never
keep it, because import_bytes() replaces it.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from utils.loggers import get_logger

from . import sqlite_ops
from .errors import (
    DatabaseBusyError,
    DatabaseError,
    DatabaseInitError,
    DatabaseNotReadyError,
    ImportFailedError,
)
from .migration import JsonFileLegacyStore, LegacyStore, MigrationReport, migrate_legacy
from .schema import create_tables
from .storage import FilePicker, HostStorageAdapter, StorageIdentity, build_adapter

if TYPE_CHECKING:
    from config import AppConfig


class DatabaseController:
    def __init__(
        self,
        adapter: HostStorageAdapter,
        legacy_store: Optional[LegacyStore] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.adapter = adapter
        self.legacy_store = legacy_store
        self._log = logger or get_logger(__name__)
        self._conn: Optional[sqlite3.Connection] = None
        self._importing = False
        self._dirty = False
        self._last_saved: Optional[datetime] = None
        self.last_migration: Optional[MigrationReport] = None

    @classmethod
    def from_config(
        cls,
        config: "AppConfig",
        picker: Optional[FilePicker] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "DatabaseController":
        adapter = build_adapter(config.storage, picker=picker, logger=logger)
        legacy = JsonFileLegacyStore(config.legacy_file) if config.legacy_file else None
        return cls(adapter, legacy_store=legacy, logger=logger)

    # ---------------------------- State ----------------------------

    @property
    def is_dirty(self) -> bool:
        """True when the engine holds changes not yet written to storage."""
        return self._dirty

    @property
    def last_saved(self) -> Optional[datetime]:
        return self._last_saved

    @property
    def is_ready(self) -> bool:
        return self._conn is not None

    def mark_dirty(self) -> None:
        self._dirty = True

    def identity(self) -> StorageIdentity:
        return self.adapter.identity()

    def current_handle(self) -> Optional[sqlite3.Connection]:
        """The live handle, or None before initialize()."""
        if self._importing:
            raise DatabaseBusyError("An import is in progress. Try again when it has finished.")
        return self._conn

    def require_handle(self) -> sqlite3.Connection:
        conn = self.current_handle()
        if conn is None:
            raise DatabaseNotReadyError("The database is not ready yet. Initialize it first.")
        return conn

    # ---------------------------- Lifecycle ----------------------------

    def initialize(self) -> sqlite3.Connection:
        """
        Bring the engine up. Idempotent: a second call returns the same handle.
        Raises DatabaseInitError when the engine cannot be loaded at all.
        """
        if self._conn is not None:
            return self._conn

        if not sqlite_ops.engine_available():
            raise DatabaseInitError(
                "This Python's sqlite3 module cannot load in-memory database images "
                "(Python 3.11+ is required). Restart the application with a supported interpreter."
            )

        conn = self._load_existing()
        if conn is not None:
            self._conn = conn
            self._dirty = False
            self._log.info("Database loaded from %s", self.identity().location)
            return conn

        try:
            conn = sqlite_ops.open_empty()
            create_tables(conn)
        except sqlite3.Error as exc:
            raise DatabaseInitError(f"Could not create a new database: {exc}") from exc

        self.last_migration = migrate_legacy(conn, self.legacy_store, self._log)
        self._conn = conn
        self._dirty = True
        if not self.save():
            self._log.warning("New database could not be persisted yet; changes stay in memory")
        else:
            self._log.info("New database created at %s", self.identity().location)
        return conn

    def _load_existing(self) -> Optional[sqlite3.Connection]:
        """Prior buffer from storage, or None when there is none or it is unusable."""
        data = self.adapter.read()
        if not data:
            return None
        try:
            conn = sqlite_ops.open_from_bytes(data)
        except sqlite_ops.InvalidBufferError as exc:
            self._log.warning("Stored database is unreadable, starting a new one: %s", exc)
            return None
        try:
            create_tables(conn)
        except sqlite3.Error as exc:
            conn.close()
            self._log.warning("Stored database has an incompatible schema, starting a new one: %s", exc)
            return None
        return conn

    def save(self) -> bool:
        """
        Persist the whole engine through the adapter. False (never an
        exception) when there is no handle or storage refused the write.
        """
        conn = self._conn
        if conn is None:
            return False
        try:
            data = sqlite_ops.serialize(conn)
        except sqlite3.Error as exc:
            self._log.error("Could not serialize the database: %s", exc)
            return False
        if not self.adapter.write(data):
            self._log.warning("Storage rejected the database write (%d bytes)", len(data))
            return False
        self._dirty = False
        self._last_saved = datetime.now()
        return True

    def export_bytes(self) -> Optional[bytes]:
        """Current engine image (a standalone .db file), or None without a handle."""
        conn = self.current_handle()
        if conn is None:
            return None
        try:
            return sqlite_ops.serialize(conn)
        except sqlite3.Error as exc:
            self._log.error("Could not serialize the database for export: %s", exc)
            return None

    def import_bytes(self, data: bytes) -> bool:
        """
        Replace the whole database with `data` (never merges) and persist it.

        The bytes are parsed into a new engine first; only when that succeeds is
        the old handle closed and swapped out. Invalid data raises
        ImportFailedError and leaves the current database untouched.

        Returns the result of persisting the imported database.
        """
        if self._importing:
            raise DatabaseBusyError("Another import is already in progress.")
        if not isinstance(data, (bytes, bytearray, memoryview)) or not data:
            raise ImportFailedError("Import failed: the selected file is empty or not a database file.")

        self._importing = True
        try:
            try:
                new_conn = sqlite_ops.open_from_bytes(bytes(data))
            except sqlite_ops.InvalidBufferError as exc:
                raise ImportFailedError(f"Import failed: {exc}") from exc
            try:
                create_tables(new_conn)
            except sqlite3.Error as exc:
                new_conn.close()
                raise ImportFailedError(
                    f"Import failed: the file is a database but not one this application can use ({exc})."
                ) from exc

            old, self._conn = self._conn, new_conn
            if old is not None:
                old.close()
            self._dirty = True
        finally:
            self._importing = False

        self._log.info("Database replaced by import (%d bytes)", len(data))
        return self.save()

    def close(self) -> None:
        """Release the handle. Unsaved changes are lost; call save() first."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None


__all__ = [
    "DatabaseController",
    "DatabaseError",
    "DatabaseInitError",
    "DatabaseNotReadyError",
    "DatabaseBusyError",
    "ImportFailedError",
]
