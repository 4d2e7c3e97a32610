"""
database/sqlite_ops.py

Purpose
-------
Engine-level operations on the embedded SQLite database. The whole database
lives in memory and moves in and out of storage as one serialized buffer
(the exact bytes of a standalone .db file).

Public Interface
----------------
- engine_available() -> bool
- looks_like_sqlite(data: bytes) -> bool
- open_empty() -> sqlite3.Connection
- open_from_bytes(data: bytes) -> sqlite3.Connection      (raises InvalidBufferError)
- serialize(conn: sqlite3.Connection) -> bytes
- quick_check(conn) -> bool

Notes
-----
- Requires Connection.serialize()/deserialize() (Python 3.11+ built against
  SQLite with serialization support).
- Every handle is opened with row_factory = sqlite3.Row and foreign_keys ON.
"""

from __future__ import annotations

import sqlite3

__all__ = [
    "SQLITE_HEADER",
    "InvalidBufferError",
    "engine_available",
    "looks_like_sqlite",
    "open_empty",
    "open_from_bytes",
    "serialize",
    "quick_check",
]

SQLITE_HEADER = b"SQLite format 3\x00"


class InvalidBufferError(Exception):
    """The supplied bytes are not a loadable SQLite database image."""
    pass


def engine_available() -> bool:
    """True when the linked sqlite3 module can load and dump whole in-memory databases."""
    return hasattr(sqlite3.Connection, "serialize") and hasattr(sqlite3.Connection, "deserialize")


def looks_like_sqlite(data: bytes | bytearray | memoryview | None) -> bool:
    """Cheap header sniff before handing bytes to the engine."""
    if not data:
        return False
    return bytes(data[: len(SQLITE_HEADER)]) == SQLITE_HEADER


def _without_wal_flag(data: bytes) -> bytes:
    """
    Files last written in WAL mode carry format bytes 18/19 == 2, which an
    in-memory image cannot honour. Reset them to rollback-journal (1).
    """
    if len(data) > 19 and (data[18] == 2 or data[19] == 2):
        patched = bytearray(data)
        patched[18] = patched[19] = 1
        return bytes(patched)
    return data


def _configure(conn: sqlite3.Connection) -> sqlite3.Connection:
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def open_empty() -> sqlite3.Connection:
    """A fresh, empty in-memory engine instance."""
    return _configure(sqlite3.connect(":memory:"))


def open_from_bytes(data: bytes) -> sqlite3.Connection:
    """
    Build a live in-memory engine from a serialized buffer.

    The buffer is checked (header sniff, then PRAGMA quick_check) before the
    connection is handed out; on any failure the half-built connection is closed
    and InvalidBufferError is raised.
    """
    if not looks_like_sqlite(data):
        raise InvalidBufferError("The data is not an SQLite database (missing file header).")

    conn = sqlite3.connect(":memory:")
    try:
        conn.deserialize(_without_wal_flag(bytes(data)))
        _configure(conn)
        if not quick_check(conn, raise_errors=True):
            raise InvalidBufferError("The database failed its integrity check (PRAGMA quick_check).")
    except InvalidBufferError:
        conn.close()
        raise
    except sqlite3.Error as exc:
        conn.close()
        raise InvalidBufferError(f"The database could not be opened: {exc}") from exc
    return conn


def serialize(conn: sqlite3.Connection) -> bytes:
    """Commit pending work and dump the whole main database as bytes."""
    conn.commit()
    return conn.serialize()


# ----------------------------
# Integrity checks
# ----------------------------

def quick_check(conn: sqlite3.Connection, *, raise_errors: bool = False) -> bool:
    """
    Run PRAGMA quick_check; returns True iff result is exactly 'ok'.
    With raise_errors=True engine errors propagate instead of reading as False.
    """
    try:
        row = conn.execute("PRAGMA quick_check;").fetchone()
    except sqlite3.Error:
        if raise_errors:
            raise
        return False
    return bool(row and isinstance(row[0], str) and row[0].lower() == "ok")
