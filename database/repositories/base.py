from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Generic, Iterator, Optional, Sequence, TypeVar

from utils.validators import non_empty

from .codecs import MalformedBlobError

if TYPE_CHECKING:
    from ..controller import DatabaseController

T = TypeVar("T")
N = TypeVar("N")

_log = logging.getLogger(__name__)


# Domain-level error the caller can surface directly (e.g., toast/snackbar)
class DomainError(Exception):
    pass


def ensure_non_empty(value: Optional[str], field_label: str) -> None:
    if not non_empty(value):
        raise DomainError(f"{field_label} cannot be empty.")


def ensure_choice(value: str, choices: Sequence[str], field_label: str) -> None:
    if value not in choices:
        raise DomainError(f"{field_label} must be one of: {', '.join(choices)} (got {value!r}).")


def upsert_row(conn: sqlite3.Connection, table: str, row: dict) -> None:
    """
    Insert-or-overwrite by id. Every column is written; the row keeps its
    original position (rowid) when it already exists.
    """
    cols = list(row.keys())
    placeholders = ", ".join("?" for _ in cols)
    updates = ", ".join(f"{c}=excluded.{c}" for c in cols if c != "id")
    conn.execute(
        f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders}) "
        f"ON CONFLICT(id) DO UPDATE SET {updates}",
        tuple(row[c] for c in cols),
    )


class BaseRepo(Generic[T]):
    """
    Shared plumbing for the entity repositories.

    Repositories never keep a connection: every call borrows the live handle
    from the controller, because an import can swap it for a new one.
    """

    table: str = ""
    columns: tuple[str, ...] = ()

    def __init__(self, db: "DatabaseController"):
        self.db = db
        self._log = logging.getLogger(type(self).__module__)

    @property
    def conn(self) -> sqlite3.Connection:
        return self.db.require_handle()

    # ---------------------------- TX helper ----------------------------

    @contextmanager
    def _immediate_tx(self) -> Iterator[sqlite3.Connection]:
        """
        Start an IMMEDIATE transaction, commit on success, rollback on error.
        Marks the controller dirty once the commit went through.
        """
        conn = self.conn
        if conn.in_transaction:
            conn.commit()
        cur = conn.cursor()
        try:
            cur.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cur.close()
        self.db.mark_dirty()

    # ---------------------------- Row mapping ----------------------------

    def _from_row(self, row: sqlite3.Row) -> T:
        raise NotImplementedError

    def _to_row(self, record: T) -> dict:
        raise NotImplementedError

    def _validate(self, record: T) -> None:
        validate = getattr(record, "validate", None)
        if callable(validate):
            validate()

    def _decode_nested(
        self,
        decoder: Callable[[Optional[str]], list[N]],
        text: Optional[str],
        record_id: str,
        column: str,
    ) -> list[N]:
        """
        Malformed embedded JSON never breaks a listing: the record comes back
        with an empty collection and a warning is logged.
        """
        try:
            return decoder(text)
        except MalformedBlobError as exc:
            self._log.warning("%s %s: unreadable %s, loaded as empty (%s)", self.table, record_id, column, exc)
            return []

    def _select_sql(self, where: str = "") -> str:
        sql = f"SELECT {', '.join(self.columns)} FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        return sql + " ORDER BY rowid"

    # ---------------------------- Queries ----------------------------

    def list_all(self) -> list[T]:
        """Every row in storage order (no implicit sort)."""
        rows = self.conn.execute(self._select_sql()).fetchall()
        return [self._from_row(r) for r in rows]

    def get(self, record_id: str) -> Optional[T]:
        r = self.conn.execute(self._select_sql("id=?"), (record_id,)).fetchone()
        return self._from_row(r) if r else None

    def count(self) -> int:
        return int(self.conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0])

    # ---------------------------- Mutations ----------------------------

    def save(self, record: T) -> None:
        """
        Upsert by id (full overwrite, no partial patching). Does not flush to
        storage; call DatabaseController.save() for durability.
        """
        self._validate(record)
        row = self._to_row(record)
        with self._immediate_tx() as conn:
            upsert_row(conn, self.table, row)

    def delete(self, record_id: str) -> None:
        with self._immediate_tx() as conn:
            conn.execute(f"DELETE FROM {self.table} WHERE id=?", (record_id,))
