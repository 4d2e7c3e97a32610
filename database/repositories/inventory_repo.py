"""
Repository for inventory transactions.

Every write keeps product stock consistent with the transaction history:
recording adds (+qty for 'in', -qty for 'out'), deleting reverses it, and
saving over an existing transaction swaps the old effect for the new one.
Each of these runs in a single SQLite transaction with its stock update.

Transactions whose product no longer exists are kept as history; the stock
update is simply skipped. Negative stock is allowed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Mapping, Optional
import sqlite3

from constants import INVENTORY_TYPES
from utils.helpers import new_id, now_iso, today_str
from utils.validators import as_float, optional_text

from .base import BaseRepo, DomainError, ensure_choice, ensure_non_empty, upsert_row
from .products_repo import adjust_stock


@dataclass
class InventoryTransaction:
    id: str
    product_id: str
    product_name: str = ""       # snapshot at recording time
    type: str = "in"             # 'in' | 'out'
    quantity: float = 0.0
    date: str = ""
    reference: str = ""
    notes: Optional[str] = None
    created_at: str = ""

    @classmethod
    def new(cls, product_id: str, type: str, quantity: float, *, product_name: str = "", **fields) -> "InventoryTransaction":
        ensure_non_empty(product_id, "Product")
        tx = cls.from_dict(
            {**fields, "product_id": product_id, "product_name": product_name, "type": type,
             "quantity": quantity, "id": new_id(), "created_at": now_iso()}
        )
        tx.validate()
        return tx

    @classmethod
    def from_dict(cls, d: Mapping) -> "InventoryTransaction":
        return cls(
            id=str(d.get("id") or ""),
            product_id=str(d.get("product_id") or ""),
            product_name=str(d.get("product_name") or ""),
            type=str(d.get("type") or "in"),
            quantity=as_float(d.get("quantity")),
            date=str(d.get("date") or today_str()),
            reference=str(d.get("reference") or ""),
            notes=optional_text(d.get("notes")),
            created_at=str(d.get("created_at") or now_iso()),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Transaction id")
        ensure_non_empty(self.product_id, "Product")
        ensure_choice(self.type, INVENTORY_TYPES, "Transaction type")
        if self.quantity < 0:
            raise DomainError("Quantity cannot be negative.")

    @property
    def stock_delta(self) -> float:
        return self.quantity if self.type == "in" else -self.quantity

    def to_row(self) -> dict:
        return asdict(self)


class InventoryRepo(BaseRepo[InventoryTransaction]):
    table = "inventory_transactions"
    columns = tuple(InventoryTransaction.__dataclass_fields__)

    def _from_row(self, row: sqlite3.Row) -> InventoryTransaction:
        return InventoryTransaction.from_dict(dict(row))

    def _to_row(self, record: InventoryTransaction) -> dict:
        return record.to_row()

    def _apply(self, conn: sqlite3.Connection, product_id: str, delta: float) -> None:
        if delta and not adjust_stock(conn, product_id, delta):
            self._log.debug("Product %s not found; stock left unchanged", product_id)

    # ---- Queries ----------------------------------------------------------

    def list_for_product(self, product_id: str) -> list[InventoryTransaction]:
        rows = self.conn.execute(self._select_sql("product_id=?"), (product_id,)).fetchall()
        return [self._from_row(r) for r in rows]

    # ---- Mutations --------------------------------------------------------

    def record_transaction(self, tx: InventoryTransaction) -> None:
        """
        Insert `tx` and adjust the product's stock atomically.
        Raises DomainError when a transaction with the same id already exists.
        """
        tx.validate()
        with self._immediate_tx() as conn:
            exists = conn.execute(
                "SELECT 1 FROM inventory_transactions WHERE id=?", (tx.id,)
            ).fetchone()
            if exists:
                raise DomainError(f"Inventory transaction {tx.id} is already recorded.")
            upsert_row(conn, self.table, tx.to_row())
            self._apply(conn, tx.product_id, tx.stock_delta)

    def save(self, record: InventoryTransaction) -> None:
        """
        Upsert by id. An existing transaction's stock effect is reversed
        before the new one is applied.
        """
        record.validate()
        with self._immediate_tx() as conn:
            old = conn.execute(self._select_sql("id=?"), (record.id,)).fetchone()
            if old is not None:
                prev = self._from_row(old)
                self._apply(conn, prev.product_id, -prev.stock_delta)
            upsert_row(conn, self.table, record.to_row())
            self._apply(conn, record.product_id, record.stock_delta)

    def delete(self, record_id: str) -> None:
        """Remove the transaction and undo its stock effect."""
        with self._immediate_tx() as conn:
            old = conn.execute(self._select_sql("id=?"), (record_id,)).fetchone()
            if old is None:
                return
            prev = self._from_row(old)
            conn.execute("DELETE FROM inventory_transactions WHERE id=?", (record_id,))
            self._apply(conn, prev.product_id, -prev.stock_delta)


__all__ = ["InventoryTransaction", "InventoryRepo", "DomainError"]
