from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Iterable, Mapping, Optional
import sqlite3

from utils.helpers import new_id, now_iso
from utils.validators import as_float, optional_text

from .base import BaseRepo, DomainError, ensure_non_empty, upsert_row
from .codecs import normalize_keys
from .line_items import DEFAULT_UNIT


@dataclass
class ProductBatch:
    id: str
    product_id: str
    batch_number: str = ""
    mfg_date: str = ""            # month/year
    quantity: float = 0.0
    expiry_date: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Mapping, product_id: str = "") -> "ProductBatch":
        d = normalize_keys(d)
        return cls(
            id=str(d.get("id") or new_id()),
            product_id=str(d.get("product_id") or product_id),
            batch_number=str(d.get("batch_number") or ""),
            mfg_date=str(d.get("mfg_date") or ""),
            quantity=as_float(d.get("quantity")),
            expiry_date=optional_text(d.get("expiry_date")),
        )

    def to_row(self) -> dict:
        return asdict(self)


@dataclass
class Product:
    id: str
    name: str
    description: str = ""
    hsn_sac: str = ""
    rate: float = 0.0
    unit: str = DEFAULT_UNIT
    stock: float = 0.0
    created_at: str = ""
    batches: list[ProductBatch] = field(default_factory=list)

    @classmethod
    def new(cls, name: str, **fields) -> "Product":
        ensure_non_empty(name, "Product name")
        return cls.from_dict({**fields, "name": name.strip(), "id": new_id(), "created_at": now_iso()})

    @classmethod
    def from_dict(cls, d: Mapping) -> "Product":
        pid = str(d.get("id") or "")
        raw_batches: Iterable = d.get("batches") or ()
        return cls(
            id=pid,
            name=str(d.get("name") or ""),
            description=str(d.get("description") or ""),
            hsn_sac=str(d.get("hsn_sac") or ""),
            rate=as_float(d.get("rate")),
            unit=str(d.get("unit") or DEFAULT_UNIT),
            stock=as_float(d.get("stock")),
            created_at=str(d.get("created_at") or now_iso()),
            batches=[
                b if isinstance(b, ProductBatch) else ProductBatch.from_dict(b, pid)
                for b in raw_batches
            ],
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Product id")
        ensure_non_empty(self.name, "Product name")

    def to_row(self) -> dict:
        row = asdict(self)
        row.pop("batches")
        return row


# ---- Connection-level helpers (shared with migration and inventory) --------

def write_product(conn: sqlite3.Connection, product: Product) -> None:
    """
    Upsert the product row and rewrite its batch rows. The caller owns the
    transaction.
    """
    upsert_row(conn, "products", product.to_row())
    conn.execute("DELETE FROM product_batches WHERE product_id=?", (product.id,))
    for b in product.batches:
        row = b.to_row()
        row["product_id"] = product.id
        upsert_row(conn, "product_batches", row)


def adjust_stock(conn: sqlite3.Connection, product_id: str, delta: float) -> bool:
    """stock += delta. Returns False when the product does not exist."""
    cur = conn.execute(
        "UPDATE products SET stock = COALESCE(stock, 0) + ? WHERE id=?",
        (float(delta), product_id),
    )
    return cur.rowcount > 0


class ProductsRepo(BaseRepo[Product]):
    table = "products"
    columns = tuple(c for c in Product.__dataclass_fields__ if c != "batches")

    def _batches_for(self, product_ids: list[str]) -> dict[str, list[ProductBatch]]:
        out: dict[str, list[ProductBatch]] = {pid: [] for pid in product_ids}
        if not product_ids:
            return out
        marks = ", ".join("?" for _ in product_ids)
        rows = self.conn.execute(
            "SELECT id, product_id, batch_number, mfg_date, quantity, expiry_date "
            f"FROM product_batches WHERE product_id IN ({marks}) ORDER BY rowid",
            tuple(product_ids),
        ).fetchall()
        for r in rows:
            out[r["product_id"]].append(ProductBatch.from_dict(dict(r)))
        return out

    def _from_row(self, row: sqlite3.Row, batches: Optional[list[ProductBatch]] = None) -> Product:
        p = Product.from_dict(dict(row))
        p.batches = batches if batches is not None else self._batches_for([p.id])[p.id]
        return p

    def list_all(self) -> list[Product]:
        rows = self.conn.execute(self._select_sql()).fetchall()
        batches = self._batches_for([r["id"] for r in rows])
        return [self._from_row(r, batches[r["id"]]) for r in rows]

    def save(self, record: Product) -> None:
        """Product row and its batches are rewritten together."""
        record.validate()
        with self._immediate_tx() as conn:
            write_product(conn, record)

    def delete(self, record_id: str) -> None:
        """Removes the product and every batch row that belongs to it."""
        with self._immediate_tx() as conn:
            conn.execute("DELETE FROM product_batches WHERE product_id=?", (record_id,))
            conn.execute("DELETE FROM products WHERE id=?", (record_id,))


__all__ = ["Product", "ProductBatch", "ProductsRepo", "DomainError", "write_product", "adjust_stock"]
