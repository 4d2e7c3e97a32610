"""
Shared plumbing for the numbered, company-scoped documents (invoices,
quotations, delivery challans).

Each document carries a snapshot of the customer taken at creation time and
embeds its line items (and tax lines, where it has any) as JSON columns.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Generic, Mapping, Optional, TypeVar

from constants import DEFAULT_TAXES
from utils.helpers import now_iso, today_str
from utils.validators import optional_text

from .base import BaseRepo
from .codecs import coerce_items, decode_items, decode_taxes, encode_items, encode_taxes
from .line_items import TaxLine
from .numbering import next_sequence_number

D = TypeVar("D")


def default_taxes() -> list[TaxLine]:
    return [TaxLine(name=name, percent=percent) for name, percent in DEFAULT_TAXES]


def common_fields(d: Mapping[str, Any], *, default_status: str = "draft") -> dict[str, Any]:
    """Fields every document shares, read leniently from a snake_case mapping."""
    return {
        "id": str(d.get("id") or ""),
        "company_id": optional_text(d.get("company_id")),
        "customer_name": str(d.get("customer_name") or ""),
        "customer_party_name": optional_text(d.get("customer_party_name")),
        "customer_address": str(d.get("customer_address") or ""),
        "customer_gstin": optional_text(d.get("customer_gstin")),
        "customer_email": optional_text(d.get("customer_email")),
        "customer_mobile": optional_text(d.get("customer_mobile")),
        "customer_state": optional_text(d.get("customer_state")),
        "date": str(d.get("date") or today_str()),
        "items": coerce_items(d.get("items")),
        "status": str(d.get("status") or default_status),
        "created_at": str(d.get("created_at") or now_iso()),
    }


def apply_default_taxes(data: dict[str, Any]) -> dict[str, Any]:
    """New invoices and quotations get CGST 9% + SGST 9% unless taxes were given."""
    if data.get("taxes") is None:
        data["taxes"] = default_taxes()
    return data


def creation_fields(customer: Any, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a customer snapshot under the caller's explicit fields."""
    merged: dict[str, Any] = {}
    if customer is not None:
        merged.update(customer.snapshot())
    merged.update(fields)
    return merged


class DocumentRepo(BaseRepo[D], Generic[D]):
    """
    list_all/get/save/delete plus the derived document operations:
    next_number() and list_for_company().
    """

    number_column: str = ""
    prefix: str = ""
    has_taxes: bool = True
    entity: Any = None

    def _from_row(self, row: sqlite3.Row) -> D:
        d = dict(row)
        d["items"] = self._decode_nested(decode_items, d.get("items"), d["id"], "items")
        if self.has_taxes:
            d["taxes"] = self._decode_nested(decode_taxes, d.get("taxes"), d["id"], "taxes")
        return self.entity.from_dict(d)

    def _to_row(self, record: D) -> dict:
        row = record.to_row()
        row["items"] = encode_items(record.items)
        if self.has_taxes:
            row["taxes"] = encode_taxes(record.taxes)
        return row

    def list_for_company(self, company_id: Optional[str]) -> list[D]:
        """Documents owned by `company_id` (None -> documents with no company)."""
        if company_id is None:
            rows = self.conn.execute(self._select_sql("company_id IS NULL")).fetchall()
        else:
            rows = self.conn.execute(self._select_sql("company_id=?"), (company_id,)).fetchall()
        return [self._from_row(r) for r in rows]

    def next_number(self, company_id: Optional[str] = None) -> str:
        """
        Next number in sequence: highest numeric part + 1 with this document's
        prefix. With `company_id` the sequence is limited to that company.
        """
        sql = f"SELECT {self.number_column} FROM {self.table}"
        params: tuple = ()
        if company_id is not None:
            sql += " WHERE company_id=?"
            params = (company_id,)
        numbers = [r[0] for r in self.conn.execute(sql, params).fetchall()]
        return next_sequence_number(numbers, self.prefix)


__all__ = [
    "DocumentRepo",
    "common_fields",
    "creation_fields",
    "default_taxes",
    "apply_default_taxes",
]
