from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Mapping, Optional
import sqlite3

from constants import VOUCHER_TYPES
from utils.helpers import new_id, now_iso, today_str
from utils.validators import as_float, optional_text

from .base import BaseRepo, DomainError, ensure_choice, ensure_non_empty


@dataclass
class Voucher:
    id: str
    voucher_number: str
    company_id: Optional[str] = None
    type: str = "payment"
    date: str = ""
    amount: float = 0.0
    payment_mode: str = ""
    narration: str = ""
    party: Optional[str] = None
    created_at: str = ""

    @classmethod
    def new(cls, voucher_number: str, type: str = "payment", **fields) -> "Voucher":
        ensure_non_empty(voucher_number, "Voucher number")
        v = cls.from_dict(
            {**fields, "voucher_number": voucher_number.strip(), "type": type,
             "id": new_id(), "created_at": now_iso()}
        )
        v.validate()
        return v

    @classmethod
    def from_dict(cls, d: Mapping) -> "Voucher":
        return cls(
            id=str(d.get("id") or ""),
            voucher_number=str(d.get("voucher_number") or ""),
            company_id=optional_text(d.get("company_id")),
            type=str(d.get("type") or "payment"),
            date=str(d.get("date") or today_str()),
            amount=as_float(d.get("amount")),
            payment_mode=str(d.get("payment_mode") or ""),
            narration=str(d.get("narration") or ""),
            party=optional_text(d.get("party")),
            created_at=str(d.get("created_at") or now_iso()),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Voucher id")
        ensure_non_empty(self.voucher_number, "Voucher number")
        ensure_choice(self.type, VOUCHER_TYPES, "Voucher type")

    def to_row(self) -> dict:
        return asdict(self)


class VouchersRepo(BaseRepo[Voucher]):
    table = "vouchers"
    columns = tuple(Voucher.__dataclass_fields__)

    def _from_row(self, row: sqlite3.Row) -> Voucher:
        return Voucher.from_dict(dict(row))

    def _to_row(self, record: Voucher) -> dict:
        return record.to_row()

    def list_for_company(self, company_id: Optional[str]) -> list[Voucher]:
        if company_id is None:
            rows = self.conn.execute(self._select_sql("company_id IS NULL")).fetchall()
        else:
            rows = self.conn.execute(self._select_sql("company_id=?"), (company_id,)).fetchall()
        return [self._from_row(r) for r in rows]


__all__ = ["Voucher", "VouchersRepo", "DomainError"]
