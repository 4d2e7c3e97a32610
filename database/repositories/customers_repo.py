from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import Mapping, Optional
import sqlite3

from utils.helpers import new_id, now_iso
from utils.validators import optional_text

from .base import BaseRepo, DomainError, ensure_non_empty


@dataclass
class Customer:
    id: str
    name: str
    party_name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    gstin: Optional[str] = None
    state: Optional[str] = None
    created_at: str = ""

    @classmethod
    def new(cls, name: str, **fields) -> "Customer":
        ensure_non_empty(name, "Customer name")
        return cls.from_dict({**fields, "name": name.strip(), "id": new_id(), "created_at": now_iso()})

    @classmethod
    def from_dict(cls, d: Mapping) -> "Customer":
        return cls(
            id=str(d.get("id") or ""),
            name=str(d.get("name") or ""),
            party_name=optional_text(d.get("party_name")),
            email=optional_text(d.get("email")),
            mobile=optional_text(d.get("mobile")),
            address=optional_text(d.get("address")),
            gstin=optional_text(d.get("gstin")),
            state=optional_text(d.get("state")),
            created_at=str(d.get("created_at") or now_iso()),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Customer id")
        ensure_non_empty(self.name, "Customer name")

    def to_row(self) -> dict:
        return asdict(self)

    def snapshot(self) -> dict:
        """customer_* fields copied onto a document when it is created."""
        return {
            "customer_name": self.name,
            "customer_party_name": self.party_name,
            "customer_address": self.address or "",
            "customer_gstin": self.gstin,
            "customer_email": self.email,
            "customer_mobile": self.mobile,
            "customer_state": self.state,
        }


class CustomersRepo(BaseRepo[Customer]):
    table = "customers"
    columns = tuple(Customer.__dataclass_fields__)

    def _from_row(self, row: sqlite3.Row) -> Customer:
        return Customer.from_dict(dict(row))

    def _to_row(self, record: Customer) -> dict:
        return record.to_row()

    def search(self, term: str) -> list[Customer]:
        """
        Case-insensitive LIKE over name/party/mobile/gstin, storage order.
        """
        pattern = f"%{term.strip()}%"
        rows = self.conn.execute(
            self._select_sql(
                "name LIKE ? OR party_name LIKE ? OR mobile LIKE ? OR gstin LIKE ?"
            ),
            (pattern, pattern, pattern, pattern),
        ).fetchall()
        return [self._from_row(r) for r in rows]


__all__ = ["Customer", "CustomersRepo", "DomainError"]
