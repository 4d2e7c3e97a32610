from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Mapping, Optional
import sqlite3

from utils.helpers import new_id, now_iso
from utils.validators import optional_text

from .base import BaseRepo, DomainError, ensure_non_empty


@dataclass
class Company:
    id: str
    name: str
    address: str = ""
    mobile: str = ""
    email: str = ""
    gstin: Optional[str] = None
    tax_number: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    bank_ifsc: Optional[str] = None
    # images as encoded strings (data URLs)
    logo: Optional[str] = None
    stamp: Optional[str] = None
    signature: Optional[str] = None
    created_at: str = ""

    @classmethod
    def new(cls, name: str, **fields) -> "Company":
        ensure_non_empty(name, "Company name")
        return cls.from_dict({**fields, "name": name.strip(), "id": new_id(), "created_at": now_iso()})

    @classmethod
    def from_dict(cls, d: Mapping) -> "Company":
        """Build from a snake_case mapping (a table row or a normalised legacy object)."""
        return cls(
            id=str(d.get("id") or ""),
            name=str(d.get("name") or ""),
            address=str(d.get("address") or ""),
            mobile=str(d.get("mobile") or ""),
            email=str(d.get("email") or ""),
            gstin=optional_text(d.get("gstin")),
            tax_number=optional_text(d.get("tax_number")),
            bank_name=optional_text(d.get("bank_name")),
            bank_account=optional_text(d.get("bank_account")),
            bank_ifsc=optional_text(d.get("bank_ifsc")),
            logo=optional_text(d.get("logo")),
            stamp=optional_text(d.get("stamp")),
            signature=optional_text(d.get("signature")),
            created_at=str(d.get("created_at") or now_iso()),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Company id")
        ensure_non_empty(self.name, "Company name")

    def to_row(self) -> dict:
        return asdict(self)


class CompaniesRepo(BaseRepo[Company]):
    table = "companies"
    columns = tuple(Company.__dataclass_fields__)

    def _from_row(self, row: sqlite3.Row) -> Company:
        return Company.from_dict(dict(row))

    def _to_row(self, record: Company) -> dict:
        return record.to_row()

    def resolve_selected(self, selected_id: Optional[str]) -> Optional[Company]:
        """
        The company the app should treat as selected: the remembered id when it
        still exists, otherwise the first company, otherwise None.
        """
        if selected_id:
            found = self.get(selected_id)
            if found is not None:
                return found
        r = self.conn.execute(self._select_sql() + " LIMIT 1").fetchone()
        return self._from_row(r) if r else None


__all__ = ["Company", "CompaniesRepo", "DomainError"]
