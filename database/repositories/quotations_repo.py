from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Mapping, Optional

from constants import QUOTATION_PREFIX, QUOTATION_STATUSES
from utils.helpers import new_id, now_iso
from utils.validators import as_float, optional_text

from .base import DomainError, ensure_choice, ensure_non_empty
from .codecs import coerce_taxes
from .documents import DocumentRepo, apply_default_taxes, common_fields, creation_fields
from .line_items import LineItem, TaxLine, compute_totals


@dataclass
class Quotation:
    id: str
    quotation_number: str
    company_id: Optional[str] = None
    customer_name: str = ""
    customer_party_name: Optional[str] = None
    customer_address: str = ""
    customer_gstin: Optional[str] = None
    customer_email: Optional[str] = None
    customer_mobile: Optional[str] = None
    customer_state: Optional[str] = None
    date: str = ""
    valid_until: Optional[str] = None
    subject: Optional[str] = None
    items: list[LineItem] = field(default_factory=list)
    total_qty: float = 0.0
    subtotal: float = 0.0
    taxes: list[TaxLine] = field(default_factory=list)
    tax_percent: float = 0.0
    tax_amount: float = 0.0
    round_off: float = 0.0
    total: float = 0.0
    terms_and_conditions: Optional[str] = None
    notes: Optional[str] = None
    status: str = "draft"
    created_at: str = ""

    @classmethod
    def new(cls, quotation_number: str, *, customer: Any = None, **fields) -> "Quotation":
        ensure_non_empty(quotation_number, "Quotation number")
        data = apply_default_taxes(creation_fields(customer, fields))
        data.update(id=new_id(), created_at=now_iso(), quotation_number=quotation_number.strip())
        q = cls.from_dict(data)
        q.validate()
        return q.with_totals()

    @classmethod
    def from_dict(cls, d: Mapping) -> "Quotation":
        return cls(
            **common_fields(d),
            quotation_number=str(d.get("quotation_number") or ""),
            valid_until=optional_text(d.get("valid_until")),
            subject=optional_text(d.get("subject")),
            total_qty=as_float(d.get("total_qty")),
            subtotal=as_float(d.get("subtotal")),
            taxes=coerce_taxes(d.get("taxes")),
            tax_percent=as_float(d.get("tax_percent")),
            tax_amount=as_float(d.get("tax_amount")),
            round_off=as_float(d.get("round_off")),
            total=as_float(d.get("total")),
            terms_and_conditions=optional_text(d.get("terms_and_conditions")),
            notes=optional_text(d.get("notes")),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Quotation id")
        ensure_non_empty(self.quotation_number, "Quotation number")
        ensure_choice(self.status, QUOTATION_STATUSES, "Quotation status")

    def with_totals(self) -> "Quotation":
        t = compute_totals(self.items, self.taxes)
        return replace(
            self,
            items=t.items,
            taxes=t.taxes,
            total_qty=t.total_qty,
            subtotal=t.subtotal,
            tax_percent=t.tax_percent,
            tax_amount=t.tax_amount,
            round_off=t.round_off,
            total=t.total,
        )

    def to_row(self) -> dict:
        return asdict(self)


class QuotationsRepo(DocumentRepo[Quotation]):
    table = "quotations"
    columns = tuple(Quotation.__dataclass_fields__)
    number_column = "quotation_number"
    prefix = QUOTATION_PREFIX
    entity = Quotation


__all__ = ["Quotation", "QuotationsRepo", "DomainError"]
