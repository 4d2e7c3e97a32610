from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Mapping, Optional

from constants import INVOICE_PREFIX, INVOICE_STATUSES
from utils.helpers import new_id, now_iso
from utils.validators import as_float, optional_text

from .base import DomainError, ensure_choice, ensure_non_empty
from .codecs import coerce_taxes
from .documents import DocumentRepo, apply_default_taxes, common_fields, creation_fields
from .line_items import LineItem, TaxLine, compute_totals


@dataclass
class Invoice:
    id: str
    invoice_number: str
    company_id: Optional[str] = None
    customer_name: str = ""
    customer_party_name: Optional[str] = None
    customer_address: str = ""
    customer_gstin: Optional[str] = None
    customer_email: Optional[str] = None
    customer_mobile: Optional[str] = None
    customer_state: Optional[str] = None
    date: str = ""
    due_date: Optional[str] = None
    dispatched_through: Optional[str] = None
    destination: Optional[str] = None
    terms_of_delivery: Optional[str] = None
    motor_vehicle_no: Optional[str] = None
    items: list[LineItem] = field(default_factory=list)
    total_qty: float = 0.0
    subtotal: float = 0.0
    taxes: list[TaxLine] = field(default_factory=list)
    tax_percent: float = 0.0
    tax_amount: float = 0.0
    round_off: float = 0.0
    total: float = 0.0
    declaration: Optional[str] = None
    status: str = "draft"
    created_at: str = ""

    @classmethod
    def new(cls, invoice_number: str, *, customer: Any = None, **fields) -> "Invoice":
        """
        Fresh invoice with id/created_at generated, the customer snapshot
        copied in and the totals computed from items and taxes.
        CGST 9% + SGST 9% apply when no taxes are given.
        """
        ensure_non_empty(invoice_number, "Invoice number")
        data = apply_default_taxes(creation_fields(customer, fields))
        data.update(id=new_id(), created_at=now_iso(), invoice_number=invoice_number.strip())
        inv = cls.from_dict(data)
        inv.validate()
        return inv.with_totals()

    @classmethod
    def from_dict(cls, d: Mapping) -> "Invoice":
        return cls(
            **common_fields(d),
            invoice_number=str(d.get("invoice_number") or ""),
            due_date=optional_text(d.get("due_date")),
            dispatched_through=optional_text(d.get("dispatched_through")),
            destination=optional_text(d.get("destination")),
            terms_of_delivery=optional_text(d.get("terms_of_delivery")),
            motor_vehicle_no=optional_text(d.get("motor_vehicle_no")),
            total_qty=as_float(d.get("total_qty")),
            subtotal=as_float(d.get("subtotal")),
            taxes=coerce_taxes(d.get("taxes")),
            tax_percent=as_float(d.get("tax_percent")),
            tax_amount=as_float(d.get("tax_amount")),
            round_off=as_float(d.get("round_off")),
            total=as_float(d.get("total")),
            declaration=optional_text(d.get("declaration")),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Invoice id")
        ensure_non_empty(self.invoice_number, "Invoice number")
        ensure_choice(self.status, INVOICE_STATUSES, "Invoice status")

    def with_totals(self) -> "Invoice":
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


class InvoicesRepo(DocumentRepo[Invoice]):
    table = "invoices"
    columns = tuple(Invoice.__dataclass_fields__)
    number_column = "invoice_number"
    prefix = INVOICE_PREFIX
    entity = Invoice


__all__ = ["Invoice", "InvoicesRepo", "DomainError"]
