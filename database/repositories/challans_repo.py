from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Mapping, Optional

from constants import CHALLAN_PREFIX, CHALLAN_REASONS, CHALLAN_STATUSES
from utils.helpers import new_id, now_iso
from utils.validators import as_float, optional_text

from .base import DomainError, ensure_choice, ensure_non_empty
from .documents import DocumentRepo, common_fields, creation_fields
from .line_items import LineItem, compute_line_item


@dataclass
class DeliveryChallan:
    id: str
    challan_number: str
    company_id: Optional[str] = None
    customer_name: str = ""
    customer_party_name: Optional[str] = None
    customer_address: str = ""
    customer_gstin: Optional[str] = None
    customer_email: Optional[str] = None
    customer_mobile: Optional[str] = None
    customer_state: Optional[str] = None
    date: str = ""
    dispatched_through: Optional[str] = None
    destination: Optional[str] = None
    terms_of_delivery: Optional[str] = None
    motor_vehicle_no: Optional[str] = None
    reason_for_transfer: str = "supply"
    items: list[LineItem] = field(default_factory=list)
    total_qty: float = 0.0
    approx_value: Optional[float] = None
    remarks: Optional[str] = None
    status: str = "draft"
    created_at: str = ""

    @classmethod
    def new(cls, challan_number: str, *, customer: Any = None, **fields) -> "DeliveryChallan":
        ensure_non_empty(challan_number, "Challan number")
        data = creation_fields(customer, fields)
        data.update(id=new_id(), created_at=now_iso(), challan_number=challan_number.strip())
        ch = cls.from_dict(data)
        ch.validate()
        return ch.with_totals()

    @classmethod
    def from_dict(cls, d: Mapping) -> "DeliveryChallan":
        approx = d.get("approx_value")
        return cls(
            **common_fields(d),
            challan_number=str(d.get("challan_number") or ""),
            dispatched_through=optional_text(d.get("dispatched_through")),
            destination=optional_text(d.get("destination")),
            terms_of_delivery=optional_text(d.get("terms_of_delivery")),
            motor_vehicle_no=optional_text(d.get("motor_vehicle_no")),
            reason_for_transfer=str(d.get("reason_for_transfer") or "supply"),
            total_qty=as_float(d.get("total_qty")),
            approx_value=None if approx in (None, "") else as_float(approx),
            remarks=optional_text(d.get("remarks")),
        )

    def validate(self) -> None:
        ensure_non_empty(self.id, "Challan id")
        ensure_non_empty(self.challan_number, "Challan number")
        ensure_choice(self.status, CHALLAN_STATUSES, "Challan status")
        ensure_choice(self.reason_for_transfer, CHALLAN_REASONS, "Reason for transfer")

    def with_totals(self) -> "DeliveryChallan":
        """Quantity tracking only; challans carry no tax."""
        items = [compute_line_item(i) for i in self.items]
        return replace(self, items=items, total_qty=sum(i.quantity for i in items))

    def to_row(self) -> dict:
        return asdict(self)


class ChallansRepo(DocumentRepo[DeliveryChallan]):
    table = "challans"
    columns = tuple(DeliveryChallan.__dataclass_fields__)
    number_column = "challan_number"
    prefix = CHALLAN_PREFIX
    has_taxes = False
    entity = DeliveryChallan


__all__ = ["DeliveryChallan", "ChallansRepo", "DomainError"]
