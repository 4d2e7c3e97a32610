"""
Line items and tax lines embedded in invoices, quotations and challans, plus
the document arithmetic the entry forms rely on.

    amount        = rate * quantity
    final_amount  = amount - amount * discount_percent / 100
    tax.amount    = subtotal * tax.percent / 100
    total         = round_half_up(subtotal + tax_amount)
    round_off     = total - (subtotal + tax_amount)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Iterable, Mapping, Optional

from utils.helpers import round_half_up
from utils.validators import as_float, as_int, optional_text

DEFAULT_UNIT = "Nos."


@dataclass
class LineItem:
    sl_no: int
    description: str
    hsn_sac: str = ""
    quantity: float = 0.0
    unit: str = DEFAULT_UNIT
    rate: float = 0.0
    amount: float = 0.0
    discount_percent: float = 0.0
    discount_per: str = "item"
    final_amount: float = 0.0
    product_id: Optional[str] = None
    batch_number: Optional[str] = None
    mfg_date: Optional[str] = None      # month/year, e.g. "01/2024"
    cases: Optional[float] = None       # number of cases/boxes/packages

    @classmethod
    def from_dict(cls, d: Mapping) -> "LineItem":
        """Build from a decoded JSON object whose keys are already snake_case."""
        cases = d.get("cases")
        return cls(
            sl_no=as_int(d.get("sl_no")),
            description=str(d.get("description") or ""),
            hsn_sac=str(d.get("hsn_sac") or ""),
            quantity=as_float(d.get("quantity")),
            unit=str(d.get("unit") or DEFAULT_UNIT),
            rate=as_float(d.get("rate")),
            amount=as_float(d.get("amount")),
            discount_percent=as_float(d.get("discount_percent")),
            discount_per=str(d.get("discount_per") or "item"),
            final_amount=as_float(d.get("final_amount")),
            product_id=optional_text(d.get("product_id")),
            batch_number=optional_text(d.get("batch_number")),
            mfg_date=optional_text(d.get("mfg_date")),
            cases=None if cases in (None, "") else as_float(cases),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TaxLine:
    name: str
    percent: float = 0.0
    amount: float = 0.0

    @classmethod
    def from_dict(cls, d: Mapping) -> "TaxLine":
        return cls(
            name=str(d.get("name") or ""),
            percent=as_float(d.get("percent")),
            amount=as_float(d.get("amount")),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Totals:
    items: list[LineItem]
    taxes: list[TaxLine]
    total_qty: float
    subtotal: float
    tax_percent: float
    tax_amount: float
    round_off: float
    total: float
    total_before_round: float = field(default=0.0)


def compute_line_item(item: LineItem, *, apply_discount: bool = True) -> LineItem:
    """Recompute amount/final_amount from rate, quantity and discount."""
    amount = item.rate * item.quantity
    discount = amount * item.discount_percent / 100 if apply_discount else 0.0
    return replace(item, amount=amount, final_amount=amount - discount)


def compute_taxes(subtotal: float, taxes: Iterable[TaxLine]) -> list[TaxLine]:
    return [replace(t, amount=subtotal * t.percent / 100) for t in taxes]


def compute_totals(items: Iterable[LineItem], taxes: Iterable[TaxLine]) -> Totals:
    """
    Recompute every line, the subtotal, each tax line and the rounded total.
    Inputs are not mutated.
    """
    lines = [compute_line_item(i) for i in items]
    subtotal = sum(i.final_amount for i in lines)
    tax_lines = compute_taxes(subtotal, taxes)
    tax_amount = sum(t.amount for t in tax_lines)
    before_round = subtotal + tax_amount
    total = round_half_up(before_round)
    return Totals(
        items=lines,
        taxes=tax_lines,
        total_qty=sum(i.quantity for i in lines),
        subtotal=subtotal,
        tax_percent=sum(t.percent for t in tax_lines),
        tax_amount=tax_amount,
        round_off=total - before_round,
        total=total,
        total_before_round=before_round,
    )


def renumber(items: Iterable[LineItem]) -> list[LineItem]:
    """Serial numbers 1..n in list order (after a row was removed)."""
    return [replace(item, sl_no=i) for i, item in enumerate(items, start=1)]
