# tests/test_line_items.py

import pytest

from database.repositories import Invoice, LineItem, Quotation, TaxLine, compute_totals, renumber
from database.repositories.codecs import (
    MalformedBlobError,
    camel_to_snake,
    coerce_items,
    decode_items,
    decode_taxes,
    encode_items,
)
from database.repositories.line_items import compute_line_item
from utils.helpers import round_half_up


def test_quotation_totals_scenario():
    """
    rate 100 x qty 2 = 200, 10% discount -> 180; CGST 9% + SGST 9% = 32.4;
    212.4 rounds to 212 with a round-off of -0.4.
    """
    items = [LineItem(sl_no=1, description="Widget", quantity=2, rate=100, discount_percent=10)]
    taxes = [TaxLine("CGST", 9), TaxLine("SGST", 9)]
    t = compute_totals(items, taxes)

    assert t.items[0].amount == pytest.approx(200)
    assert t.items[0].final_amount == pytest.approx(180)
    assert t.subtotal == pytest.approx(180)
    assert [x.amount for x in t.taxes] == [pytest.approx(16.2), pytest.approx(16.2)]
    assert t.tax_percent == pytest.approx(18)
    assert t.tax_amount == pytest.approx(32.4)
    assert t.total_before_round == pytest.approx(212.4)
    assert t.total == 212
    assert t.round_off == pytest.approx(-0.4)
    assert t.total_qty == 2


def test_inputs_are_not_mutated():
    item = LineItem(sl_no=1, description="X", quantity=3, rate=10)
    tax = TaxLine("GST", 5)
    compute_totals([item], [tax])
    assert item.amount == 0.0
    assert tax.amount == 0.0


def test_half_rounds_up_like_the_forms():
    assert round_half_up(212.5) == 213
    assert round_half_up(211.5) == 212
    assert round_half_up(212.49) == 212
    assert round_half_up(-0.5) == 0


def test_discount_can_be_ignored_per_line():
    item = LineItem(sl_no=1, description="X", quantity=1, rate=100, discount_percent=50)
    assert compute_line_item(item, apply_discount=False).final_amount == 100


def test_new_documents_compute_totals_with_default_taxes():
    items = [LineItem(sl_no=1, description="Widget", quantity=2, rate=100, discount_percent=10)]
    q = Quotation.new("QT-1", items=items)
    assert [(t.name, t.percent) for t in q.taxes] == [("CGST", 9.0), ("SGST", 9.0)]
    assert q.total == 212
    assert q.round_off == pytest.approx(-0.4)

    inv = Invoice.new("1", items=items, taxes=[])
    assert inv.tax_amount == 0
    assert inv.total == 180


def test_renumber_after_removal():
    items = [LineItem(sl_no=n, description=str(n)) for n in (1, 2, 3)]
    del items[1]
    assert [i.sl_no for i in renumber(items)] == [1, 2]


@pytest.mark.parametrize(
    "key, expected",
    [
        ("slNo", "sl_no"),
        ("hsnSac", "hsn_sac"),
        ("customerGSTIN", "customer_gstin"),
        ("bankIfsc", "bank_ifsc"),
        ("discountPercent", "discount_percent"),
        ("already_snake", "already_snake"),
    ],
)
def test_camel_to_snake(key, expected):
    assert camel_to_snake(key) == expected


def test_decode_accepts_legacy_camel_case_items():
    text = '[{"slNo": 1, "description": "Bolt", "hsnSac": "7318", "quantity": 4, "rate": 2.5,' \
           ' "amount": 10, "discountPercent": 0, "discountPer": "item", "finalAmount": 10,' \
           ' "batchNumber": "B7", "mfgDate": "05/2024", "cases": 2}]'
    [item] = decode_items(text)
    assert item.hsn_sac == "7318"
    assert item.batch_number == "B7"
    assert item.mfg_date == "05/2024"
    assert item.cases == 2
    assert item.final_amount == 10


def test_encoded_items_use_column_style_keys():
    text = encode_items([LineItem(sl_no=1, description="A", final_amount=5)])
    assert '"final_amount": 5' in text
    assert "finalAmount" not in text


@pytest.mark.parametrize("text", ["{bad", '{"a": 1}', "[1, 2]", '"text"'])
def test_decode_rejects_malformed_blobs(text):
    with pytest.raises(MalformedBlobError):
        decode_items(text)
    with pytest.raises(MalformedBlobError):
        decode_taxes(text)


def test_decode_empty_values():
    assert decode_items(None) == []
    assert decode_items("") == []
    assert decode_taxes("null") == []


def test_coerce_items_accepts_mixed_inputs():
    obj = LineItem(sl_no=1, description="obj")
    out = coerce_items([obj, {"slNo": 2, "description": "dict"}])
    assert out[0] is obj
    assert out[1].sl_no == 2
