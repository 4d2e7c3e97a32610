# tests/test_repositories.py

import logging

import pytest

from database.repositories import (
    Company,
    Customer,
    DeliveryChallan,
    DomainError,
    Invoice,
    LineItem,
    Product,
    ProductBatch,
    Quotation,
    TaxLine,
    Voucher,
)


# ---------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------

def test_factories_generate_id_and_created_at():
    a = Company.new("Alpha Pvt Ltd", address="1 Main Rd", mobile="9999", email="a@x.in")
    b = Company.new("Beta")
    assert a.id and b.id and a.id != b.id
    assert a.created_at.endswith("Z")
    assert a.name == "Alpha Pvt Ltd"


@pytest.mark.parametrize("factory", [Company.new, Customer.new, Product.new])
def test_factories_reject_blank_names(factory):
    with pytest.raises(DomainError):
        factory("   ")


def test_invoice_factory_validates_status():
    with pytest.raises(DomainError):
        Invoice.new("1", status="cancelled")


def test_voucher_factory_validates_type():
    with pytest.raises(DomainError):
        Voucher.new("VCH-1", type="refund")
    v = Voucher.new("VCH-1", type="receipt", amount=500, payment_mode="Cash", narration="Advance")
    assert v.type == "receipt"
    assert v.amount == 500.0


def test_challan_factory_validates_reason():
    with pytest.raises(DomainError):
        DeliveryChallan.new("DC-1", reason_for_transfer="gift")


def test_invoice_copies_customer_snapshot():
    """Documents keep the customer details as they were at creation time."""
    cust = Customer.new("Ravi Stores", party_name="Ravi", address="MG Road", gstin="29ABCDE1234F1Z5", state="KA")
    inv = Invoice.new("7", customer=cust, company_id="co-1")
    assert inv.customer_name == "Ravi Stores"
    assert inv.customer_party_name == "Ravi"
    assert inv.customer_address == "MG Road"
    assert inv.customer_gstin == "29ABCDE1234F1Z5"
    assert inv.customer_state == "KA"

    cust.name = "Renamed"
    assert inv.customer_name == "Ravi Stores"


# ---------------------------------------------------------------------
# Uniform CRUD contract
# ---------------------------------------------------------------------

def test_save_is_an_idempotent_upsert(repos):
    repo = repos["companies"]
    c = Company.new("Alpha", gstin="27AAAAA0000A1Z5")
    repo.save(c)
    repo.save(c)
    assert repo.list_all() == [c]


def test_save_overwrites_every_field(repos):
    repo = repos["customers"]
    c = Customer.new("Alpha", email="a@x.in", mobile="123")
    repo.save(c)

    c.email = None
    c.name = "Alpha & Sons"
    repo.save(c)

    got = repo.get(c.id)
    assert got.name == "Alpha & Sons"
    assert got.email is None
    assert got.mobile == "123"


def test_list_all_keeps_storage_order_after_updates(repos):
    repo = repos["customers"]
    a, b, c = Customer.new("Zed"), Customer.new("Amy"), Customer.new("Kim")
    for x in (a, b, c):
        repo.save(x)
    a.mobile = "555"
    repo.save(a)
    assert [x.name for x in repo.list_all()] == ["Zed", "Amy", "Kim"]


def test_get_missing_and_delete(repos):
    repo = repos["vouchers"]
    v = Voucher.new("VCH-1", amount=10)
    repo.save(v)
    assert repo.get("nope") is None
    repo.delete(v.id)
    assert repo.get(v.id) is None
    # deleting twice is harmless
    repo.delete(v.id)


def test_save_validates(repos):
    bad = Customer(id="x", name="")
    with pytest.raises(DomainError):
        repos["customers"].save(bad)
    assert repos["customers"].list_all() == []


def test_customer_search(repos):
    repo = repos["customers"]
    repo.save(Customer.new("Sharma Traders", mobile="98200"))
    repo.save(Customer.new("Gupta & Co", party_name="Sharma family"))
    repo.save(Customer.new("Other"))
    assert [c.name for c in repo.search("sharma")] == ["Sharma Traders", "Gupta & Co"]


# ---------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------

def test_resolve_selected_company(repos):
    repo = repos["companies"]
    assert repo.resolve_selected(None) is None

    first, second = Company.new("First"), Company.new("Second")
    repo.save(first)
    repo.save(second)

    assert repo.resolve_selected(second.id) == second
    assert repo.resolve_selected("deleted-id") == first
    assert repo.resolve_selected(None) == first


# ---------------------------------------------------------------------
# Products and batches
# ---------------------------------------------------------------------

def test_product_batches_are_child_rows(repos, controller):
    repo = repos["products"]
    p = Product.new("Paracetamol 500", hsn_sac="3004", rate=12.5, unit="Strip", stock=100)
    p.batches = [
        ProductBatch(id="b1", product_id=p.id, batch_number="B-01", mfg_date="01/2024", quantity=60),
        ProductBatch(id="b2", product_id=p.id, batch_number="B-02", mfg_date="03/2024", quantity=40,
                     expiry_date="2026-03-31"),
    ]
    repo.save(p)
    got = repo.get(p.id)
    assert [b.batch_number for b in got.batches] == ["B-01", "B-02"]
    assert got.batches[1].expiry_date == "2026-03-31"

    # saving rewrites the batch set
    p.batches = p.batches[:1]
    repo.save(p)
    assert [b.id for b in repo.get(p.id).batches] == ["b1"]


def test_product_delete_cascades_to_batches(repos, controller):
    repo = repos["products"]
    p = Product.new("Syrup")
    p.batches = [ProductBatch(id="b9", product_id=p.id, batch_number="S-1", quantity=5)]
    repo.save(p)

    repo.delete(p.id)
    conn = controller.current_handle()
    left = conn.execute("SELECT COUNT(*) FROM product_batches WHERE product_id=?", (p.id,)).fetchone()[0]
    assert repo.get(p.id) is None
    assert left == 0


def test_products_list_all_attaches_batches(repos):
    repo = repos["products"]
    a, b = Product.new("A"), Product.new("B")
    b.batches = [ProductBatch(id="bb", product_id=b.id, batch_number="X")]
    repo.save(a)
    repo.save(b)
    listed = repo.list_all()
    assert [p.name for p in listed] == ["A", "B"]
    assert listed[0].batches == []
    assert listed[1].batches[0].batch_number == "X"


# ---------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------

def _items():
    return [
        LineItem(sl_no=1, description="Widget", hsn_sac="8471", quantity=2, rate=100, discount_percent=10),
        LineItem(sl_no=2, description="Cable", quantity=1, rate=50, batch_number="C1", mfg_date="02/2024", cases=1),
    ]


def test_invoice_round_trip_with_items_and_taxes(repos):
    repo = repos["invoices"]
    inv = Invoice.new("1", company_id="co-1", items=_items(), due_date="2025-02-01", declaration="E&OE")
    repo.save(inv)
    got = repo.get(inv.id)
    assert got == inv
    assert got.items[0].final_amount == pytest.approx(180)
    assert [t.name for t in got.taxes] == ["CGST", "SGST"]


def test_quotation_and_challan_round_trip(repos):
    q = Quotation.new("QT-1", items=_items(), taxes=[TaxLine("IGST", 18)], subject="Supply of widgets")
    repos["quotations"].save(q)
    assert repos["quotations"].get(q.id) == q

    ch = DeliveryChallan.new("DC-1", items=_items(), reason_for_transfer="job_work", approx_value=250)
    repos["challans"].save(ch)
    got = repos["challans"].get(ch.id)
    assert got == ch
    assert got.total_qty == 3


def test_malformed_embedded_json_loads_as_empty(repos, controller, caplog):
    """A broken items/taxes column never breaks listing; it reads back empty."""
    repo = repos["invoices"]
    good = Invoice.new("1", items=_items())
    broken = Invoice.new("2", items=_items())
    repo.save(good)
    repo.save(broken)
    conn = controller.current_handle()
    conn.execute("UPDATE invoices SET items='{not json', taxes='42' WHERE id=?", (broken.id,))
    conn.commit()

    with caplog.at_level(logging.WARNING):
        listed = repo.list_all()

    assert [i.invoice_number for i in listed] == ["1", "2"]
    assert listed[1].items == []
    assert listed[1].taxes == []
    assert listed[0].items == good.items
    assert "unreadable items" in caplog.text


def test_non_finite_serial_number_does_not_break_listing(repos, controller):
    repo = repos["invoices"]
    inv = Invoice.new("1", items=_items())
    repo.save(inv)
    conn = controller.current_handle()
    conn.execute(
        "UPDATE invoices SET items=? WHERE id=?",
        ('[{"sl_no": 1e400, "description": "Old line"}]', inv.id),
    )
    conn.commit()

    [got] = repo.list_all()
    assert got.items[0].sl_no == 0
    assert got.items[0].description == "Old line"
    assert [t.name for t in got.taxes] == ["CGST", "SGST"]


def test_document_delete_ignores_company(repos):
    repo = repos["quotations"]
    q = Quotation.new("QT-4", company_id="co-A")
    repo.save(q)
    repo.delete(q.id)
    assert repo.list_all() == []


def test_list_for_company(repos):
    repo = repos["invoices"]
    a1 = Invoice.new("1", company_id="A")
    b1 = Invoice.new("1", company_id="B")
    a2 = Invoice.new("2", company_id="A")
    none = Invoice.new("9")
    for x in (a1, b1, a2, none):
        repo.save(x)
    assert [i.id for i in repo.list_for_company("A")] == [a1.id, a2.id]
    assert [i.id for i in repo.list_for_company(None)] == [none.id]

    vrepo = repos["vouchers"]
    v = Voucher.new("VCH-1", company_id="A")
    vrepo.save(v)
    vrepo.save(Voucher.new("VCH-2", company_id="B"))
    assert vrepo.list_for_company("A") == [v]


# ---------------------------------------------------------------------
# Numbering
# ---------------------------------------------------------------------

def test_next_number_seeds(repos):
    assert repos["invoices"].next_number() == "1"
    assert repos["challans"].next_number() == "DC-1"
    assert repos["quotations"].next_number() == "QT-1"


def test_next_number_per_company(repos):
    repo = repos["invoices"]
    for n in ("1", "3", "abc", "5"):
        repo.save(Invoice.new(n, company_id="A"))
    repo.save(Invoice.new("40", company_id="B"))

    assert repo.next_number("A") == "6"
    assert repo.next_number("B") == "41"
    assert repo.next_number("C") == "1"
    assert repo.next_number() == "41"


def test_next_number_with_prefix(repos):
    repo = repos["challans"]
    repo.save(DeliveryChallan.new("DC-1", company_id="A"))
    repo.save(DeliveryChallan.new("DC-12", company_id="A"))
    assert repo.next_number("A") == "DC-13"
