# tests/test_controller.py

import sqlite3

import pytest

from database import (
    DatabaseBusyError,
    DatabaseNotReadyError,
    ImportFailedError,
)
from database import sqlite_ops
from database.repositories import (
    ChallansRepo,
    CompaniesRepo,
    Company,
    Customer,
    CustomersRepo,
    DeliveryChallan,
    InventoryRepo,
    InventoryTransaction,
    Invoice,
    InvoicesRepo,
    LineItem,
    Product,
    ProductsRepo,
    Quotation,
    QuotationsRepo,
    TaxLine,
    Voucher,
    VouchersRepo,
)

SQLITE_HEADER = b"SQLite format 3\x00"


def test_initialize_creates_and_persists_fresh_database(controller, adapter):
    """
    With no prior bytes, initialize() creates the schema and writes the new
    database through the adapter exactly once.
    """
    assert adapter.reads == 1
    assert adapter.writes == 1
    assert adapter.data.startswith(SQLITE_HEADER)
    assert controller.is_dirty is False
    assert controller.last_saved is not None


def test_initialize_is_idempotent(controller, adapter):
    first = controller.current_handle()
    again = controller.initialize()
    assert again is first
    assert adapter.reads == 1
    assert adapter.writes == 1


def test_save_then_reload_round_trips_records(controller, adapter, make_controller):
    """Records saved and persisted come back identical from a new controller."""
    repo = CustomersRepo(controller)
    c = Customer.new("Acme Traders", party_name="Acme", gstin="27AAAAA0000A1Z5", state="MH")
    repo.save(c)
    assert controller.save() is True

    other, _ = make_controller(data=adapter.data)
    loaded = CustomersRepo(other).get(c.id)
    assert loaded == c


def test_save_without_handle_returns_false(make_controller):
    ctl, ad = make_controller(init=False)
    assert ctl.save() is False
    assert ad.writes == 0


def test_storage_failure_is_reported_not_raised(controller, adapter):
    CustomersRepo(controller).save(Customer.new("Bob"))
    adapter.fail_writes = True
    assert controller.save() is False
    # changes are still pending
    assert controller.is_dirty is True


def test_dirty_tracking_follows_writes_and_saves(controller):
    assert controller.is_dirty is False
    CustomersRepo(controller).save(Customer.new("Carol"))
    assert controller.is_dirty is True
    assert controller.save() is True
    assert controller.is_dirty is False


def test_repository_before_initialize_raises_not_ready(make_controller):
    ctl, _ = make_controller(init=False)
    repo = CustomersRepo(ctl)
    with pytest.raises(DatabaseNotReadyError):
        repo.list_all()
    with pytest.raises(DatabaseNotReadyError):
        repo.save(Customer.new("Dan"))
    assert ctl.current_handle() is None


def test_export_bytes(controller, make_controller):
    data = controller.export_bytes()
    assert data.startswith(SQLITE_HEADER)

    idle, _ = make_controller(init=False)
    assert idle.export_bytes() is None


def test_import_replaces_never_merges(make_controller):
    """Only the imported file's records remain after import_bytes()."""
    src, _ = make_controller()
    x = Customer.new("From export")
    CustomersRepo(src).save(x)
    exported = src.export_bytes()

    dst, dst_adapter = make_controller()
    y = Customer.new("Local only")
    CustomersRepo(dst).save(y)
    writes_before = dst_adapter.writes

    assert dst.import_bytes(exported) is True
    ids = [c.id for c in CustomersRepo(dst).list_all()]
    assert ids == [x.id]
    assert dst_adapter.writes == writes_before + 1
    assert dst.is_dirty is False


def test_import_invalid_bytes_keeps_current_database(controller):
    repo = CustomersRepo(controller)
    c = Customer.new("Keeper")
    repo.save(c)
    handle = controller.current_handle()

    with pytest.raises(ImportFailedError) as ei:
        controller.import_bytes(b"definitely not a database")
    assert "Import failed" in str(ei.value)

    assert controller.current_handle() is handle
    assert repo.get(c.id) == c


def test_import_corrupt_image_with_valid_header_fails(controller):
    corrupt = SQLITE_HEADER + b"\x00" * 4080
    with pytest.raises(ImportFailedError):
        controller.import_bytes(corrupt)
    assert controller.current_handle() is not None


def test_import_empty_bytes_fails(controller):
    with pytest.raises(ImportFailedError):
        controller.import_bytes(b"")


def test_import_adds_missing_tables_to_older_buffers(controller):
    """A buffer from an older build gains the tables it lacks."""
    old = sqlite3.connect(":memory:")
    old.execute(
        "CREATE TABLE customers (id TEXT PRIMARY KEY, name TEXT NOT NULL, party_name TEXT, "
        "email TEXT, mobile TEXT, address TEXT, gstin TEXT, state TEXT, created_at TEXT NOT NULL)"
    )
    old.execute(
        "INSERT INTO customers (id, name, created_at) VALUES ('c-1', 'Legacy Co', '2024-01-01T00:00:00.000Z')"
    )
    old.commit()
    data = old.serialize()
    old.close()

    assert controller.import_bytes(data) is True
    assert [c.name for c in CustomersRepo(controller).list_all()] == ["Legacy Co"]
    assert VouchersRepo(controller).list_all() == []


def test_handle_is_busy_while_import_runs(controller, monkeypatch):
    """Repositories cannot reach the handle while it is being replaced."""
    seen = {}
    real_open = sqlite_ops.open_from_bytes
    good = controller.export_bytes()

    def spying_open(data):
        with pytest.raises(DatabaseBusyError):
            controller.current_handle()
        with pytest.raises(DatabaseBusyError):
            CustomersRepo(controller).list_all()
        seen["checked"] = True
        return real_open(data)

    monkeypatch.setattr(sqlite_ops, "open_from_bytes", spying_open)
    assert controller.import_bytes(good) is True
    assert seen == {"checked": True}
    # guard released afterwards
    assert controller.current_handle() is not None


def test_unreadable_prior_buffer_starts_fresh(make_controller):
    ctl, ad = make_controller(data=b"garbage left by a crashed writer")
    assert ctl.current_handle() is not None
    assert ad.data.startswith(SQLITE_HEADER)
    assert CustomersRepo(ctl).list_all() == []


def test_migration_runs_only_for_a_new_database(make_controller):
    legacy = {"accounting_customers": '[{"id": "c1", "name": "First", "createdAt": "2024-01-01"}]'}
    first, ad = make_controller(legacy=legacy)
    assert first.last_migration.imported["customers"] == 1

    legacy_more = {
        "accounting_customers": '[{"id": "c1", "name": "First"}, {"id": "c2", "name": "Second"}]'
    }
    second, _ = make_controller(data=ad.data, legacy=legacy_more)
    assert second.last_migration is None
    assert [c.id for c in CustomersRepo(second).list_all()] == ["c1"]


def test_identity_comes_from_adapter(controller, adapter):
    assert controller.identity() == adapter.identity()


def test_close_releases_handle(controller):
    controller.close()
    assert controller.current_handle() is None
    assert controller.is_ready is False


def test_open_database_from_config(tmp_path, write_legacy_file, quiet_logger):
    from config import load_config
    from database import open_database

    legacy = write_legacy_file({"accounting_customers": [{"id": "c1", "name": "From legacy"}]})
    cfg = load_config({"APP_DB_PATH": str(tmp_path / "books.db"), "ACCOUNTING_LEGACY_FILE": str(legacy)})
    ctl = open_database(cfg, logger=quiet_logger)
    try:
        assert ctl.is_ready
        assert (tmp_path / "books.db").read_bytes().startswith(SQLITE_HEADER)
        assert [c.name for c in CustomersRepo(ctl).list_all()] == ["From legacy"]
    finally:
        ctl.close()


def test_export_then_import_round_trips_every_entity(make_controller):
    """
    Everything written on one controller comes back field for field after
    export_bytes() on it and import_bytes() into a different controller.
    """
    src, _ = make_controller()
    co = Company.new("Alpha Traders", gstin="27AAAAA0000A1Z5", bank_ifsc="SBIN0000001", logo="data:image/png;base64,AAAA")
    CompaniesRepo(src).save(co)
    cu = Customer.new("Ravi Stores", party_name="Ravi", state="KA", gstin="29ABCDE1234F1Z5")
    CustomersRepo(src).save(cu)
    p = Product.new(
        "Bolt", hsn_sac="7318", rate=2.5, stock=10,
        batches=[{"batch_number": "B-1", "mfg_date": "01/2024", "quantity": 6},
                 {"batch_number": "B-2", "mfg_date": "02/2024", "quantity": 4}],
    )
    ProductsRepo(src).save(p)

    items = [
        LineItem(sl_no=1, description="Bolt", hsn_sac="7318", quantity=2, rate=100, discount_percent=10,
                 product_id=p.id, batch_number="B-1", mfg_date="01/2024"),
        LineItem(sl_no=2, description="Nut", quantity=1, rate=50, cases=1),
    ]
    InvoicesRepo(src).save(Invoice.new("1", customer=cu, company_id=co.id, items=items))
    QuotationsRepo(src).save(
        Quotation.new("QT-1", customer=cu, company_id=co.id, items=items, taxes=[TaxLine("IGST", 18)])
    )
    ChallansRepo(src).save(DeliveryChallan.new("DC-1", customer=cu, company_id=co.id, items=items))
    VouchersRepo(src).save(Voucher.new("VCH-1", "receipt", company_id=co.id, amount=212, party="Ravi Stores"))
    InventoryRepo(src).record_transaction(InventoryTransaction.new(p.id, "out", 3, product_name="Bolt"))

    dst, dst_adapter = make_controller()
    assert dst.import_bytes(src.export_bytes()) is True

    for repo_cls in (CompaniesRepo, CustomersRepo, ProductsRepo, InvoicesRepo,
                     QuotationsRepo, ChallansRepo, VouchersRepo, InventoryRepo):
        before = repo_cls(src).list_all()
        assert before, repo_cls.__name__
        assert repo_cls(dst).list_all() == before, repo_cls.__name__

    assert ProductsRepo(dst).get(p.id).stock == 7
    assert [b.batch_number for b in ProductsRepo(dst).get(p.id).batches] == ["B-1", "B-2"]
    [inv] = InvoicesRepo(dst).list_all()
    assert inv.subtotal == pytest.approx(230)
    assert [t.name for t in inv.taxes] == ["CGST", "SGST"]
