"""
One-time import of the legacy key-value representation.

Before the embedded database existed every entity list lived as JSON text
under its own key (accounting_companies, accounting_invoices, ...). The pass
runs once, on a freshly created database, and never aborts: a malformed record
is skipped and logged, and so is a key whose text is not a JSON list.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol

from constants import LEGACY_KEYS, LEGACY_SINGLE_COMPANY_KEY
from database.repositories.base import DomainError, upsert_row
from database.repositories.challans_repo import DeliveryChallan
from database.repositories.codecs import MalformedBlobError, encode_items, encode_taxes, normalize_keys
from database.repositories.companies_repo import Company
from database.repositories.customers_repo import Customer
from database.repositories.inventory_repo import InventoryTransaction
from database.repositories.invoices_repo import Invoice
from database.repositories.products_repo import Product, write_product
from database.repositories.quotations_repo import Quotation
from database.repositories.vouchers_repo import Voucher

_log = logging.getLogger(__name__)

# errors that mean "this record is unusable", not "the migration is broken"
_RECORD_ERRORS = (DomainError, MalformedBlobError, ValueError, TypeError, OverflowError, AttributeError)


class LegacyStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...


class MappingLegacyStore:
    """Legacy store backed by an in-memory mapping of key -> JSON text."""

    def __init__(self, data: Optional[Mapping[str, str]] = None):
        self._data = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)


class JsonFileLegacyStore:
    """
    Legacy store dumped to disk as one JSON object {key: value}. Values may be
    the original JSON text or already-decoded lists/objects.
    A missing or unreadable file behaves like an empty store.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: Optional[dict] = None

    def _load(self) -> dict:
        if self._data is None:
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                raw = {}
            except (OSError, ValueError) as exc:
                _log.warning("Legacy store %s unreadable, ignoring: %s", self.path, exc)
                raw = {}
            self._data = raw if isinstance(raw, dict) else {}
        return self._data

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value)


@dataclass
class MigrationReport:
    imported: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)
    bad_keys: list[str] = field(default_factory=list)

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())


# ---- per-table writers -------------------------------------------------------

def _simple_writer(table: str, entity) -> Callable[[sqlite3.Connection, dict], None]:
    def write(conn: sqlite3.Connection, d: dict) -> None:
        rec = entity.from_dict(d)
        rec.validate()
        upsert_row(conn, table, rec.to_row())
    return write


def _document_writer(table: str, entity, has_taxes: bool = True) -> Callable[[sqlite3.Connection, dict], None]:
    def write(conn: sqlite3.Connection, d: dict) -> None:
        rec = entity.from_dict(d)
        rec.validate()
        row = rec.to_row()
        row["items"] = encode_items(rec.items)
        if has_taxes:
            row["taxes"] = encode_taxes(rec.taxes)
        upsert_row(conn, table, row)
    return write


def _write_product(conn: sqlite3.Connection, d: dict) -> None:
    product = Product.from_dict(d)
    product.validate()
    write_product(conn, product)


# legacy entity name -> (table, writer)
_WRITERS: dict[str, tuple[str, Callable[[sqlite3.Connection, dict], None]]] = {
    "companies": ("companies", _simple_writer("companies", Company)),
    "customers": ("customers", _simple_writer("customers", Customer)),
    "products": ("products", _write_product),
    "invoices": ("invoices", _document_writer("invoices", Invoice)),
    "quotations": ("quotations", _document_writer("quotations", Quotation)),
    "challans": ("challans", _document_writer("challans", DeliveryChallan, has_taxes=False)),
    "vouchers": ("vouchers", _simple_writer("vouchers", Voucher)),
    "inventory": ("inventory_transactions", _simple_writer("inventory_transactions", InventoryTransaction)),
}


def _decode_list(text: str, key: str) -> Optional[list]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        _log.warning("Legacy key %s is not valid JSON, skipped: %s", key, exc)
        return None
    if not isinstance(data, list):
        _log.warning("Legacy key %s does not hold a list, skipped", key)
        return None
    return data


def _legacy_records(store: LegacyStore, name: str, report: MigrationReport) -> list:
    key = LEGACY_KEYS[name]
    text = store.get(key)
    if not text and name == "companies":
        # single-company builds kept one object under accounting_company
        single = store.get(LEGACY_SINGLE_COMPANY_KEY)
        if single:
            try:
                obj = json.loads(single)
            except (TypeError, ValueError) as exc:
                _log.warning("Legacy key %s is not valid JSON, skipped: %s", LEGACY_SINGLE_COMPANY_KEY, exc)
                report.bad_keys.append(LEGACY_SINGLE_COMPANY_KEY)
                return []
            return [obj] if isinstance(obj, dict) else []
    if not text:
        return []
    records = _decode_list(text, key)
    if records is None:
        report.bad_keys.append(key)
        return []
    return records


def migrate_legacy(
    conn: sqlite3.Connection,
    store: Optional[LegacyStore],
    logger: Optional[logging.Logger] = None,
) -> MigrationReport:
    """
    Copy every legacy record into its table (upsert by id). camelCase legacy
    field names are normalised to column names; nested items/taxes are
    re-serialised on the way in. Stock is copied as-is: legacy inventory
    transactions were already applied to it.
    """
    log = logger or _log
    report = MigrationReport()
    if store is None:
        return report

    for name, (table, write) in _WRITERS.items():
        records = _legacy_records(store, name, report)
        imported = skipped = 0
        for raw in records:
            if not isinstance(raw, dict):
                skipped += 1
                log.warning("Legacy %s entry is not an object, skipped", name)
                continue
            d = normalize_keys(raw)
            try:
                conn.execute("SAVEPOINT legacy_record")
                write(conn, d)
                conn.execute("RELEASE SAVEPOINT legacy_record")
                imported += 1
            except _RECORD_ERRORS + (sqlite3.IntegrityError,) as exc:
                conn.execute("ROLLBACK TO SAVEPOINT legacy_record")
                conn.execute("RELEASE SAVEPOINT legacy_record")
                skipped += 1
                log.warning("Legacy %s record %r skipped: %s", name, d.get("id"), exc)
        report.imported[table] = imported
        report.skipped[table] = skipped

    conn.commit()
    if report.total_imported or report.total_skipped:
        log.info(
            "Legacy migration: %d record(s) imported, %d skipped",
            report.total_imported,
            report.total_skipped,
        )
    return report


__all__ = [
    "LegacyStore",
    "MappingLegacyStore",
    "JsonFileLegacyStore",
    "MigrationReport",
    "migrate_legacy",
]
