# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets its own in-memory storage adapter (no files touched)
#   unless it asks for tmp_path explicitly
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - Repositories are built on an initialized DatabaseController
# ---------------------------------------------------------------------

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

import pytest

# Headless test runs: Qt aborts without a display unless offscreen is used.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from constants import MODE_NATIVE_FILE
from database import DatabaseController, MappingLegacyStore
from database.repositories import (
    ChallansRepo,
    CompaniesRepo,
    CustomersRepo,
    InventoryRepo,
    InvoicesRepo,
    ProductsRepo,
    QuotationsRepo,
    VouchersRepo,
)
from database.storage import StorageIdentity


class MemoryAdapter:
    """
    Host storage adapter keeping the buffer in memory. Counts calls so tests
    can assert when persistence happened. `fail_writes` simulates a full disk.
    """

    def __init__(self, data: Optional[bytes] = None, pick_bytes: Optional[bytes] = None):
        self.data = data
        self.pick_bytes = pick_bytes
        self.exported: Optional[bytes] = None
        self.reads = 0
        self.writes = 0
        self.fail_writes = False

    def read(self) -> Optional[bytes]:
        self.reads += 1
        return self.data

    def write(self, data: bytes) -> bool:
        if self.fail_writes:
            return False
        self.writes += 1
        self.data = bytes(data)
        return True

    def pick_and_read(self) -> Optional[bytes]:
        return self.pick_bytes

    def pick_and_write(self, data: bytes) -> Optional[str]:
        self.exported = bytes(data)
        return "/exports/accounting_data.db"

    def identity(self) -> StorageIdentity:
        return StorageIdentity(mode=MODE_NATIVE_FILE, location="memory://accounting_data.db")


@pytest.fixture
def quiet_logger() -> logging.Logger:
    """Logger without file handlers so tests never write into logs/."""
    log = logging.getLogger("tests.accounting")
    log.propagate = True
    return log


@pytest.fixture
def adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def legacy_store() -> MappingLegacyStore:
    return MappingLegacyStore({})


@pytest.fixture
def controller(adapter, legacy_store, quiet_logger) -> DatabaseController:
    ctl = DatabaseController(adapter, legacy_store=legacy_store, logger=quiet_logger)
    ctl.initialize()
    yield ctl
    ctl.close()


@pytest.fixture
def repos(controller):
    """All repositories on the shared controller, keyed by short name."""
    return {
        "companies": CompaniesRepo(controller),
        "customers": CustomersRepo(controller),
        "products": ProductsRepo(controller),
        "invoices": InvoicesRepo(controller),
        "quotations": QuotationsRepo(controller),
        "challans": ChallansRepo(controller),
        "vouchers": VouchersRepo(controller),
        "inventory": InventoryRepo(controller),
    }


@pytest.fixture
def write_legacy_file(tmp_path: Path):
    def _write(data: dict) -> Path:
        p = tmp_path / "legacy_local_storage.json"
        p.write_text(json.dumps(data), encoding="utf-8")
        return p
    return _write


@pytest.fixture
def make_controller(quiet_logger):
    """
    Factory for extra controllers: make_controller(data=None, legacy=None, pick_bytes=None)
    returns (controller, adapter), already initialized unless init=False.
    """
    made: list[DatabaseController] = []

    def _make(data: Optional[bytes] = None, legacy: Optional[dict] = None,
              pick_bytes: Optional[bytes] = None, init: bool = True):
        ad = MemoryAdapter(data=data, pick_bytes=pick_bytes)
        ctl = DatabaseController(ad, legacy_store=MappingLegacyStore(legacy or {}), logger=quiet_logger)
        if init:
            ctl.initialize()
        made.append(ctl)
        return ctl, ad

    yield _make
    for ctl in made:
        ctl.close()
