# database/repositories/__init__.py
"""
Repository layer public API.

Every repository takes the DatabaseController and borrows its live handle
per call:

    from database.repositories import (
        # Companies / customers
        CompaniesRepo, Company, CustomersRepo, Customer,
        # Products (+ batches)
        ProductsRepo, Product, ProductBatch,
        # Documents
        InvoicesRepo, Invoice, QuotationsRepo, Quotation, ChallansRepo, DeliveryChallan,
        # Vouchers
        VouchersRepo, Voucher,
        # Inventory
        InventoryRepo, InventoryTransaction,
        # Embedded line items / totals
        LineItem, TaxLine, compute_totals,
    )
"""

from .base import DomainError

# ---------------- Companies ----------------
from .companies_repo import CompaniesRepo, Company

# ---------------- Customers ----------------
from .customers_repo import CustomersRepo, Customer

# ---------------- Products -----------------
from .products_repo import ProductsRepo, Product, ProductBatch

# ---------------- Documents ----------------
from .invoices_repo import InvoicesRepo, Invoice
from .quotations_repo import QuotationsRepo, Quotation
from .challans_repo import ChallansRepo, DeliveryChallan

# ---------------- Vouchers -----------------
from .vouchers_repo import VouchersRepo, Voucher

# ---------------- Inventory ----------------
from .inventory_repo import InventoryRepo, InventoryTransaction

# ------------- Line items / totals ---------
from .line_items import LineItem, TaxLine, Totals, compute_line_item, compute_totals, renumber
from .numbering import next_sequence_number

__all__ = [
    "DomainError",
    # companies_repo
    "CompaniesRepo",
    "Company",
    # customers_repo
    "CustomersRepo",
    "Customer",
    # products_repo
    "ProductsRepo",
    "Product",
    "ProductBatch",
    # documents
    "InvoicesRepo",
    "Invoice",
    "QuotationsRepo",
    "Quotation",
    "ChallansRepo",
    "DeliveryChallan",
    # vouchers_repo
    "VouchersRepo",
    "Voucher",
    # inventory_repo
    "InventoryRepo",
    "InventoryTransaction",
    # line_items / numbering
    "LineItem",
    "TaxLine",
    "Totals",
    "compute_line_item",
    "compute_totals",
    "renumber",
    "next_sequence_number",
]
