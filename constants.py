APP_NAME = "Accounting Manager"
APP_ORG = "AccountingManager"

# storage
DATA_DIR = "data"
DB_FILE_NAME = "accounting_data.db"
OBJECT_STORE_NAMESPACE = "AccountingDB"
OBJECT_STORE_KEY = "accounting_data"
OBJECT_STORE_SUFFIX = ".objstore"
LEGACY_FILE_NAME = "legacy_local_storage.json"

MODE_NATIVE_FILE = "native-file"
MODE_OBJECT_STORE = "object-store"

# schema
TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1"

# legacy key-value store (pre-database builds)
LEGACY_KEYS = {
    "companies": "accounting_companies",
    "customers": "accounting_customers",
    "products": "accounting_products",
    "invoices": "accounting_invoices",
    "quotations": "accounting_quotations",
    "challans": "accounting_challans",
    "vouchers": "accounting_vouchers",
    "inventory": "accounting_inventory",
}
# single-company builds stored one object instead of a list
LEGACY_SINGLE_COMPANY_KEY = "accounting_company"

# document numbering
INVOICE_PREFIX = ""
CHALLAN_PREFIX = "DC-"
QUOTATION_PREFIX = "QT-"

INVOICE_STATUSES = ("draft", "sent", "paid", "overdue")
QUOTATION_STATUSES = ("draft", "sent", "accepted", "rejected", "expired")
CHALLAN_STATUSES = ("draft", "dispatched", "delivered")
CHALLAN_REASONS = ("supply", "job_work", "exhibition", "personal", "other")
VOUCHER_TYPES = ("payment", "receipt", "journal", "contra")
INVENTORY_TYPES = ("in", "out")

# default taxes offered on new quotations
DEFAULT_TAXES = (("CGST", 9.0), ("SGST", 9.0))

# data management
LOG_DIR = "logs"
DATA_MANAGEMENT_LOG = "data_management.log"
AUTOSAVE_SECONDS = 30
EXPORT_FILE_FILTER = "SQLite Database (*.db)"
