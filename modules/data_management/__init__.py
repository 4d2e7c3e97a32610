"""
modules/data_management

Storage housekeeping for the app shell: sync now, export/import via file
pickers, storage status, periodic autosave and the remembered company.
"""

from .selection import CompanySelection
from .service import AutoSaveTimer, DataManagementService, StorageStatus

__all__ = ["AutoSaveTimer", "CompanySelection", "DataManagementService", "StorageStatus"]
