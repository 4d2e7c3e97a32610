# database/__init__.py
from __future__ import annotations

from config import AppConfig, load_config
from .controller import DatabaseController
from .errors import (
    DatabaseBusyError,
    DatabaseError,
    DatabaseInitError,
    DatabaseNotReadyError,
    ImportFailedError,
)
from .migration import JsonFileLegacyStore, MappingLegacyStore, MigrationReport, migrate_legacy
from .schema import TABLES, create_tables, table_counts
from .storage import StorageIdentity


def open_database(config: AppConfig | None = None, **kwargs) -> DatabaseController:
    """
    Build the controller for the startup configuration and initialize it.
    Extra keyword arguments (picker, logger) go to DatabaseController.from_config.
    """
    controller = DatabaseController.from_config(config or load_config(), **kwargs)
    controller.initialize()
    return controller


__all__ = [
    "DatabaseController",
    "DatabaseError",
    "DatabaseInitError",
    "DatabaseNotReadyError",
    "DatabaseBusyError",
    "ImportFailedError",
    "JsonFileLegacyStore",
    "MappingLegacyStore",
    "MigrationReport",
    "StorageIdentity",
    "TABLES",
    "create_tables",
    "migrate_legacy",
    "open_database",
    "table_counts",
]
