"""
Host storage adapters.

Usage:
    from database.storage import build_adapter
    adapter = build_adapter(config.storage)
"""

from __future__ import annotations

import logging
from typing import Optional

from config import NativeFile, ObjectStore, StorageConfig
from .base import FilePicker, HostStorageAdapter, StorageIdentity
from .native_file import NativeFileAdapter
from .object_store import ObjectStoreAdapter
from .pickers import PresetFilePicker, QtFilePicker


def build_adapter(
    storage: StorageConfig,
    picker: Optional[FilePicker] = None,
    logger: Optional[logging.Logger] = None,
) -> HostStorageAdapter:
    """Map the startup storage choice onto its adapter. Called once per process."""
    if isinstance(storage, NativeFile):
        return NativeFileAdapter(storage.path, picker=picker, logger=logger)
    if isinstance(storage, ObjectStore):
        return ObjectStoreAdapter(storage.namespace, storage.root, picker=picker, logger=logger)
    raise TypeError(f"Unsupported storage configuration: {storage!r}")


__all__ = [
    "FilePicker",
    "HostStorageAdapter",
    "StorageIdentity",
    "NativeFileAdapter",
    "ObjectStoreAdapter",
    "PresetFilePicker",
    "QtFilePicker",
    "build_adapter",
]
