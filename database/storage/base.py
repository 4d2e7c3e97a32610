"""
Host storage contract.

The lifecycle controller only ever talks to one of these, chosen once at
startup. Implementations never raise on I/O trouble: reads answer None,
writes answer False, and the failure is logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from . import fsops


@dataclass(frozen=True)
class StorageIdentity:
    mode: str       # 'native-file' | 'object-store'
    location: str   # absolute path, or '<namespace>/<key>'


class FilePicker(Protocol):
    """User-driven file selection. Both methods answer None when cancelled."""
    def choose_open_path(self) -> Optional[str]: ...
    def choose_save_path(self, default_name: str) -> Optional[str]: ...


@runtime_checkable
class HostStorageAdapter(Protocol):
    def read(self) -> Optional[bytes]: ...
    def write(self, data: bytes) -> bool: ...
    def pick_and_read(self) -> Optional[bytes]: ...
    def pick_and_write(self, data: bytes) -> Optional[str]: ...
    def identity(self) -> StorageIdentity: ...


class PickerMixin:
    """
    pick_and_read / pick_and_write shared by both backends: the user picks a
    file through `self._picker`, the bytes move through fsops. Failures are
    logged and reported as None, same as a cancelled dialog.
    """

    _picker: Optional[FilePicker]
    _log: logging.Logger

    def _require_picker(self) -> FilePicker:
        if self._picker is None:
            from .pickers import QtFilePicker
            self._picker = QtFilePicker()
        return self._picker

    def pick_and_read(self) -> Optional[bytes]:
        path = self._require_picker().choose_open_path()
        if not path:
            return None
        try:
            data = fsops.read_file_bytes(path)
        except OSError as exc:
            self._log.error("Could not read %s: %s", path, exc)
            return None
        if data is None:
            self._log.warning("Picked file vanished before it could be read: %s", path)
        return data

    def pick_and_write(self, data: bytes) -> Optional[str]:
        path = self._require_picker().choose_save_path(fsops.export_file_name())
        if not path:
            return None
        try:
            fsops.atomic_write_bytes(path, data)
        except OSError as exc:
            self._log.error("Could not write export to %s: %s", path, exc)
            return None
        return str(Path(path).resolve())
