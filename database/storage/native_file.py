from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from constants import MODE_NATIVE_FILE
from . import fsops
from .base import FilePicker, PickerMixin, StorageIdentity


class NativeFileAdapter(PickerMixin):
    """Desktop backend: the database buffer is one file on local disk."""

    def __init__(
        self,
        path: Path | str,
        picker: Optional[FilePicker] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._path = Path(path).expanduser().resolve()
        self._picker = picker
        self._log = logger or logging.getLogger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[bytes]:
        try:
            data = fsops.read_file_bytes(str(self._path))
        except OSError as exc:
            # unreadable prior file must not block startup
            self._log.warning("Database file %s could not be read: %s", self._path, exc)
            return None
        if data is None:
            self._log.info("No database file at %s", self._path)
        return data

    def write(self, data: bytes) -> bool:
        try:
            fsops.atomic_write_bytes(
                str(self._path), data, verbose=self._log.isEnabledFor(logging.DEBUG), logger=self._log
            )
        except OSError as exc:
            self._log.error("Database file %s could not be written: %s", self._path, exc)
            return False
        return True

    def identity(self) -> StorageIdentity:
        return StorageIdentity(mode=MODE_NATIVE_FILE, location=str(self._path))
