"""
modules/data_management/service.py

Purpose
-------
What the Data Management screen and the command line need from storage:
force a sync, export/import through a file picker, report where the data
lives, and flush unsaved changes on a timer.

Public interface
----------------
- DataManagementService(controller, logger=None)
    .status() -> StorageStatus
    .sync_now() -> bool
    .export_to_file() -> Optional[str]
    .import_from_file() -> bool            (raises ImportFailedError)
    .stats() -> dict[str, int]
- AutoSaveTimer(controller, seconds, parent=None)   QTimer-driven flush
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from constants import AUTOSAVE_SECONDS, MODE_NATIVE_FILE
from database.controller import DatabaseController
from database.errors import ImportFailedError
from database.schema import table_counts
from database.versioning import get_current_version

from .logging_utils import get_logger, log_event


@dataclass(frozen=True)
class StorageStatus:
    mode: str
    location: str
    last_saved: Optional[datetime]
    dirty: bool
    ready: bool

    @property
    def is_desktop(self) -> bool:
        return self.mode == MODE_NATIVE_FILE

    def describe(self) -> str:
        where = "Database file" if self.is_desktop else "Object store"
        saved = self.last_saved.strftime("%Y-%m-%d %H:%M:%S") if self.last_saved else "never"
        return f"{where}: {self.location} (last saved: {saved}{', unsaved changes' if self.dirty else ''})"


class DataManagementService:
    def __init__(self, controller: DatabaseController, logger: Optional[logging.Logger] = None) -> None:
        self.controller = controller
        self._log = logger or get_logger()

    def status(self) -> StorageStatus:
        ident = self.controller.identity()
        return StorageStatus(
            mode=ident.mode,
            location=ident.location,
            last_saved=self.controller.last_saved,
            dirty=self.controller.is_dirty,
            ready=self.controller.is_ready,
        )

    def stats(self) -> dict[str, int]:
        """Row count per table of the live database."""
        return table_counts(self.controller.require_handle())

    def schema_version(self) -> Optional[str]:
        return get_current_version(self.controller.require_handle())

    # ---------------------------- Operations ----------------------------

    def sync_now(self) -> bool:
        """Write the current database to storage right away."""
        ident = self.controller.identity()
        log_event(self._log, "sync", "start", "Sync requested", {"mode": ident.mode})
        ok = self.controller.save()
        if ok:
            log_event(self._log, "sync", "done", "Database synced", {"location": ident.location})
        else:
            log_event(
                self._log, "sync", "failed", "Database could not be synced",
                {"location": ident.location}, level=logging.WARNING,
            )
        return ok

    def export_to_file(self) -> Optional[str]:
        """
        Let the user pick a destination and write a copy of the database there.
        Returns the written path, or None when cancelled or nothing could be written.
        """
        data = self.controller.export_bytes()
        if data is None:
            log_event(self._log, "export", "failed", "No database to export", level=logging.WARNING)
            return None
        log_event(self._log, "export", "start", "Export requested", {"bytes": len(data)})
        path = self.controller.adapter.pick_and_write(data)
        if path is None:
            log_event(self._log, "export", "cancelled", "Export cancelled or not written")
            return None
        log_event(self._log, "export", "done", "Database exported", {"path": path, "bytes": len(data)})
        return path

    def import_from_file(self) -> bool:
        """
        Let the user pick a database file and replace the current data with it.

        Returns True once the imported database is live and persisted, False
        when the user cancelled or persisting failed. A file that is not a
        usable database raises ImportFailedError and changes nothing.
        """
        data = self.controller.adapter.pick_and_read()
        if data is None:
            log_event(self._log, "import", "cancelled", "Import cancelled")
            return False
        log_event(self._log, "import", "start", "Import requested", {"bytes": len(data)})
        try:
            ok = self.controller.import_bytes(data)
        except ImportFailedError as exc:
            log_event(self._log, "import", "failed", str(exc), level=logging.ERROR)
            raise
        if ok:
            log_event(self._log, "import", "done", "Database imported and saved")
        else:
            log_event(
                self._log, "import", "failed", "Database imported but could not be saved",
                level=logging.WARNING,
            )
        return ok


class AutoSaveTimer(QObject):
    """
    Flushes the controller every `seconds` while it holds unsaved changes.
    Needs a running Qt event loop (QApplication/QCoreApplication).
    """

    saved = Signal(bool)

    def __init__(
        self,
        controller: DatabaseController,
        seconds: int = AUTOSAVE_SECONDS,
        parent: Optional[QObject] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(parent)
        self.controller = controller
        self._log = logger or get_logger()
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(seconds)) * 1000)
        self._timer.timeout.connect(self.flush)

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    @Slot()
    def flush(self) -> None:
        if not (self.controller.is_ready and self.controller.is_dirty):
            return
        ok = self.controller.save()
        if not ok:
            log_event(self._log, "autosave", "failed", "Periodic save failed", level=logging.WARNING)
        self.saved.emit(ok)


__all__ = ["AutoSaveTimer", "DataManagementService", "StorageStatus"]
