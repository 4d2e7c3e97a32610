"""
File pickers used for user-driven import/export.

QtFilePicker shows the native open/save dialogs; PresetFilePicker answers
with fixed paths and serves headless callers (command line, tests).
"""

from __future__ import annotations

from typing import Optional

from constants import EXPORT_FILE_FILTER


class QtFilePicker:
    def __init__(self, parent=None) -> None:
        self._parent = parent

    @staticmethod
    def _ensure_app() -> None:
        # dialogs need a QApplication; a bare script may not have one yet
        from PySide6.QtWidgets import QApplication
        if QApplication.instance() is None:
            QApplication([])

    def choose_open_path(self) -> Optional[str]:
        from PySide6.QtWidgets import QFileDialog
        self._ensure_app()
        fn, _ = QFileDialog.getOpenFileName(self._parent, "Import Database", "", EXPORT_FILE_FILTER)
        return fn or None

    def choose_save_path(self, default_name: str) -> Optional[str]:
        from PySide6.QtWidgets import QFileDialog
        self._ensure_app()
        fn, _ = QFileDialog.getSaveFileName(self._parent, "Export Database", default_name, EXPORT_FILE_FILTER)
        return fn or None


class PresetFilePicker:
    """
    Answers with paths fixed up front. A save target that is a folder
    receives the suggested file name.
    """

    def __init__(self, open_path: Optional[str] = None, save_path: Optional[str] = None) -> None:
        self.open_path = open_path
        self.save_path = save_path

    def choose_open_path(self) -> Optional[str]:
        return self.open_path

    def choose_save_path(self, default_name: str) -> Optional[str]:
        if not self.save_path:
            return None
        from pathlib import Path
        target = Path(self.save_path)
        if target.is_dir():
            target = target / default_name
        return str(target)
