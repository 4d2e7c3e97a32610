"""
Remembers which company the user last worked with, across restarts.

The id lives in QSettings (outside the database file, so an import never
carries another machine's selection along).
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QSettings

from constants import APP_NAME, APP_ORG
from database.repositories.companies_repo import CompaniesRepo, Company


class CompanySelection:
    SETTINGS_KEY = "companies/selected_company_id"

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self._settings = settings if settings is not None else QSettings(APP_ORG, APP_NAME)

    def selected_id(self) -> Optional[str]:
        val = self._settings.value(self.SETTINGS_KEY, "", str)
        return val or None

    def remember(self, company: Optional[Company]) -> None:
        if company is None:
            self._settings.remove(self.SETTINGS_KEY)
        else:
            self._settings.setValue(self.SETTINGS_KEY, company.id)
        self._settings.sync()

    def resolve(self, repo: CompaniesRepo) -> Optional[Company]:
        """
        Remembered company when it still exists, otherwise the first company
        (which then becomes the remembered one), otherwise None.
        """
        company = repo.resolve_selected(self.selected_id())
        if company is not None and company.id != self.selected_id():
            self.remember(company)
        return company
