from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, ClassVar, Mapping, Optional, Union

from constants import (
    APP_NAME,
    APP_ORG,
    AUTOSAVE_SECONDS,
    DATA_DIR,
    DB_FILE_NAME,
    LEGACY_FILE_NAME,
    MODE_NATIVE_FILE,
    MODE_OBJECT_STORE,
    OBJECT_STORE_NAMESPACE,
)

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = BASE_DIR / DATA_DIR
DB_PATH = DATA_PATH / DB_FILE_NAME


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class NativeFile:
    """Database lives in a single file on local disk."""
    path: Path
    mode: ClassVar[str] = MODE_NATIVE_FILE


@dataclass(frozen=True)
class ObjectStore:
    """Database lives as one blob inside a local object store namespace."""
    namespace: str
    root: Path
    mode: ClassVar[str] = MODE_OBJECT_STORE


StorageConfig = Union[NativeFile, ObjectStore]


@dataclass(frozen=True)
class AppConfig:
    storage: StorageConfig
    legacy_file: Optional[Path]
    autosave_seconds: int = AUTOSAVE_SECONDS
    development: bool = False


def _is_writable_dir(p: Path) -> bool:
    try:
        return p.exists() and p.is_dir() and os.access(str(p), os.W_OK | os.X_OK)
    except Exception:
        return False


def executable_dir() -> Path:
    """Folder of the frozen executable; the project folder when running from source."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return BASE_DIR


def default_app_data_dir() -> Path:
    """
    Per-user writable application data folder, as reported by Qt.
    Falls back to ~/.<org> when Qt has no answer for this platform.
    """
    from PySide6.QtCore import QCoreApplication, QStandardPaths

    if not QCoreApplication.organizationName():
        QCoreApplication.setOrganizationName(APP_ORG)
    if not QCoreApplication.applicationName():
        QCoreApplication.setApplicationName(APP_NAME)
    loc = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    return Path(loc) if loc else Path.home() / f".{APP_ORG.lower()}"


def resolve_native_db_path(
    *,
    development: bool,
    app_dir: Path = BASE_DIR,
    exe_dir: Optional[Path] = None,
    app_data_dir: Optional[Path] = None,
    is_writable: Callable[[Path], bool] = _is_writable_dir,
) -> Path:
    """
    Resolve the database file location for the desktop build.

    Precedence:
      1) development: <app_dir>/data/accounting_data.db
      2) production:  <exe_dir>/accounting_data.db
      3) either of the above not writable: <app data dir>/accounting_data.db
    """
    if development:
        folder = app_dir / DATA_DIR
        # the data folder is ours to create in a checkout
        if not folder.exists() and is_writable(app_dir):
            folder.mkdir(parents=True, exist_ok=True)
    else:
        folder = exe_dir or executable_dir()

    if is_writable(folder):
        return folder / DB_FILE_NAME

    fallback = app_data_dir or default_app_data_dir()
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback / DB_FILE_NAME


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build the process-wide configuration once at startup.

    Environment:
      ACCOUNTING_STORAGE          'native-file' (default) or 'object-store'
      ACCOUNTING_ENV              'development' or 'production' (default)
      APP_DB_PATH                 explicit database file (native-file only)
      ACCOUNTING_OBJECT_STORE_DIR object store folder (object-store only)
      ACCOUNTING_NAMESPACE        object store namespace
      ACCOUNTING_LEGACY_FILE      JSON dump of the legacy key-value store
      ACCOUNTING_AUTOSAVE_SECONDS periodic flush interval, 0 disables
    """
    env = os.environ if environ is None else environ

    development = env.get("ACCOUNTING_ENV", "production").strip().lower() == "development"
    mode = env.get("ACCOUNTING_STORAGE", MODE_NATIVE_FILE).strip().lower()

    if mode == MODE_NATIVE_FILE:
        explicit = env.get("APP_DB_PATH")
        if explicit:
            path = Path(explicit).expanduser().resolve()
        else:
            path = resolve_native_db_path(development=development)
        storage: StorageConfig = NativeFile(path=path)
    elif mode == MODE_OBJECT_STORE:
        root = env.get("ACCOUNTING_OBJECT_STORE_DIR")
        storage = ObjectStore(
            namespace=env.get("ACCOUNTING_NAMESPACE", OBJECT_STORE_NAMESPACE),
            root=Path(root).expanduser().resolve() if root else DATA_PATH,
        )
    else:
        raise ConfigError(
            f"Unknown storage mode {mode!r}. Expected '{MODE_NATIVE_FILE}' or '{MODE_OBJECT_STORE}'."
        )

    legacy = env.get("ACCOUNTING_LEGACY_FILE")
    if legacy:
        legacy_file: Optional[Path] = Path(legacy).expanduser().resolve()
    else:
        legacy_file = DATA_PATH / LEGACY_FILE_NAME

    raw_interval = env.get("ACCOUNTING_AUTOSAVE_SECONDS", str(AUTOSAVE_SECONDS))
    try:
        autosave = max(0, int(raw_interval))
    except ValueError as exc:
        raise ConfigError(f"ACCOUNTING_AUTOSAVE_SECONDS must be a whole number, got {raw_interval!r}.") from exc

    return AppConfig(
        storage=storage,
        legacy_file=legacy_file,
        autosave_seconds=autosave,
        development=development,
    )
