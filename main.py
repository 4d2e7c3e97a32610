"""
Command line host for the accounting data store.

    python main.py info
    python main.py stats
    python main.py sync
    python main.py export ~/backups/          (folder or file path)
    python main.py import ~/backups/accounting_data_2025-01-31.db

Storage is chosen by config.load_config() (environment variables); --db
points the native-file backend at a specific database file instead.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from config import NativeFile, load_config
from database import DatabaseController, DatabaseError, DatabaseInitError, ImportFailedError
from database.storage import PresetFilePicker
from modules.data_management import DataManagementService
from utils.loggers import get_logger

_LOGGER_NAME = "accounting.cli"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Accounting data store: status, sync, export and import")
    parser.add_argument("--db", help="Path to the database file (native-file storage)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log storage writes in detail")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("info", help="Show where the database is stored")
    sub.add_parser("stats", help="Row count per table")
    sub.add_parser("sync", help="Write the database to storage now")

    p_export = sub.add_parser("export", help="Write a copy of the database to PATH")
    p_export.add_argument("path", help="Destination file, or a folder for the default file name")

    p_import = sub.add_parser("import", help="Replace the database with the file at PATH")
    p_import.add_argument("path", help="Database file to import")
    return parser


def _open(args: argparse.Namespace) -> DatabaseController:
    config = load_config()
    if args.db:
        config = replace(config, storage=NativeFile(Path(args.db).expanduser().resolve()))

    picker = PresetFilePicker(
        open_path=args.path if args.command == "import" else None,
        save_path=args.path if args.command == "export" else None,
    )
    log = get_logger(_LOGGER_NAME, logging.DEBUG if args.verbose else logging.INFO)
    controller = DatabaseController.from_config(config, picker=picker, logger=log)
    controller.initialize()
    return controller


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not hasattr(args, "path"):
        args.path = None

    try:
        controller = _open(args)
    except DatabaseInitError as e:
        print(f"Database could not be started: {e}", file=sys.stderr)
        return 3

    service = DataManagementService(controller)
    try:
        if args.command == "info":
            status = service.status()
            print(status.describe())
            print(f"Storage mode: {status.mode}")
            print(f"Schema version: {service.schema_version() or 'unknown'}")
            return 0

        if args.command == "stats":
            for table, count in service.stats().items():
                print(f"{table:<24}{count:>8}")
            return 0

        if args.command == "sync":
            ok = service.sync_now()
            print("Database synced." if ok else "Database could not be synced.")
            return 0 if ok else 1

        if args.command == "export":
            out = service.export_to_file()
            if out is None:
                print("Nothing was exported.", file=sys.stderr)
                return 1
            print(f"Exported to {out}")
            return 0

        if args.command == "import":
            if not Path(args.path).is_file():
                print(f"File not found: {args.path}", file=sys.stderr)
                return 2
            try:
                ok = service.import_from_file()
            except ImportFailedError as e:
                print(str(e), file=sys.stderr)
                return 2
            print("Database imported." if ok else "Database imported but could not be saved.")
            return 0 if ok else 1
    except DatabaseError as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        controller.close()

    return 1


if __name__ == "__main__":
    sys.exit(main())
