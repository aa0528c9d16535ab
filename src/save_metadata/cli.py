r"""Command line interface for inspecting and maintaining a save metadata store.

Usage:
    save-metadata [--directory DIR] [--log-level LEVEL] COMMAND [OPTIONS]

Commands:
    stats                       Print the statistics report
    entries                     Print all tracked entries, most recent first
    validate [FILENAME]         Validate one or all tracked files (exit code 1 if any is invalid)
    reconcile                   Remove entries whose file no longer exists
    register FILENAME           Register (or re-register) a save file
    configure                   Update the pass-through auto-save configuration
    export PATH                 Write a copy of the metadata record to PATH

Environment variables:
    SAVE_METADATA_STORE_DIRECTORY - Store directory used when --directory is not given
    SAVE_METADATA_LOG_LEVEL - Log level used when --log-level is not given

Examples:
    # Check every save file in ./saves
    save-metadata --directory saves validate

    # Register a freshly written save with producer information
    save-metadata register slot1.json --producer-version 1.4.2 --producer-level 12

    # Disable auto-save
    save-metadata configure --auto-save off
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from save_metadata import (
    ConfigurationUpdate,
    IntegrityService,
    MetadataStore,
    RegistrationInfo,
    SaveMetadataError,
    save_metadata_settings,
)
from save_metadata.logging_config import configure_logger

EXIT_OK = 0
EXIT_INVALID_FILES = 1
EXIT_ERROR = 2


def _on_off(value: str) -> bool:
    normalized = value.lower()
    if normalized in ("on", "true", "yes", "1"):
        return True
    if normalized in ("off", "false", "no", "0"):
        return False
    raise argparse.ArgumentTypeError(f"expected on/off, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the `save-metadata` command."""
    parser = argparse.ArgumentParser(
        prog="save-metadata",
        description="Track, validate and reconcile save file metadata.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--directory",
        type=Path,
        default=None,
        help="Store directory (default: SAVE_METADATA_STORE_DIRECTORY or ./saves)",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default: SAVE_METADATA_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("stats", help="Print the statistics report")
    subparsers.add_parser("entries", help="Print all tracked entries")

    validate_parser = subparsers.add_parser("validate", help="Validate tracked files")
    validate_parser.add_argument("filename", nargs="?", default=None, help="Validate only this file")

    subparsers.add_parser("reconcile", help="Remove entries whose file no longer exists")

    register_parser = subparsers.add_parser("register", help="Register a save file")
    register_parser.add_argument("filename")
    register_parser.add_argument("--size-bytes", type=int, default=None)
    register_parser.add_argument("--producer-version", default=None)
    register_parser.add_argument("--producer-level", type=int, default=None)

    configure_parser = subparsers.add_parser("configure", help="Update auto-save configuration")
    configure_parser.add_argument("--auto-save", type=_on_off, default=None, dest="auto_save_enabled")
    configure_parser.add_argument("--auto-save-interval-ms", type=int, default=None)
    configure_parser.add_argument("--backup-retention-count", type=int, default=None)
    configure_parser.add_argument("--migration-completed", type=_on_off, default=None)

    export_parser = subparsers.add_parser("export", help="Export the metadata record")
    export_parser.add_argument("path", type=Path)

    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2))


def run_command(args: argparse.Namespace, store: MetadataStore) -> int:
    """Run the parsed command against `store` and return the exit code."""
    integrity = IntegrityService(store)

    if args.command == "stats":
        _print_json(store.get_statistics().model_dump(mode="json"))
        return EXIT_OK

    if args.command == "entries":
        _print_json([entry.model_dump(mode="json") for entry in store.get_all_entries()])
        return EXIT_OK

    if args.command == "validate":
        if args.filename is not None:
            result = integrity.validate_one(args.filename)
            _print_json(result.model_dump(mode="json"))
            return EXIT_OK if result.valid else EXIT_INVALID_FILES

        report = integrity.validate_all()
        _print_json(report.model_dump(mode="json"))
        return EXIT_OK if report.invalid_files == 0 else EXIT_INVALID_FILES

    if args.command == "reconcile":
        _print_json({"removed": integrity.reconcile()})
        return EXIT_OK

    if args.command == "register":
        info = RegistrationInfo(
            size_bytes=args.size_bytes,
            producer_version=args.producer_version,
            producer_level=args.producer_level,
        )
        entry = store.register_entry(args.filename, info)
        _print_json(entry.model_dump(mode="json"))
        return EXIT_OK

    if args.command == "configure":
        update = ConfigurationUpdate(
            auto_save_enabled=args.auto_save_enabled,
            auto_save_interval_ms=args.auto_save_interval_ms,
            backup_retention_count=args.backup_retention_count,
            migration_completed=args.migration_completed,
        )
        record = store.update_configuration(update)
        _print_json(record.model_dump(mode="json", exclude={"entries", "statistics"}))
        return EXIT_OK

    if args.command == "export":
        _print_json({"exported_to": str(store.export_metadata(args.path))})
        return EXIT_OK

    raise ValueError(f"Unknown command {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the `save-metadata` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logger(args.log_level or save_metadata_settings.log_level)

    directory = args.directory or save_metadata_settings.store_directory
    try:
        store = MetadataStore(directory)
        return run_command(args, store)
    except (SaveMetadataError, ValueError) as e:
        logger.error(str(e))
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
