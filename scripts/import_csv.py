#!/usr/bin/env python3
"""Bulk-load products from a CSV feed.

Runs the same import pipeline as ``POST /api/upload-csv`` against the
configured database and asset host.

Usage:
    python scripts/import_csv.py
    python scripts/import_csv.py --file feeds/products.csv --skip-example-row
    python scripts/import_csv.py --create-tables
"""

import argparse
import asyncio
import sys

from catalog_admin.application.asset_ingestion import AssetIngestionService
from catalog_admin.application.csv_import import import_csv_file
from catalog_admin.infrastructure.asset_host import AssetHostClient, AssetHostConfig
from catalog_admin.infrastructure.config import get_settings
from catalog_admin.infrastructure.database import Database
from catalog_admin.infrastructure.logging_config import configure_logging


async def main() -> int:
    """Main entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Import products from a CSV file",
    )
    parser.add_argument(
        "--file",
        default=settings.csv_import_path,
        help=f"CSV file to import (default: {settings.csv_import_path})",
    )
    parser.add_argument(
        "--skip-example-row",
        action="store_true",
        help="Ignore the first data row (template example)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create database tables before importing",
    )

    args = parser.parse_args()
    configure_logging(settings.log_level)

    print("=" * 60)
    print("Catalog CSV Import")
    print("=" * 60)
    print(f"File: {args.file}")
    print(f"Skip example row: {args.skip_example_row}")
    print()

    database = Database(settings.database_url)
    assets = AssetIngestionService(
        settings,
        AssetHostClient(AssetHostConfig.from_settings(settings)),
    )

    try:
        if args.create_tables:
            print("Creating database tables...")
            await database.create_tables()
            print("Tables ready.")
            print()

        try:
            summary = await import_csv_file(
                database.session_factory,
                assets,
                args.file,
                skip_example_row=args.skip_example_row,
            )
        except FileNotFoundError:
            print(f"  ✗ File not found: {args.file}")
            return 1
    finally:
        await assets.close()
        await database.dispose()

    print(f"  ✓ Rows read: {summary.total_products}")
    print(f"  ✓ Loaded: {summary.successfully_loaded}")
    print(f"  ✓ Duplicates skipped: {summary.skipped_duplicates}")
    print(f"  ✗ Failed: {summary.failed_loads}")
    print()
    print("=" * 60)
    print(summary.message)
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
