#!/usr/bin/env python3
# =============================================================================
# scripts/import_gemstones.py - Stock Sheet Import from the Command Line
# =============================================================================
# Imports the gemstone stock spreadsheet without going through the API.
#
# Usage:
#   # Import from a published CSV URL
#   python scripts/import_gemstones.py --url https://example.com/stock.csv
#
#   # Re-import a local export, updating lots that already exist
#   python scripts/import_gemstones.py --file stock.csv --mode upsert
#
#   # Parse only and report what would be imported
#   python scripts/import_gemstones.py --file stock.csv --dry-run
#
# Prerequisites:
#   - Environment variables must be set (.env file)
# =============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from app.config import get_settings
from app.exceptions import GemDeskException
from core.models import ImportMode
from core.services.import_service import GemstoneImportService, parse_stock_csv
from lib.csv_source import decode_csv_bytes, fetch_csv_text
from lib.supabase_client import SupabaseClient, SupabaseClientError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import gemstone lots from a stock CSV")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="HTTP(S) URL of the stock CSV")
    source.add_argument("--file", help="Path to a local stock CSV")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in ImportMode],
        default=ImportMode.INSERT.value,
        help="insert fails on existing codes; upsert updates them",
    )
    parser.add_argument("--dry-run", action="store_true", help="Parse and report without writing")
    return parser.parse_args(argv)


def read_source(args, timeout: float) -> str:
    if args.url:
        return fetch_csv_text(args.url, timeout=timeout)
    with open(args.file, "rb") as f:
        return decode_csv_bytes(f.read())


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print("=" * 60)
    print("Gem Desk Stock Import")
    print("=" * 60)

    try:
        text = read_source(args, settings.CSV_FETCH_TIMEOUT_SECONDS)

        if args.dry_run:
            sheet = parse_stock_csv(text, strategy=settings.CSV_COLUMN_MAPPING)
            print(f"Would import {len(sheet.records)} gemstones")
            for skipped in sheet.skipped:
                print(f"  skip row {skipped.row}: {skipped.reason.value} {skipped.detail or ''}".rstrip())
            for warning in sheet.warnings:
                print(f"  warn row {warning.row}: {warning.field}={warning.value!r} {warning.message}")
            return 0

        importer = GemstoneImportService(
            SupabaseClient.from_settings(settings),
            batch_size=settings.CSV_IMPORT_BATCH_SIZE,
            column_mapping=settings.CSV_COLUMN_MAPPING,
            fetch_timeout=settings.CSV_FETCH_TIMEOUT_SECONDS,
        )
        result = importer.import_text(text, ImportMode(args.mode))

    except (GemDeskException, SupabaseClientError) as e:
        print(f"Import failed: {e}")
        if getattr(e, "details", None):
            print(f"Details: {e.details}")
        return 1
    except OSError as e:
        print(f"Could not read {args.file}: {e}")
        return 1

    print(result.message)
    print(f"Batches: {result.batch_count}, skipped rows: {len(result.skipped)}, warnings: {len(result.warnings)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
