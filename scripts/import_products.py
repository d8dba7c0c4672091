"""
Run a product import locally and print the report as JSON.

Usage:
    python scripts/import_products.py path/to/products.xlsx
    python scripts/import_products.py path/to/products.xlsx --summary
"""
import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exceptions import AppError
from services.product_import_service import get_product_import_service


def print_summary(report) -> None:
    """Human-readable overview of an import report."""
    print(f"\n{'='*60}")
    print("PRODUCT IMPORT")
    print(f"{'='*60}")
    print(f"File: {report.file_name} (sheet: {report.sheet_name})")
    print(f"Mapping source: {report.mapping.source}, confidence: {report.mapping.confidence:.2f}")
    print(f"Category guess: {report.mapping.category_guess} -> "
          f"{report.mapping.resolved_category_id} ({report.mapping.resolved_category_label})")

    print("\nColumns:")
    for column, rule in report.mapping.column_mappings.items():
        print(f"  {column} -> {rule.field} ({rule.transformer.value})")

    stats = report.stats
    print(f"\nRows: {stats.total_rows}")
    print(f"  Parsed: {stats.successfully_parsed}")
    print(f"  Errors: {stats.errors}")

    if report.errors:
        print(f"\nErrors ({len(report.errors)}):")
        for e in report.errors[:10]:
            print(f"  - row {e.row}: {e.error}")

    if report.drafts:
        print("\nFirst draft:")
        print(json.dumps(report.drafts[0].model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a product spreadsheet as drafts")
    parser.add_argument("file", help="Path to .xlsx or .csv file")
    parser.add_argument("--summary", action="store_true", help="Print a summary instead of JSON")
    args = parser.parse_args()

    path = Path(args.file).resolve()
    if not path.exists():
        print(f"[ERROR] File not found: {path}")
        return 1

    try:
        report = asyncio.run(get_product_import_service().import_products(path.read_bytes(), path.name))
    except AppError as e:
        print(f"[ERROR] {e.code}: {e.message}")
        return 1

    if args.summary:
        print_summary(report)
    else:
        print(json.dumps(report.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
