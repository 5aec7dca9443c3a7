#!/usr/bin/env python3
"""
Derived Field Rebuild Utility
Re-derives normalized vector, magnitude and binary code for every stored
record by re-writing its raw vector under the same id.
"""

import argparse
import sys
from pathlib import Path

# Add the project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vector_table.core.config import validate_config, get_search_engine
from vector_table.core.errors import VectorTableError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Rebuild derived vector fields from raw vectors")
    parser.add_argument("--dry-run", action="store_true", help="Only count the records that would be rebuilt")
    return parser.parse_args(argv)


def main(argv=None):
    """Rebuild normalized vectors, magnitudes and binary codes."""
    args = parse_args(argv)

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        sys.exit(1)

    print("Starting derived field rebuild...")

    engine = get_search_engine()
    records = list(engine.store.fetch_all())
    print(f"Found {len(records)} records in {engine.store.__class__.__name__}")

    if args.dry_run:
        print("Dry run - no records rewritten.")
        return

    rebuilt = 0
    failed = 0
    for record in records:
        try:
            engine.upsert(record.raw_vector, record.id)
            rebuilt += 1
        except VectorTableError as e:
            failed += 1
            print(f"ERROR: Failed to rebuild record {record.id}: {e}")
            continue

        if rebuilt % 100 == 0:
            print(f"  ... rebuilt {rebuilt}/{len(records)} records")

    print(f"✓ Rebuilt {rebuilt} records ({failed} failed)")
    print("Rebuild complete!")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
