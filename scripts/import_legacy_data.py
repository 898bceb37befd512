"""
Import the legacy JSON data files into the documents table.

Reads leave-requests.json, users.json and holidays.json from a directory.
Documents that already exist are left alone, so this is safe to re-run.

Usage:
  python scripts/import_legacy_data.py --data-dir ./data
"""
import argparse
import sys
from pathlib import Path

# Add project root so leave_ledger is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from leave_ledger.db import session as db_session
from leave_ledger.services.seed_service import LEGACY_FILES, import_legacy_data


def main():
    parser = argparse.ArgumentParser(description="Import legacy JSON data files")
    parser.add_argument("--data-dir", required=True, help="Directory holding the legacy JSON files")
    args = parser.parse_args()

    db = db_session.SessionLocal()
    try:
        created = import_legacy_data(db, args.data_dir)
        for key in LEGACY_FILES:
            print(f"  {key}: {'imported' if key in created else 'skipped'}")
        print("Done.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
