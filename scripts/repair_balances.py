"""
Repair user balances in place.

Goal:
- Write annualLeave/leaveBalance and offDays/offDayBalance as matching pairs.
- Clamp annual leave to [0, ANNUAL_LEAVE_MAX] and off-days to >= 0.
- Round everything to the half day.

Usage:

    python scripts/repair_balances.py
    python scripts/repair_balances.py --dry-run

Safe to run multiple times (idempotent).
"""
import argparse
import sys
from pathlib import Path

# Ensure leave_ledger is importable when script is run directly
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from leave_ledger.db.session import SessionLocal
from leave_ledger.services.balance_service import normalize_user_balances
from leave_ledger.services.ledger_store import ledger_transaction


def main():
    parser = argparse.ArgumentParser(description="Repair user balance fields")
    parser.add_argument("--dry-run", action="store_true", help="Do not commit")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        with ledger_transaction(db) as ledger:
            changed = normalize_user_balances(ledger.users)
            print(f"{changed} of {len(ledger.users)} user(s) need repair")
            if changed and not args.dry_run:
                ledger.touch_users()
        print("Dry run: nothing written." if args.dry_run else "Done.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
