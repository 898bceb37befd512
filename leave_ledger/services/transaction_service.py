"""
Ledger transactions - audit trail of every balance movement

One row per bucket per mutation: approval deductions, edit adjustments,
cancellation refunds and manual overrides. Rows are queued on the ledger
snapshot and inserted in the same commit as the balance change they describe.
"""
import enum
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from leave_ledger.models.ledger_transaction import LedgerTransaction
from leave_ledger.services.balance_service import Balances
from leave_ledger.services.ledger_store import Ledger
from leave_ledger.utils.datetime_utils import iso_8601_utc, now_utc
from leave_ledger.utils.day_math import as_json_number


class TransactionAction(str, enum.Enum):
    APPROVE_DEDUCT = "APPROVE_DEDUCT"
    EDIT_ADJUST = "EDIT_ADJUST"
    CANCEL_REFUND = "CANCEL_REFUND"
    MANUAL_ADJUST = "MANUAL_ADJUST"


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def log_balance_change(
    ledger: Ledger,
    user: Dict[str, Any],
    applied: Balances,
    action: TransactionAction,
    request_id: Optional[str] = None,
    remarks: Optional[str] = None,
    actor_id: Any = None,
    actor_name: Optional[str] = None,
) -> List[LedgerTransaction]:
    """
    Queue one transaction per bucket whose balance actually moved.

    Args:
        applied: Deltas as applied to the balance (negative = deducted)

    Returns:
        The queued rows
    """
    at = now_utc()
    rows = []
    for bucket, delta in (("annual", applied.annual_leave), ("off", applied.off_days)):
        if not delta:
            continue
        row = LedgerTransaction(
            user_id=str(user.get("id")),
            request_id=_optional_str(request_id),
            bucket=bucket,
            delta=Decimal(str(delta)),
            action=action.value,
            remarks=remarks,
            actor_id=_optional_str(actor_id),
            actor_name=actor_name,
            action_at=at,
        )
        ledger.add_transaction(row)
        rows.append(row)
    return rows


def transaction_view(row: LedgerTransaction) -> Dict[str, Any]:
    """JSON shape of a stored transaction."""
    return {
        "id": str(row.id),
        "userId": row.user_id,
        "requestId": row.request_id,
        "bucket": row.bucket,
        "delta": as_json_number(float(row.delta)),
        "action": row.action,
        "remarks": row.remarks,
        "actorId": row.actor_id,
        "actorName": row.actor_name,
        "at": iso_8601_utc(row.action_at),
    }


def get_transactions(db: Session, user_id: str, limit: int = 100) -> List[LedgerTransaction]:
    """Most recent transactions for a user, newest first."""
    return (
        db.query(LedgerTransaction)
        .filter(LedgerTransaction.user_id == str(user_id))
        .order_by(LedgerTransaction.action_at.desc(), LedgerTransaction.id.desc())
        .limit(limit)
        .all()
    )
