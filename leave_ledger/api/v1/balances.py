"""
Balance endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from leave_ledger.core.deps import get_db
from leave_ledger.schemas.balance import BalanceOut, BalanceOverride, LedgerTransactionList
from leave_ledger.services import ledger_service
from leave_ledger.services.ledger_store import ledger_transaction, load_ledger

router = APIRouter()


@router.get("", response_model=List[BalanceOut])
async def list_balances(db: Session = Depends(get_db)):
    """Balances of all staff (the admin account is left out)"""
    return ledger_service.list_balances(load_ledger(db))


@router.get("/{user_id}", response_model=BalanceOut)
async def get_balance(user_id: str, db: Session = Depends(get_db)):
    """Balances of one user (by id, name, or legacy position)"""
    return ledger_service.user_balance(load_ledger(db), user_id)


@router.patch("/{user_id}", response_model=BalanceOut)
async def override_balance(
    user_id: str,
    body: BalanceOverride,
    db: Session = Depends(get_db),
):
    """
    Set a user's balances directly

    Accepts annualLeave/offDays or the legacy leaveBalance/offDayBalance.
    Values are clamped to the allowed range and the change is recorded as a
    MANUAL_ADJUST transaction.
    """
    payload = body.model_dump(exclude_none=True)
    with ledger_transaction(db) as ledger:
        return ledger_service.override_user_balance(ledger, user_id, payload)


@router.get("/{user_id}/transactions", response_model=LedgerTransactionList)
async def list_balance_transactions(
    user_id: str,
    limit: int = Query(100, ge=1, le=1000, description="Maximum entries, newest first"),
    db: Session = Depends(get_db),
):
    """Balance movements of one user"""
    ledger = load_ledger(db)
    user = ledger_service.user_balance(ledger, user_id)
    items = ledger_service.user_transactions(ledger, user["userId"], limit=limit)
    return LedgerTransactionList(userId=user["userId"], items=items, total=len(items))
