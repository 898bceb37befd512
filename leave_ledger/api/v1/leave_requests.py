"""
Leave request endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from leave_ledger.core.deps import get_db
from leave_ledger.core.errors import NotFoundError
from leave_ledger.schemas.leave_request import (
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestPatch,
    OnLeaveResponse,
)
from leave_ledger.services import ledger_service
from leave_ledger.services.ledger_store import ledger_transaction, load_ledger
from leave_ledger.utils.calendar_rules import normalize_to_iso
from leave_ledger.utils.datetime_utils import today_local

router = APIRouter()


@router.get("", response_model=List[LeaveRequestOut])
async def list_leave_requests(
    status: Optional[str] = Query(None, description="pending | approved | denied | cancelled"),
    userId: Optional[str] = Query(None, description="Exact requester id"),
    mine: Optional[str] = Query(None, description="Case-insensitive part of the requester's name"),
    db: Session = Depends(get_db),
):
    """List leave requests, optionally filtered by status, userId and name."""
    ledger = load_ledger(db)
    return ledger_service.list_requests(ledger, status=status, user_id=userId, mine=mine)


@router.get("/on-leave", response_model=OnLeaveResponse)
async def list_on_leave(
    date: Optional[str] = Query(None, description="Day to check (YYYY-MM-DD); defaults to today"),
    db: Session = Depends(get_db),
):
    """Approved requests covering the given day (for the "currently on leave" card)."""
    day = date or normalize_to_iso(today_local())
    ledger = load_ledger(db)
    items = ledger_service.requests_on_leave(ledger, day)
    return OnLeaveResponse(date=normalize_to_iso(day), items=items, total=len(items))


@router.get("/{request_id}", response_model=LeaveRequestOut)
async def get_leave_request(request_id: str, db: Session = Depends(get_db)):
    """Fetch one leave request."""
    ledger = load_ledger(db)
    idx = ledger.find_request_index(request_id)
    if idx == -1:
        raise NotFoundError("leave request not found")
    return ledger.requests[idx]


@router.post("", response_model=LeaveRequestOut, status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    db: Session = Depends(get_db),
):
    """
    Submit a leave request (created as pending)

    The day count comes from, in order: the allocations split (or its legacy
    names), days, totalWeekdays, requestedDays, or the working days between
    startDate and endDate (weekends and public holidays excluded).
    """
    payload = body.model_dump(exclude_none=True)
    with ledger_transaction(db) as ledger:
        return ledger_service.create_request(ledger, payload)


@router.patch("/{request_id}", response_model=LeaveRequestOut)
async def patch_leave_request(
    request_id: str,
    body: LeaveRequestPatch,
    db: Session = Depends(get_db),
):
    """
    Decide or modify a leave request

    - ``{status: "approved" | "denied", ...}``: only from pending. Approval
      deducts the balance once; the request records what was deducted.
    - ``{action: "modify", mode: "edit", ...}``: re-apply an approved
      request with new dates/amounts; the balance moves by the difference.
      Omitted newAppliedAnnual/newAppliedOff keep the amounts already
      applied, so an edit that only changes dates leaves the balance as is.
    - ``{action: "modify", mode: "cancel", ...}``: cancel an approved request
      and refund up to what was deducted from each bucket.
    """
    patch = body.model_dump(exclude_none=True)
    with ledger_transaction(db) as ledger:
        return ledger_service.patch_request(ledger, request_id, patch)
