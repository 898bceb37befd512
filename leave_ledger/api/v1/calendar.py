"""
Working-day calculator used by the request form
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from leave_ledger.core.deps import get_db
from leave_ledger.core.errors import ValidationError
from leave_ledger.schemas.calendar import WorkdaysOut
from leave_ledger.services.holiday_service import load_holiday_set
from leave_ledger.utils.calendar_rules import (
    end_date_for_workday_count,
    next_workday_after,
    normalize_to_iso,
    parse_local_date,
    reconcile,
)

router = APIRouter()

# Upper bound for a single allocation bucket in the calculator
MAX_BUCKET_DAYS = 366


@router.get("/workdays", response_model=WorkdaysOut)
async def workdays(
    start: str = Query(..., description="First day of leave"),
    end: str = Query(..., description="Last day of leave"),
    annual: Optional[float] = Query(None, le=MAX_BUCKET_DAYS, description="Days taken from annual leave"),
    off: Optional[float] = Query(None, le=MAX_BUCKET_DAYS, description="Days taken from off-days"),
    db: Session = Depends(get_db),
):
    """
    Count working days between start and end (inclusive) and check an
    annual/off split against it.

    suggestedEndDate is where the selected number of working days would end;
    resumeOn is the first working day after end.
    """
    start_iso, end_iso = normalize_to_iso(start), normalize_to_iso(end)
    if not start_iso or not end_iso:
        raise ValidationError("start and end must be valid dates")
    if parse_local_date(start_iso) > parse_local_date(end_iso):
        raise ValidationError("start must be on or before end")

    holidays = load_holiday_set(db)
    result = reconcile(start_iso, end_iso, annual, off, holidays)
    suggested = end_iso
    if result["selected"] > 0:
        suggested = end_date_for_workday_count(start_iso, result["selected"], holidays)

    return WorkdaysOut(
        start=start_iso,
        end=end_iso,
        resumeOn=next_workday_after(end_iso, holidays),
        suggestedEndDate=suggested,
        **result,
    )
