"""
Public holiday endpoints (read-only)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leave_ledger.core.deps import get_db
from leave_ledger.schemas.calendar import HolidayListResponse
from leave_ledger.services.holiday_service import list_holidays

router = APIRouter()


@router.get("", response_model=HolidayListResponse)
async def list_holidays_endpoint(db: Session = Depends(get_db)):
    """Holidays excluded from working-day counts, sorted by date"""
    items = list_holidays(db)
    return HolidayListResponse(items=items, total=len(items))
