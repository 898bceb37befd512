"""
Main API router
"""
from fastapi import APIRouter

from leave_ledger.api.v1 import (
    health,
    leave_requests,
    balances,
    holidays,
    calendar,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(leave_requests.router, prefix="/leave-requests", tags=["leave-requests"])
# Older clients still call the slash form
api_router.include_router(
    leave_requests.router, prefix="/leave/requests", tags=["leave-requests"], include_in_schema=False
)
api_router.include_router(balances.router, prefix="/balances", tags=["balances"])
api_router.include_router(holidays.router, prefix="/holidays", tags=["holidays"])
api_router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
api_router.include_router(
    balances.router, prefix="/leave/balances", tags=["balances"], include_in_schema=False
)
