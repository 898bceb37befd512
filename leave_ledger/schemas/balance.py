"""
Balance schemas
"""
from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class BalanceOut(BaseModel):
    """A user's balances under both the current and the legacy field names"""
    userId: str
    name: Optional[str] = None
    annualLeave: Union[int, float]
    offDays: Union[int, float]
    leaveBalance: Union[int, float]
    offDayBalance: Union[int, float]


class BalanceOverride(BaseModel):
    """Direct administrative override; either spelling is accepted"""
    annualLeave: Optional[Any] = Field(None, description="New annual leave balance")
    offDays: Optional[Any] = Field(None, description="New off-day balance")
    leaveBalance: Optional[Any] = Field(None, description="Legacy name of annualLeave")
    offDayBalance: Optional[Any] = Field(None, description="Legacy name of offDays")
    actorId: Optional[Any] = Field(None, description="Who made the change")
    actorName: Optional[str] = None
    remarks: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class LedgerTransactionOut(BaseModel):
    """One balance movement"""
    id: str
    userId: str
    requestId: Optional[str] = None
    bucket: str
    delta: Union[int, float]
    action: str
    remarks: Optional[str] = None
    actorId: Optional[Any] = None
    actorName: Optional[str] = None
    at: str


class LedgerTransactionList(BaseModel):
    userId: str
    items: List[LedgerTransactionOut]
    total: int
