"""
Calendar schemas
"""
from typing import List, Union
from pydantic import BaseModel


class HolidayOut(BaseModel):
    date: str
    name: str


class HolidayListResponse(BaseModel):
    items: List[HolidayOut]
    total: int


class WorkdaysOut(BaseModel):
    """Working days in a range, checked against an allocation split"""
    start: str
    end: str
    required: int
    selected: Union[int, float]
    mismatch: Union[int, float]
    annual: Union[int, float]
    off: Union[int, float]
    resumeOn: str
    suggestedEndDate: str
