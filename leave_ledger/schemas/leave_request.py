"""
Leave request schemas

Bodies accept any extra keys: older clients send legacy field names that the
request builder resolves, and records keep every field they were stored with.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Allocations(BaseModel):
    """Split of a request between the two balance buckets (stored values are echoed as-is)"""
    annual: Optional[Any] = 0
    off: Optional[Any] = 0

    model_config = ConfigDict(extra="allow")


class LeaveRequestCreate(BaseModel):
    """Schema for submitting a leave request"""
    id: Optional[Any] = Field(None, description="Client-supplied id; a timestamp id is generated otherwise")
    userId: Optional[Any] = Field(None, description="Requester id")
    userName: Optional[str] = Field(None, description="Requester display name")
    section: Optional[str] = Field(None, description="Requester's section")
    type: Optional[str] = Field(None, description="'annual' or 'offDay'")
    localOrOverseas: Optional[str] = Field(None, description="'local' or 'overseas'")
    startDate: Optional[Any] = Field(None, description="First day of leave")
    endDate: Optional[Any] = Field(None, description="Last day of leave")
    resumeOn: Optional[Any] = Field(None, description="First working day back")
    resumeWorkOn: Optional[Any] = Field(None, description="Alias of resumeOn")
    days: Optional[Any] = Field(None, description="Total days, half-day granular")
    totalWeekdays: Optional[Any] = Field(None, description="Client-side working day count")
    requestedDays: Optional[Any] = Field(None, description="Legacy total days")
    allocations: Optional[Dict[str, Any]] = Field(None, description="{annual, off} split")
    reason: Optional[str] = Field(None, description="Free text")
    halfDayStart: Optional[Any] = None
    halfDayEnd: Optional[Any] = None
    useOffDays: Optional[bool] = None

    model_config = ConfigDict(extra="allow")


class LeaveRequestPatch(BaseModel):
    """
    Schema for PATCH /leave-requests/{id}

    Either a decision ({status, decidedBy, approverId, approverName,
    decisionNote, appliedAnnual, appliedOff}) or a modification
    ({action: "modify", mode: "edit" | "cancel", ...}).
    """
    status: Optional[str] = Field(None, description="'approved' or 'denied'")
    decidedBy: Optional[str] = None
    approverId: Optional[Any] = None
    approverName: Optional[str] = None
    decisionNote: Optional[str] = None
    appliedAnnual: Optional[Any] = Field(None, description="Override annual days to deduct")
    appliedOff: Optional[Any] = Field(None, description="Override off-days to deduct")

    action: Optional[str] = Field(None, description="'modify' for edit/cancel")
    mode: Optional[str] = Field(None, description="'edit' or 'cancel'")
    newStartDate: Optional[Any] = None
    newEndDate: Optional[Any] = None
    newTotalDays: Optional[Any] = None
    newAppliedAnnual: Optional[Any] = None
    newAppliedOff: Optional[Any] = None
    refundAnnual: Optional[Any] = None
    refundOff: Optional[Any] = None
    cancelReturnDate: Optional[Any] = None
    editedById: Optional[Any] = None
    editedByName: Optional[str] = None
    editNote: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class LeaveRequestOut(BaseModel):
    """
    Schema for a stored leave request (all stored fields are returned)

    Imported legacy records are not re-validated, so value fields stay loose.
    """
    id: Any = None
    userId: Any = None
    userName: Optional[str] = None
    section: Optional[str] = None
    type: Optional[str] = None
    localOrOverseas: Optional[str] = None
    startDate: Optional[Any] = None
    endDate: Optional[Any] = None
    resumeOn: Optional[Any] = None
    days: Optional[Any] = None
    allocations: Optional[Allocations] = None
    reason: Optional[str] = None
    status: Optional[str] = None
    createdAt: Optional[str] = None
    decidedAt: Optional[str] = None
    decidedBy: Optional[Any] = None

    model_config = ConfigDict(extra="allow")


class OnLeaveResponse(BaseModel):
    """Approved requests covering a date"""
    date: str
    items: List[LeaveRequestOut]
    total: int
