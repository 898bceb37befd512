"""
Request builder - validate an inbound leave request and produce the stored record

Clients have sent the allocation split and the day count under several names
over time. ``normalize_request_input`` resolves them once, using the precedence
tables below, so nothing downstream has to know about the old spellings.
"""
import logging
from typing import Any, Dict, Iterable, NamedTuple, Optional, Tuple

from leave_ledger.core.errors import ValidationError
from leave_ledger.utils.calendar_rules import (
    next_workday_after,
    normalize_to_iso,
    parse_local_date,
    weekday_count_inclusive,
)
from leave_ledger.utils.datetime_utils import epoch_millis, now_iso
from leave_ledger.utils.day_math import as_json_number, round_half_day, to_number

logger = logging.getLogger(__name__)

LEAVE_TYPES = ("annual", "offDay")
LOCATIONS = ("local", "overseas")

# First key present wins. Dotted keys read a nested object.
ANNUAL_ALLOCATION_KEYS = ("allocations.annual", "annualAlloc", "annualLeaveAlloc", "annualLeaveUsed")
OFF_ALLOCATION_KEYS = ("allocations.off", "offAlloc", "offDaysAlloc", "offDaysUsed")

# First positive value wins; when none is positive the working days are counted.
DAY_COUNT_KEYS = ("days", "totalWeekdays", "requestedDays")

RESUME_KEYS = ("resumeWorkOn", "resumeOn")


class RequestInput(NamedTuple):
    """Canonical shape of a create payload after normalization."""
    annual: float
    off: float
    declared_days: Tuple[float, ...]
    start_date: str
    end_date: str
    resume_on: str


def _lookup(payload: Dict[str, Any], dotted_key: str) -> Any:
    value: Any = payload
    for part in dotted_key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def first_present(payload: Dict[str, Any], keys: Iterable[str]) -> Any:
    """Value of the first key that is present (not None) in ``payload``."""
    for key in keys:
        value = _lookup(payload, key)
        if value is not None:
            return value
    return None


def normalize_request_input(payload: Dict[str, Any]) -> RequestInput:
    """Resolve legacy aliases into one ``RequestInput``."""
    resume_on = ""
    for key in RESUME_KEYS:
        resume_on = normalize_to_iso(payload.get(key))
        if resume_on:
            break

    return RequestInput(
        annual=round_half_day(first_present(payload, ANNUAL_ALLOCATION_KEYS)),
        off=round_half_day(first_present(payload, OFF_ALLOCATION_KEYS)),
        declared_days=tuple(round_half_day(payload.get(key)) for key in DAY_COUNT_KEYS),
        start_date=normalize_to_iso(payload.get("startDate")),
        end_date=normalize_to_iso(payload.get("endDate")),
        resume_on=resume_on,
    )


def resolve_days(normalized: RequestInput, holidays: Optional[set] = None) -> float:
    """
    Total requested days, in priority order:
    the allocation split, days, totalWeekdays, requestedDays, then the working
    days between startDate and endDate.
    """
    if normalized.annual > 0 or normalized.off > 0:
        return round_half_day(normalized.annual + normalized.off)
    for declared in normalized.declared_days:
        if declared > 0:
            return declared
    return float(weekday_count_inclusive(normalized.start_date, normalized.end_date, holidays))


def _requested_days_compat(payload: Dict[str, Any]) -> Optional[float]:
    for key in ("totalWeekdays", "requestedDays"):
        number = to_number(payload.get(key), None)
        if number is not None:
            return as_json_number(number)
    return None


def build_new_request(
    payload: Dict[str, Any],
    holidays: Optional[set] = None,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Validate a create payload and build a pending LeaveRequest record

    Args:
        payload: Raw JSON body
        holidays: ISO holiday dates used when days are counted from the dates
        now: Override for createdAt (tests)

    Returns:
        The new record (status "pending")

    Raises:
        ValidationError: On the first failed check
    """
    if not payload.get("userId") or not payload.get("userName") or not payload.get("section"):
        raise ValidationError("userId, userName, section required")
    if payload.get("type") not in LEAVE_TYPES:
        raise ValidationError("type must be 'annual' or 'offDay'")
    if payload.get("localOrOverseas") not in LOCATIONS:
        raise ValidationError("localOrOverseas must be 'local' or 'overseas'")

    normalized = normalize_request_input(payload)

    start = parse_local_date(normalized.start_date)
    end = parse_local_date(normalized.end_date)
    if start and end and start > end:
        raise ValidationError("startDate must be on or before endDate")

    days = round_half_day(resolve_days(normalized, holidays))
    if not days > 0:
        raise ValidationError("days must be a positive number (or provide valid startDate/endDate)")

    resume_on = normalized.resume_on
    if not resume_on and normalized.end_date:
        resume_on = next_workday_after(normalized.end_date, holidays)

    record: Dict[str, Any] = {
        "id": str(payload.get("id") or epoch_millis()),
        "userId": payload["userId"],
        "userName": payload["userName"],
        "section": payload["section"],
        "type": payload["type"],
        "localOrOverseas": payload["localOrOverseas"],
        "startDate": normalized.start_date or None,
        "endDate": normalized.end_date or None,
        "resumeOn": resume_on or None,
        "days": as_json_number(days),
        "allocations": {
            "annual": as_json_number(normalized.annual),
            "off": as_json_number(normalized.off),
        },
        "reason": payload.get("reason") or "",
        "status": "pending",
        "createdAt": now or now_iso(),
        "decidedAt": None,
        "decidedBy": None,
        "requestedDays": _requested_days_compat(payload),
        "halfDayStart": payload.get("halfDayStart") or None,
        "halfDayEnd": payload.get("halfDayEnd") or None,
        "useOffDays": bool(payload.get("useOffDays")),
    }

    # Optional fields are omitted rather than stored as null
    for key in ("startDate", "endDate", "resumeOn", "requestedDays", "halfDayStart", "halfDayEnd"):
        if record[key] is None:
            del record[key]

    logger.debug("Built leave request %s for %s: %s day(s)", record["id"], record["userId"], record["days"])
    return record
