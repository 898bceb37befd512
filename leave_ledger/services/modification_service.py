"""
Modification service - edit or cancel an approved leave request

Edits move the balance by (old deduction - new deduction) in one step, so a
changed request costs exactly what it should to the half day. Cancellations
refund at most what was taken, bucket by bucket.
"""
import logging
from typing import Any, Dict, List

from leave_ledger.core.errors import NotFoundError, ValidationError
from leave_ledger.services.approval_service import AppliedDeduction, applied_state, stamp_applied
from leave_ledger.services.balance_service import adjust_balances, find_user_index
from leave_ledger.services.ledger_store import Ledger
from leave_ledger.services.transaction_service import TransactionAction, log_balance_change
from leave_ledger.utils.calendar_rules import next_workday_after, normalize_to_iso, parse_local_date
from leave_ledger.utils.datetime_utils import now_iso, today_local
from leave_ledger.utils.day_math import as_json_number, round_half_day, to_number

logger = logging.getLogger(__name__)

DEFAULT_EDITOR_NAME = "Admin"


def _require_note(patch: Dict[str, Any]) -> str:
    note = patch.get("editNote")
    if not isinstance(note, str) or not note.strip():
        raise ValidationError("editNote is required")
    return note.strip()


def _user_for(ledger: Ledger, request: Dict[str, Any]) -> Dict[str, Any]:
    idx = find_user_index(ledger.users, request.get("userId"))
    if idx == -1:
        raise NotFoundError("user not found")
    return ledger.users[idx]


def _original_deduction(request: Dict[str, Any]) -> AppliedDeduction:
    state = applied_state(request)
    if state is None:
        # Approved before deductions were tracked: nothing to reverse.
        return AppliedDeduction(0.0, 0.0, None, None, None)
    return state


def _optional_date(patch: Dict[str, Any], key: str, current: Any) -> Any:
    raw = patch.get(key)
    if raw is None or raw == "":
        return current
    iso = normalize_to_iso(raw)
    if not iso:
        raise ValidationError(f"{key} is not a valid date")
    return iso


def _new_amount(patch: Dict[str, Any], key: str, fallback: float) -> float:
    number = to_number(patch.get(key), None)
    if number is None:
        return fallback
    amount = round_half_day(number)
    if amount < 0:
        raise ValidationError(f"{key} must not be negative")
    return amount


def _stamp_editor(record: Dict[str, Any], patch: Dict[str, Any], note: str, at: str) -> None:
    record["lastEditedAt"] = at
    record["lastEditedById"] = patch.get("editedById")
    record["lastEditedByName"] = patch.get("editedByName") or DEFAULT_EDITOR_NAME
    record["editNote"] = note


def edit_approved_request(ledger: Ledger, idx: int, patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Change dates and/or the deduction of an approved request

    Reverses the original deduction and applies the new one as a single net
    adjustment. New amounts default to the current ones.

    Args:
        ledger: Ledger snapshot (committed by the caller)
        idx: Index of the request in ``ledger.requests``
        patch: newStartDate, newEndDate, newTotalDays, newAppliedAnnual,
            newAppliedOff, editedById, editedByName, editNote

    Returns:
        The updated request record
    """
    record = dict(ledger.requests[idx])
    note = _require_note(patch)
    original = _original_deduction(record)

    start = _optional_date(patch, "newStartDate", record.get("startDate"))
    end = _optional_date(patch, "newEndDate", record.get("endDate"))
    start_d, end_d = parse_local_date(start), parse_local_date(end)
    if start_d and end_d and start_d > end_d:
        raise ValidationError("newStartDate must be on or before newEndDate")

    new_annual = _new_amount(patch, "newAppliedAnnual", original.annual)
    new_off = _new_amount(patch, "newAppliedOff", original.off)

    user = _user_for(ledger, record)
    applied = adjust_balances(user, original.annual - new_annual, original.off - new_off)
    # What is now deducted in total, after any clamping at the balance limits
    taken_annual = round_half_day(original.annual - applied.annual_leave)
    taken_off = round_half_day(original.off - applied.off_days)

    total_days = to_number(patch.get("newTotalDays"), None)
    if total_days is not None and round_half_day(total_days) > 0:
        days = round_half_day(total_days)
    elif taken_annual + taken_off > 0:
        days = round_half_day(taken_annual + taken_off)
    else:
        days = round_half_day(record.get("days"))

    at = now_iso()
    if start:
        record["startDate"] = start
    if end:
        record["endDate"] = end
        record["resumeOn"] = next_workday_after(end, ledger.holidays)
    record["days"] = as_json_number(days)
    record["allocations"] = {"annual": as_json_number(taken_annual), "off": as_json_number(taken_off)}
    stamp_applied(record, AppliedDeduction(
        annual=taken_annual,
        off=taken_off,
        at=original.at or at,
        by=original.by,
        by_id=original.by_id,
    ))
    _stamp_editor(record, patch, note, at)

    ledger.requests[idx] = record
    ledger.touch_requests()
    ledger.touch_users()
    log_balance_change(
        ledger, user, applied, TransactionAction.EDIT_ADJUST,
        request_id=str(record.get("id")), remarks=note,
        actor_id=patch.get("editedById"), actor_name=record["lastEditedByName"],
    )
    logger.info(
        "Edited leave request %s: annual %s -> %s, off %s -> %s",
        record.get("id"), original.annual, taken_annual, original.off, taken_off,
    )
    return record


def refund_violations(original: AppliedDeduction, refund_annual: float, refund_off: float) -> List[str]:
    """Every way a refund breaks the bounds of the original deduction."""
    details = []
    if refund_annual < 0:
        details.append("refundAnnual must not be negative")
    if refund_off < 0:
        details.append("refundOff must not be negative")
    if refund_annual > original.annual:
        details.append(
            f"refundAnnual ({as_json_number(refund_annual)}) exceeds appliedAnnual ({as_json_number(original.annual)})"
        )
    if refund_off > original.off:
        details.append(
            f"refundOff ({as_json_number(refund_off)}) exceeds appliedOff ({as_json_number(original.off)})"
        )
    total_refund = refund_annual + refund_off
    total_applied = original.annual + original.off
    if total_refund > total_applied:
        details.append(
            f"total refund ({as_json_number(total_refund)}) exceeds total applied ({as_json_number(total_applied)})"
        )
    return details


def cancel_approved_request(ledger: Ledger, idx: int, patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cancel an approved request and refund part or all of its deduction

    Args:
        ledger: Ledger snapshot (committed by the caller)
        idx: Index of the request in ``ledger.requests``
        patch: refundAnnual, refundOff, cancelReturnDate, editedById,
            editedByName, editNote

    Returns:
        The cancelled request record

    Raises:
        ValidationError: Missing note, or a refund outside the original
            deduction (``details`` lists every violated bucket)
    """
    record = dict(ledger.requests[idx])
    note = _require_note(patch)
    original = _original_deduction(record)

    refund_annual = round_half_day(patch.get("refundAnnual"))
    refund_off = round_half_day(patch.get("refundOff"))
    details = refund_violations(original, refund_annual, refund_off)
    if details:
        raise ValidationError("refund exceeds the original deduction", details=details)

    return_date = ""
    for key in ("cancelReturnDate", "cancelledReturnDate"):
        if patch.get(key):
            return_date = normalize_to_iso(patch.get(key))
            if not return_date:
                raise ValidationError(f"{key} is not a valid date")
            break
    if not return_date:
        return_date = next_workday_after(today_local(), ledger.holidays)

    user = _user_for(ledger, record)
    applied = adjust_balances(user, refund_annual, refund_off)

    at = now_iso()
    record["status"] = "cancelled"
    record["cancelledAt"] = at
    record["cancelledReturnDate"] = return_date
    record["refundedAnnual"] = as_json_number(refund_annual)
    record["refundedOff"] = as_json_number(refund_off)
    _stamp_editor(record, patch, note, at)

    ledger.requests[idx] = record
    ledger.touch_requests()
    ledger.touch_users()
    log_balance_change(
        ledger, user, applied, TransactionAction.CANCEL_REFUND,
        request_id=str(record.get("id")), remarks=note,
        actor_id=patch.get("editedById"), actor_name=record["lastEditedByName"],
    )
    logger.info(
        "Cancelled leave request %s: refunded annual=%s off=%s",
        record.get("id"), refund_annual, refund_off,
    )
    return record
