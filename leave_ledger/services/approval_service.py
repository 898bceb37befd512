"""
Approval service - deduct a request's days from the user's balance exactly once

A request carries an idempotency witness (applied / appliedAt / appliedBy /
appliedById / appliedAnnual / appliedOff). ``applied_state`` reads those
fields as a single tagged value and ``stamp_applied`` writes them together,
so they cannot drift apart.
"""
import logging
from typing import Any, Dict, NamedTuple, Optional

from leave_ledger.core.errors import ConflictError, ValidationError
from leave_ledger.services.balance_service import adjust_balances, find_user_index
from leave_ledger.services.ledger_store import Ledger
from leave_ledger.services.transaction_service import TransactionAction, log_balance_change
from leave_ledger.utils.datetime_utils import now_iso
from leave_ledger.utils.day_math import as_json_number, round_half_day, to_number

logger = logging.getLogger(__name__)


class AppliedDeduction(NamedTuple):
    """What an approval actually took from the balance."""
    annual: float
    off: float
    at: Optional[str]
    by: Optional[str]
    by_id: Any


class DeductionResult(NamedTuple):
    applied_annual: float
    applied_off: float
    already_applied: bool


def applied_state(record: Dict[str, Any]) -> Optional[AppliedDeduction]:
    """
    The deduction recorded on a request, or None if it was never applied.

    Either ``applied is True`` or a non-empty ``appliedAt`` string counts as applied.
    """
    applied_at = record.get("appliedAt")
    has_timestamp = isinstance(applied_at, str) and applied_at != ""
    if record.get("applied") is not True and not has_timestamp:
        return None
    return AppliedDeduction(
        annual=round_half_day(record.get("appliedAnnual")),
        off=round_half_day(record.get("appliedOff")),
        at=applied_at if has_timestamp else None,
        by=record.get("appliedBy"),
        by_id=record.get("appliedById"),
    )


def stamp_applied(record: Dict[str, Any], state: AppliedDeduction) -> Dict[str, Any]:
    """Write the witness fields onto a request record."""
    record["applied"] = True
    record["appliedAt"] = state.at or now_iso()
    record["appliedBy"] = state.by
    record["appliedById"] = state.by_id
    record["appliedAnnual"] = as_json_number(state.annual)
    record["appliedOff"] = as_json_number(state.off)
    return record


def _bucket_amount(explicit: Any, allocation: Any, request: Dict[str, Any], bucket_type: str) -> float:
    """
    Days to deduct from one bucket:
    explicit patch value, else a positive allocation, else the request's days
    when its type draws from this bucket, else 0.
    """
    number = to_number(explicit, None)
    if number is not None:
        amount = round_half_day(number)
        if amount < 0:
            raise ValidationError("applied amounts must not be negative")
        return amount

    allocated = round_half_day(allocation)
    if allocated > 0:
        return allocated

    if request.get("type") == bucket_type:
        return max(0.0, round_half_day(request.get("days")))
    return 0.0


def resolve_deduction(request: Dict[str, Any], patch: Dict[str, Any]) -> tuple:
    """(annual, off) days to deduct for approving ``request``."""
    allocations = request.get("allocations") or {}
    annual = _bucket_amount(patch.get("appliedAnnual"), allocations.get("annual"), request, "annual")
    off = _bucket_amount(patch.get("appliedOff"), allocations.get("off"), request, "offDay")
    return annual, off


def approve_and_deduct(
    ledger: Ledger,
    request: Dict[str, Any],
    patch: Dict[str, Any],
    actor_name: Optional[str] = None,
    actor_id: Any = None,
) -> DeductionResult:
    """
    Deduct an approved request's days from its user's balance

    Args:
        ledger: Ledger snapshot (committed by the caller)
        request: The request being approved
        patch: Decision body; may carry appliedAnnual / appliedOff overrides
        actor_name: Approver name, for the transaction log
        actor_id: Approver id, for the transaction log

    Returns:
        Amounts deducted; ``already_applied`` is True (and nothing changes)
        when the request was deducted before

    Raises:
        ConflictError: The request's user does not exist
        ValidationError: A negative override amount
    """
    existing = applied_state(request)
    if existing is not None:
        logger.info("Leave request %s already applied; skipping deduction", request.get("id"))
        return DeductionResult(existing.annual, existing.off, True)

    idx = find_user_index(ledger.users, request.get("userId"))
    if idx == -1:
        raise ConflictError("user not found for balance deduction")
    user = ledger.users[idx]

    annual, off = resolve_deduction(request, patch)
    applied = adjust_balances(user, -annual, -off)
    taken_annual, taken_off = -applied.annual_leave, -applied.off_days
    if (taken_annual, taken_off) != (annual, off):
        logger.warning(
            "Balance floor reached for user %s: requested %s/%s, deducted %s/%s",
            user.get("id"), annual, off, taken_annual, taken_off,
        )

    ledger.touch_users()
    log_balance_change(
        ledger, user, applied, TransactionAction.APPROVE_DEDUCT,
        request_id=str(request.get("id")), actor_id=actor_id, actor_name=actor_name,
    )
    logger.info(
        "Deducted annual=%s off=%s from user %s for leave request %s",
        taken_annual, taken_off, user.get("id"), request.get("id"),
    )
    return DeductionResult(taken_annual + 0.0, taken_off + 0.0, False)
