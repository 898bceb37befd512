"""
Leave request ledger - state transitions for leave requests

    pending  --approve/deny-->  approved | denied
    approved --edit-->          approved
    approved --cancel-->        cancelled

Denied and cancelled are terminal. Records are never deleted.

Balance reads and manual overrides for /balances live here too, since they
share the ledger snapshot and its transaction log.
"""
import logging
from typing import Any, Dict, List, Optional

from leave_ledger.core.config import settings
from leave_ledger.core.errors import ConflictError, NotFoundError, ValidationError
from leave_ledger.services.approval_service import AppliedDeduction, approve_and_deduct, stamp_applied
from leave_ledger.services.balance_service import balance_view, find_user_index, override_balances
from leave_ledger.services.ledger_store import Ledger
from leave_ledger.services.modification_service import cancel_approved_request, edit_approved_request
from leave_ledger.services.request_builder import build_new_request
from leave_ledger.services.transaction_service import (
    TransactionAction,
    get_transactions,
    log_balance_change,
    transaction_view,
)
from leave_ledger.utils.calendar_rules import normalize_to_iso
from leave_ledger.utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)

DECISIONS = ("approved", "denied")
MODIFY_MODES = ("edit", "cancel")


def list_requests(
    ledger: Ledger,
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    mine: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Filter leave requests by status, exact userId, and a case-insensitive
    substring of userName ("mine").
    """
    out = ledger.requests
    if status:
        out = [r for r in out if r.get("status") == status]
    if user_id:
        out = [r for r in out if str(r.get("userId")) == str(user_id)]
    if mine:
        needle = mine.strip().lower()
        out = [r for r in out if needle in str(r.get("userName") or "").lower()]
    return out


def requests_on_leave(ledger: Ledger, day: Any) -> List[Dict[str, Any]]:
    """Approved requests whose startDate..endDate covers ``day``."""
    iso = normalize_to_iso(day)
    if not iso:
        raise ValidationError("date is not a valid date")
    out = []
    for r in ledger.requests:
        if r.get("status") != "approved":
            continue
        start = r.get("startDate") or ""
        end = r.get("endDate") or start
        if start and start <= iso <= end:
            out.append(r)
    return out


def create_request(ledger: Ledger, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Build a pending request and add it to the ledger."""
    record = build_new_request(payload, ledger.holidays)
    if ledger.find_request_index(record["id"]) != -1:
        raise ConflictError(f"leave request {record['id']} already exists")
    ledger.requests.append(record)
    ledger.touch_requests()
    logger.info(
        "Leave request %s created for %s (%s, %s day(s))",
        record["id"], record["userId"], record["type"], record["days"],
    )
    return record


def _request_index(ledger: Ledger, request_id: str) -> int:
    idx = ledger.find_request_index(request_id)
    if idx == -1:
        raise NotFoundError("leave request not found")
    return idx


def decide_request(ledger: Ledger, request_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Approve or deny a pending request

    Approval deducts the balance and stamps the request in the same ledger
    commit.

    Raises:
        NotFoundError: Unknown request id
        ValidationError: status is not approved/denied
        ConflictError: The request is not pending, or its user is unknown
    """
    idx = _request_index(ledger, request_id)
    status = patch.get("status")
    if status not in DECISIONS:
        raise ValidationError("status must be 'approved' or 'denied'")

    record = dict(ledger.requests[idx])
    current = record.get("status") or "pending"
    if current != "pending":
        raise ConflictError(f"cannot change status of {current} request")

    at = now_iso()
    decided_by = patch.get("decidedBy") or patch.get("approverName") or "system"

    if status == "approved":
        result = approve_and_deduct(
            ledger, record, patch, actor_name=decided_by, actor_id=patch.get("approverId"),
        )
        stamp_applied(record, AppliedDeduction(
            annual=result.applied_annual,
            off=result.applied_off,
            at=record.get("appliedAt") if result.already_applied else at,
            by=record.get("appliedBy") if result.already_applied else decided_by,
            by_id=record.get("appliedById") if result.already_applied else patch.get("approverId"),
        ))

    record["status"] = status
    record["decidedAt"] = at
    record["decidedBy"] = decided_by
    record["approverId"] = patch.get("approverId") if patch.get("approverId") is not None else record.get("approverId")
    record["approverName"] = patch.get("approverName") if patch.get("approverName") is not None else record.get("approverName")
    if isinstance(patch.get("decisionNote"), str):
        record["decisionNote"] = patch["decisionNote"]

    ledger.requests[idx] = record
    ledger.touch_requests()
    logger.info("Leave request %s %s by %s", request_id, status, decided_by)
    return record


def modify_request(ledger: Ledger, request_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Edit or cancel an approved request (``patch["mode"]`` is "edit" or "cancel")

    Raises:
        NotFoundError: Unknown request id
        ConflictError: Cancelling a cancelled request, or modifying a request
            that is not approved
        ValidationError: Unknown mode, missing note, or invalid amounts
    """
    idx = _request_index(ledger, request_id)
    record = ledger.requests[idx]
    mode = patch.get("mode")
    current = record.get("status") or "pending"

    if mode == "cancel" and current == "cancelled":
        raise ConflictError("leave request is already cancelled")
    if current != "approved":
        raise ConflictError("only approved leave can be modified")
    if mode not in MODIFY_MODES:
        raise ValidationError("invalid modify mode")

    if mode == "edit":
        return edit_approved_request(ledger, idx, patch)
    return cancel_approved_request(ledger, idx, patch)


def patch_request(ledger: Ledger, request_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    """Dispatch a PATCH body to modify (action == "modify") or decide."""
    if patch.get("action") == "modify":
        return modify_request(ledger, request_id, patch)
    return decide_request(ledger, request_id, patch)


def list_balances(ledger: Ledger) -> List[Dict[str, Any]]:
    """Balances of every user except the configured admin account."""
    admin = settings.ADMIN_USER_NAME.strip().lower()
    return [
        balance_view(u) for u in ledger.users
        if str(u.get("name") or "").strip().lower() != admin
    ]


def _user_or_404(ledger: Ledger, key: Any) -> Dict[str, Any]:
    idx = find_user_index(ledger.users, key)
    if idx == -1:
        raise NotFoundError("user not found")
    return ledger.users[idx]


def user_balance(ledger: Ledger, key: Any) -> Dict[str, Any]:
    return balance_view(_user_or_404(ledger, key))


def override_user_balance(ledger: Ledger, key: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Set a user's balances directly (clamped) and log the difference as a
    manual adjustment.
    """
    user = _user_or_404(ledger, key)
    applied = override_balances(user, payload)
    ledger.touch_users()
    log_balance_change(
        ledger, user, applied, TransactionAction.MANUAL_ADJUST,
        remarks=payload.get("remarks"),
        actor_id=payload.get("actorId"),
        actor_name=payload.get("actorName"),
    )
    logger.info(
        "Balance override for user %s: annual %+g, off %+g",
        user.get("id"), applied.annual_leave, applied.off_days,
    )
    return balance_view(user)


def user_transactions(ledger: Ledger, key: Any, limit: int = 100) -> List[Dict[str, Any]]:
    user = _user_or_404(ledger, key)
    rows = get_transactions(ledger.db, str(user.get("id")), limit=limit)
    return [transaction_view(row) for row in rows]
