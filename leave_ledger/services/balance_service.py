"""
Balance service - read/write a user's annual-leave and off-day balances

User records carry both the current field names (annualLeave, offDays) and
the legacy ones (leaveBalance, offDayBalance). Readers may use either, so every
write sets all four.
"""
import logging
from typing import Any, Dict, List, NamedTuple, Optional

from leave_ledger.core.config import settings
from leave_ledger.utils.day_math import as_json_number, clamp, round_half_day, to_number

logger = logging.getLogger(__name__)


class Balances(NamedTuple):
    annual_leave: float
    off_days: float


def _numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_balances(user: Dict[str, Any]) -> Balances:
    """
    Current balances of a user record.

    annualLeave falls back to leaveBalance, then to the configured default
    (21); offDays falls back to offDayBalance, then 0.
    """
    if _numeric(user.get("annualLeave")):
        annual = user["annualLeave"]
    elif _numeric(user.get("leaveBalance")):
        annual = user["leaveBalance"]
    else:
        annual = settings.DEFAULT_ANNUAL_LEAVE

    if _numeric(user.get("offDays")):
        off = user["offDays"]
    elif _numeric(user.get("offDayBalance")):
        off = user["offDayBalance"]
    else:
        off = settings.DEFAULT_OFF_DAYS

    return Balances(
        annual_leave=round_half_day(annual, float(settings.DEFAULT_ANNUAL_LEAVE)),
        off_days=round_half_day(off, float(settings.DEFAULT_OFF_DAYS)),
    )


def clamp_annual(value: float) -> float:
    return clamp(round_half_day(value), 0, settings.ANNUAL_LEAVE_MAX)


def clamp_off(value: float) -> float:
    return clamp(round_half_day(value), 0)


def set_balances(user: Dict[str, Any], annual_leave: float, off_days: float) -> Dict[str, Any]:
    """
    Clamp and write balances onto a user record (mutated in place).

    annualLeave is clamped to [0, ANNUAL_LEAVE_MAX], offDays to [0, inf).
    The caller persists the returned user.
    """
    annual = as_json_number(clamp_annual(annual_leave))
    off = as_json_number(clamp_off(off_days))

    user["annualLeave"] = annual
    user["leaveBalance"] = annual
    user["offDays"] = off
    user["offDayBalance"] = off
    return user


def adjust_balances(user: Dict[str, Any], annual_delta: float, off_delta: float) -> Balances:
    """
    Add deltas to a user's balances (negative deducts), clamping once at the end.

    Returns:
        The deltas actually applied after clamping
    """
    before = get_balances(user)
    set_balances(user, before.annual_leave + annual_delta, before.off_days + off_delta)
    after = get_balances(user)
    return Balances(
        annual_leave=after.annual_leave - before.annual_leave,
        off_days=after.off_days - before.off_days,
    )


def find_user_index(users: List[Dict[str, Any]], key: Any) -> int:
    """
    Resolve a user by id, then by case-insensitive name, then (legacy) by a
    1-based position in the users array.

    Returns:
        Index into ``users`` or -1
    """
    needle = str(key if key is not None else "").strip()
    if not needle:
        return -1

    for i, u in enumerate(users):
        if str(u.get("id")) == needle:
            return i

    lowered = needle.lower()
    for i, u in enumerate(users):
        if str(u.get("name") or "").strip().lower() == lowered:
            return i

    if needle.isdigit():
        n = int(needle)
        if 0 < n <= len(users):
            logger.debug("Resolved user %r by legacy 1-based index", needle)
            return n - 1

    return -1


def balance_view(user: Dict[str, Any]) -> Dict[str, Any]:
    """API shape for a user's balances, with both field spellings."""
    current = get_balances(user)
    annual = as_json_number(current.annual_leave)
    off = as_json_number(current.off_days)
    return {
        "userId": str(user.get("id")),
        "name": user.get("name"),
        "annualLeave": annual,
        "offDays": off,
        "leaveBalance": annual,
        "offDayBalance": off,
    }


def override_balances(user: Dict[str, Any], payload: Dict[str, Any]) -> Balances:
    """
    Administrative override: set balances directly from a payload that may use
    either annualLeave/offDays or leaveBalance/offDayBalance. Missing or
    non-numeric fields keep the current value.

    Returns:
        The deltas applied
    """
    current = get_balances(user)

    def pick(canonical: str, legacy: str, fallback: float) -> float:
        raw: Optional[Any] = payload.get(canonical)
        if raw is None:
            raw = payload.get(legacy)
        return to_number(raw, fallback)

    next_annual = pick("annualLeave", "leaveBalance", current.annual_leave)
    next_off = pick("offDays", "offDayBalance", current.off_days)
    return adjust_balances(user, next_annual - current.annual_leave, next_off - current.off_days)


def normalize_user_balances(users: List[Dict[str, Any]]) -> int:
    """
    Rewrite every user's balances through ``set_balances`` so both field
    spellings agree and values sit inside the allowed range.

    Returns:
        Number of user records that changed
    """
    changed = 0
    for user in users:
        before = {k: user.get(k) for k in ("annualLeave", "leaveBalance", "offDays", "offDayBalance")}
        current = get_balances(user)
        set_balances(user, current.annual_leave, current.off_days)
        after = {k: user.get(k) for k in before}
        if after != before:
            changed += 1
    return changed
