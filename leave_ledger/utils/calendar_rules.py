"""
Calendar arithmetic for leave requests.

All dates are local calendar dates carried as ``YYYY-MM-DD`` strings; nothing
here converts through UTC, so a date never drifts by a timezone offset.
Holiday sets are sets of the same ISO strings.
"""
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Set, Union

from leave_ledger.utils.day_math import as_json_number, round_half_day, to_number

DateLike = Union[str, date]

_STRICT_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ISO_WITH_TIME = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[T ]")
_LOOSE_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_SLASH_YMD = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
_SLASH_DMY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DIGITS = re.compile(r"^\d+$")

# Timestamps above this are milliseconds, below it seconds
_EPOCH_MS_THRESHOLD = 1e12


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_local_date(iso: Any) -> Optional[date]:
    """Parse a strict ``YYYY-MM-DD`` string; anything else returns None."""
    if not isinstance(iso, str):
        return None
    m = _STRICT_ISO.match(iso.strip())
    if not m:
        return None
    return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def to_local_iso(d: date) -> str:
    """Zero-padded ``YYYY-MM-DD`` for a date (or the date part of a datetime)."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def _from_timestamp(number: float) -> str:
    seconds = number / 1000 if number > _EPOCH_MS_THRESHOLD else number
    try:
        return to_local_iso(datetime.fromtimestamp(seconds).date())
    except (OverflowError, OSError, ValueError):
        return ""


def normalize_to_iso(value: Any) -> str:
    """
    Normalize a date-ish value to a local ``YYYY-MM-DD`` string.

    Accepts date/datetime objects, ISO strings (a time part is ignored, the
    date part is kept as written), ``YYYY/MM/DD``, ``DD/MM/YYYY`` and epoch
    timestamps in seconds or milliseconds. Returns "" when nothing parses.
    """
    if value is None or value == "" or isinstance(value, bool):
        return ""

    if isinstance(value, datetime):
        return to_local_iso(value)
    if isinstance(value, date):
        return to_local_iso(value)

    if isinstance(value, (int, float)):
        number = to_number(value, None)
        return _from_timestamp(number) if number is not None else ""

    if not isinstance(value, str):
        return ""

    s = value.strip()
    m = _ISO_WITH_TIME.match(s) or _LOOSE_ISO.match(s) or _SLASH_YMD.match(s)
    if m:
        d = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        return to_local_iso(d) if d else ""

    m = _SLASH_DMY.match(s)
    if m:
        d = _safe_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        return to_local_iso(d) if d else ""

    if _DIGITS.match(s):
        return _from_timestamp(float(s))

    try:
        return to_local_iso(datetime.fromisoformat(s))
    except ValueError:
        return ""


def _as_date(value: DateLike) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_local_date(value)


def _holiday_set(holidays: Optional[Iterable[str]]) -> Set[str]:
    if not holidays:
        return set()
    if isinstance(holidays, set):
        return holidays
    return {h for h in holidays if h}


def is_weekend(iso: DateLike) -> bool:
    """True for Saturdays and Sundays; invalid dates are not weekends."""
    d = _as_date(iso)
    if d is None:
        return False
    return d.weekday() >= 5  # Monday=0 ... Saturday=5, Sunday=6


def is_workday(iso: DateLike, holidays: Optional[Iterable[str]] = None) -> bool:
    """A weekday that is not in the holiday set."""
    d = _as_date(iso)
    if d is None:
        return False
    return d.weekday() < 5 and to_local_iso(d) not in _holiday_set(holidays)


def _next_day(d: date) -> Optional[date]:
    """The following day, or None at the end of the calendar."""
    if d >= date.max:
        return None
    return d + timedelta(days=1)


def weekday_count_inclusive(
    start: DateLike,
    end: DateLike,
    holidays: Optional[Iterable[str]] = None,
) -> int:
    """
    Count days in [start, end] that are neither weekends nor holidays.

    Args:
        start: First day (inclusive)
        end: Last day (inclusive)
        holidays: ISO dates to exclude

    Returns:
        Number of working days; 0 if either date is invalid or start > end
    """
    s = _as_date(start)
    e = _as_date(end)
    if s is None or e is None or s > e:
        return 0

    full_weeks, extra = divmod((e - s).days + 1, 7)
    count = full_weeks * 5
    first = s.weekday()
    for offset in range(extra):
        if (first + offset) % 7 < 5:
            count += 1

    for iso in _holiday_set(holidays):
        h = parse_local_date(iso)
        if h is not None and s <= h <= e and h.weekday() < 5:
            count -= 1
    return count


def add_workdays(start: DateLike, workdays: Any, holidays: Optional[Iterable[str]] = None) -> str:
    """
    Move forward ``workdays`` working days from ``start`` (0 returns start).

    Returns "" for an invalid start, or when the calendar ends first.
    """
    d = _as_date(start)
    if d is None:
        return ""

    holiday_set = _holiday_set(holidays)
    remaining = max(0, math.floor(to_number(workdays, 0.0) + 0.5))
    current = d
    while remaining > 0:
        current = _next_day(current)
        if current is None:
            return ""
        if current.weekday() < 5 and to_local_iso(current) not in holiday_set:
            remaining -= 1
    return to_local_iso(current)


def next_workday_after(end: DateLike, holidays: Optional[Iterable[str]] = None) -> str:
    """
    First working day strictly after ``end``.

    Returns "" when ``end`` is not a valid date or no working day follows it.
    """
    return add_workdays(end, 1, holidays)


def end_date_for_workday_count(
    start: DateLike,
    desired_workdays: Any,
    holidays: Optional[Iterable[str]] = None,
) -> str:
    """
    The date on which an inclusive count of ``desired_workdays`` working days,
    starting at ``start``, is reached. "" if the calendar ends first.
    """
    d = _as_date(start)
    if d is None:
        return ""

    desired = max(0, math.floor(to_number(desired_workdays, 0.0) + 0.5))
    if desired <= 1:
        return to_local_iso(d)

    holiday_set = _holiday_set(holidays)
    counted = 0
    current = d
    while current is not None:
        if current.weekday() < 5 and to_local_iso(current) not in holiday_set:
            counted += 1
        if counted >= desired:
            return to_local_iso(current)
        current = _next_day(current)
    return ""


def reconcile(
    start: DateLike,
    end: DateLike,
    annual_days: Any,
    off_days: Any,
    holidays: Optional[Iterable[str]] = None,
) -> dict:
    """
    Compare an annual/off allocation split against the working days it must cover.

    ``mismatch`` is positive when too many days are selected, negative when too few.
    """
    required = weekday_count_inclusive(start, end, holidays)
    annual = max(0.0, round_half_day(annual_days))
    off = max(0.0, round_half_day(off_days))
    selected = round_half_day(annual + off)
    return {
        "required": required,
        "selected": as_json_number(selected),
        "mismatch": as_json_number(round_half_day(selected - required)),
        "annual": as_json_number(annual),
        "off": as_json_number(off),
    }
