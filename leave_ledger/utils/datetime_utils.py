"""
Timezone-aware datetime helpers.
- Timestamps on records (createdAt, decidedAt, appliedAt, ...) are UTC ISO-8601 with Z.
- Calendar dates (startDate, endDate, resumeOn) are local dates; see calendar_rules.
"""
from datetime import date, datetime, timezone
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def today_local() -> date:
    """Today's calendar date in server local time."""
    return date.today()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with millisecond precision and Z for UTC."""
    if dt is None:
        return None
    utc = ensure_utc(dt)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_iso() -> str:
    """Record timestamp for "now"."""
    return iso_8601_utc(now_utc())


def epoch_millis(dt: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch (used for timestamp-derived ids)."""
    return int(ensure_utc(dt or now_utc()).timestamp() * 1000)
