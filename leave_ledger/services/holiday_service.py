"""
Holiday service - read the public holiday list used by day counting
"""
import logging
from typing import Any, Dict, List, Set

from sqlalchemy.orm import Session

from leave_ledger.db.document_store import HOLIDAYS, read_collection
from leave_ledger.utils.calendar_rules import normalize_to_iso

logger = logging.getLogger(__name__)


def _entry_date(entry: Any) -> str:
    if isinstance(entry, dict):
        return normalize_to_iso(entry.get("date"))
    return normalize_to_iso(entry)


def holiday_set_from_entries(entries: List[Any]) -> Set[str]:
    """
    Normalize raw holiday entries into a set of ISO dates.

    Entries are bare date strings or ``{"date": ...}`` objects; anything that
    does not parse is dropped.
    """
    holidays = set()
    for entry in entries or []:
        iso = _entry_date(entry)
        if iso:
            holidays.add(iso)
        else:
            logger.debug("Dropping unparseable holiday entry: %r", entry)
    return holidays


def load_holiday_set(db: Session) -> Set[str]:
    """Set of ISO holiday dates from the holidays document."""
    entries, _ = read_collection(db, HOLIDAYS)
    return holiday_set_from_entries(entries)


def list_holidays(db: Session) -> List[Dict[str, str]]:
    """
    Normalized holiday list, sorted by date.

    Returns:
        [{"date": "YYYY-MM-DD", "name": str}, ...]; duplicates keep the first name seen
    """
    entries, _ = read_collection(db, HOLIDAYS)
    by_date: Dict[str, str] = {}
    for entry in entries:
        iso = _entry_date(entry)
        if not iso or iso in by_date:
            continue
        name = entry.get("name") if isinstance(entry, dict) else None
        by_date[iso] = str(name or "Holiday")
    return [{"date": d, "name": by_date[d]} for d in sorted(by_date)]
