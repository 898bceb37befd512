"""
The ledger: leave requests, users and balance transactions as one consistency domain

Handlers that change balances or request state work on a ``Ledger`` snapshot
inside ``ledger_transaction``. The touched collections and the transaction
rows logged by the handler are written back in a single database
transaction, guarded by the versions the collections were read at, so
"deduct balance", "stamp the request" and "log the movement" can never be
persisted separately.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Set

from sqlalchemy.orm import Session

from leave_ledger.db.document_store import (
    LEAVE_REQUESTS,
    USERS,
    read_collection,
    write_collections,
)
from leave_ledger.models.ledger_transaction import LedgerTransaction
from leave_ledger.services.holiday_service import load_holiday_set

logger = logging.getLogger(__name__)

# Serialises writers inside this process; the version check covers other processes.
_LEDGER_LOCK = threading.RLock()


class Ledger:
    """In-memory snapshot of the ledger collections."""

    def __init__(self, db: Session):
        self.db = db
        self.requests, self._request_version = read_collection(db, LEAVE_REQUESTS)
        self.users, self._user_version = read_collection(db, USERS)
        self.pending_transactions: List[LedgerTransaction] = []
        self._holidays: Optional[Set[str]] = None
        self._dirty: Set[str] = set()

    @property
    def holidays(self) -> Set[str]:
        if self._holidays is None:
            self._holidays = load_holiday_set(self.db)
        return self._holidays

    def find_request_index(self, request_id: Any) -> int:
        key = str(request_id)
        for i, record in enumerate(self.requests):
            if str(record.get("id")) == key:
                return i
        return -1

    def touch_requests(self) -> None:
        self._dirty.add(LEAVE_REQUESTS)

    def touch_users(self) -> None:
        self._dirty.add(USERS)

    def add_transaction(self, row: LedgerTransaction) -> None:
        """Queue a transaction row for the next commit."""
        self.pending_transactions.append(row)

    @property
    def dirty(self) -> bool:
        return bool(self._dirty or self.pending_transactions)

    def commit(self) -> None:
        """Write every touched collection and queued row in one transaction."""
        if not self.dirty:
            return
        collections: Dict[str, tuple] = {
            LEAVE_REQUESTS: (self.requests, self._request_version),
            USERS: (self.users, self._user_version),
        }
        writes = {key: collections[key] for key in sorted(self._dirty)}
        versions = write_collections(self.db, writes, rows=self.pending_transactions)

        self._request_version = versions.get(LEAVE_REQUESTS, self._request_version)
        self._user_version = versions.get(USERS, self._user_version)
        logger.debug(
            "Ledger committed: %s (+%d transactions)",
            ", ".join(sorted(self._dirty)), len(self.pending_transactions),
        )
        self._dirty.clear()
        self.pending_transactions = []


def load_ledger(db: Session) -> Ledger:
    """Read-only snapshot (no lock, never committed by the caller)."""
    return Ledger(db)


@contextmanager
def ledger_transaction(db: Session) -> Iterator[Ledger]:
    """
    Read-modify-write the ledger atomically.

    The body mutates the yielded snapshot and marks what it touched; on normal
    exit the touched collections are committed together. If the body raises,
    nothing is written.
    """
    with _LEDGER_LOCK:
        ledger = Ledger(db)
        yield ledger
        ledger.commit()
