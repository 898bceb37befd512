"""
Key/value JSON document store on top of SQLAlchemy

Each collection (an array of JSON records) lives in a single ``documents`` row.
Reads return the whole collection plus the version it was read at; writes
replace whole collections and only succeed if every version is unchanged, so
several collections (and any rows logged alongside them) can be committed
as one atomic unit.
"""
import copy
import logging
from typing import Any, Dict, Iterable, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from leave_ledger.core.errors import ConflictError, PersistenceError
from leave_ledger.models.document import Document
from leave_ledger.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

LEAVE_REQUESTS = "leave-requests"
USERS = "users"
HOLIDAYS = "holidays"


def read_collection(db: Session, key: str) -> Tuple[list, int]:
    """
    Read a whole collection.

    Returns:
        (records, version). A missing document reads as ([], 0).
    """
    doc = db.query(Document).filter(Document.key == key).first()
    if doc is None:
        return [], 0
    body = doc.body if isinstance(doc.body, list) else []
    # Callers mutate freely; never hand out the ORM-tracked object.
    return copy.deepcopy(body), int(doc.version or 0)


def write_collections(
    db: Session,
    writes: Dict[str, Tuple[list, int]],
    rows: Iterable[Any] = (),
) -> Dict[str, int]:
    """
    Replace several collections in one transaction.

    Args:
        db: Database session
        writes: key -> (records, version the records were read at)
        rows: ORM objects inserted in the same transaction (e.g. ledger transactions)

    Returns:
        key -> new version

    Raises:
        ConflictError: another writer committed one of the documents first
        PersistenceError: the database rejected the write
    """
    new_versions: Dict[str, int] = {}
    try:
        for key, (records, expected_version) in writes.items():
            if expected_version == 0 and db.query(Document.key).filter(Document.key == key).first() is None:
                db.add(Document(key=key, body=records, version=1, updated_at=now_utc()))
                db.flush()
                new_versions[key] = 1
                continue

            result = db.execute(
                update(Document)
                .where(Document.key == key, Document.version == expected_version)
                .values(body=records, version=expected_version + 1, updated_at=now_utc())
            )
            if result.rowcount != 1:
                raise ConflictError(f"document '{key}' was modified concurrently; reload and retry")
            new_versions[key] = expected_version + 1
        db.add_all(list(rows))
        db.commit()
    except ConflictError:
        db.rollback()
        logger.warning("Optimistic version check failed for %s", sorted(writes))
        raise
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent create of %s", sorted(writes))
        raise ConflictError("document was created concurrently; reload and retry")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to write documents %s: %s", sorted(writes), exc)
        raise PersistenceError("failed to persist ledger changes")

    # Drop stale identity-map copies so the next read sees the new rows.
    db.expire_all()
    return new_versions


def seed_collection(db: Session, key: str, records: Any) -> bool:
    """
    Store ``records`` under ``key`` only if the document does not exist yet.

    Returns:
        True when the document was created
    """
    _, version = read_collection(db, key)
    if version != 0:
        return False
    write_collections(db, {key: (list(records or []), 0)})
    return True
