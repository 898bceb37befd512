"""
Import legacy JSON data files into empty documents
"""
import json
import logging
from pathlib import Path
from typing import Dict, List

from sqlalchemy.orm import Session

from leave_ledger.db.document_store import HOLIDAYS, LEAVE_REQUESTS, USERS, seed_collection

logger = logging.getLogger(__name__)

LEGACY_FILES: Dict[str, str] = {
    LEAVE_REQUESTS: "leave-requests.json",
    USERS: "users.json",
    HOLIDAYS: "holidays.json",
}


def import_legacy_data(db: Session, data_dir: str) -> List[str]:
    """
    Load leave-requests.json, users.json and holidays.json from ``data_dir``.

    Only documents that do not exist yet are written; existing data is never
    overwritten. Missing files are skipped.

    Returns:
        Keys of the documents that were created
    """
    root = Path(data_dir)
    if not root.is_dir():
        logger.warning("Legacy data directory not found: %s", data_dir)
        return []

    created = []
    for key, filename in LEGACY_FILES.items():
        path = root / filename
        if not path.is_file():
            continue
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Could not read %s: %s", path, e)
            continue
        if not isinstance(records, list):
            logger.error("Expected a JSON array in %s, got %s", path, type(records).__name__)
            continue
        if seed_collection(db, key, records):
            logger.info("Imported %d record(s) from %s", len(records), path)
            created.append(key)
        else:
            logger.info("Document %s already exists, skipping %s", key, path)
    return created
