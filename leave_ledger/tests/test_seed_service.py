"""
Tests for importing the legacy JSON data files
"""
import json

from sqlalchemy.orm import Session

from leave_ledger.db.document_store import HOLIDAYS, LEAVE_REQUESTS, USERS, read_collection, seed_collection
from leave_ledger.services.seed_service import import_legacy_data


def test_imports_files_into_empty_documents(db: Session, tmp_path):
    (tmp_path / "users.json").write_text(json.dumps([{"id": "u1", "name": "Amy"}]), encoding="utf-8")
    (tmp_path / "holidays.json").write_text(json.dumps(["2024-01-03"]), encoding="utf-8")

    created = import_legacy_data(db, str(tmp_path))

    assert sorted(created) == sorted([USERS, HOLIDAYS])
    assert read_collection(db, USERS)[0] == [{"id": "u1", "name": "Amy"}]
    assert read_collection(db, LEAVE_REQUESTS) == ([], 0)


def test_existing_documents_are_kept(db: Session, tmp_path):
    seed_collection(db, USERS, [{"id": "current"}])
    (tmp_path / "users.json").write_text(json.dumps([{"id": "old"}]), encoding="utf-8")

    assert import_legacy_data(db, str(tmp_path)) == []
    assert read_collection(db, USERS)[0] == [{"id": "current"}]


def test_bad_files_are_skipped(db: Session, tmp_path):
    (tmp_path / "users.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "leave-requests.json").write_text(json.dumps({"not": "a list"}), encoding="utf-8")

    assert import_legacy_data(db, str(tmp_path)) == []


def test_missing_directory(db: Session, tmp_path):
    assert import_legacy_data(db, str(tmp_path / "absent")) == []
