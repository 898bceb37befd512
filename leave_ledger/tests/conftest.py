"""
Pytest configuration and fixtures
"""
import os

# Keep the app's own engine off the filesystem while the tests import it
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from leave_ledger.main import app
from leave_ledger.db.base import Base
from leave_ledger.core.deps import get_db
from leave_ledger.db.document_store import HOLIDAYS, USERS, seed_collection

# Import all models to ensure they're registered with Base.metadata
from leave_ledger.models import Document, LedgerTransaction  # noqa: F401


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def users(db):
    """Three staff members plus the admin account"""
    records = [
        {"id": "u1", "name": "Alice", "annualLeave": 21, "offDays": 3,
         "leaveBalance": 21, "offDayBalance": 3},
        {"id": "u2", "name": "Bob", "annualLeave": 10, "offDays": 3},
        {"id": "u3", "name": "Carol", "leaveBalance": 5, "offDayBalance": 1},
        {"id": "admin", "name": "Admin", "annualLeave": 0, "offDays": 0},
    ]
    seed_collection(db, USERS, records)
    return records


@pytest.fixture
def holidays(db):
    """One mid-week public holiday in the first week of 2024"""
    entries = [{"date": "2024-01-03", "name": "Founders Day"}]
    seed_collection(db, HOLIDAYS, entries)
    return entries

