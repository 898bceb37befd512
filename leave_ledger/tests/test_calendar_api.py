"""
Tests for the holiday list and the working-day calculator
"""
from fastapi import status
from sqlalchemy.orm import Session

from leave_ledger.db.document_store import HOLIDAYS, seed_collection
from leave_ledger.services.holiday_service import holiday_set_from_entries


def test_holiday_entries_are_normalized_and_bad_ones_dropped():
    entries = ["2024-01-03", {"date": "2024/12/25", "name": "Christmas"}, {"name": "no date"}, "soon", None]
    assert holiday_set_from_entries(entries) == {"2024-01-03", "2024-12-25"}


def test_list_holidays_sorted_with_default_name(client, db: Session):
    seed_collection(db, HOLIDAYS, [
        {"date": "2024-12-25", "name": "Christmas"},
        "2024-01-01",
        "2024-01-01T00:00:00Z",
        "garbage",
    ])

    response = client.get("/holidays")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "items": [
            {"date": "2024-01-01", "name": "Holiday"},
            {"date": "2024-12-25", "name": "Christmas"},
        ],
        "total": 2,
    }


def test_workdays_counts_and_reconciles(client, holidays):
    response = client.get("/calendar/workdays?start=2024-01-01&end=2024-01-07&annual=3&off=1")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["required"] == 4
    assert data["selected"] == 4
    assert data["mismatch"] == 0
    assert data["resumeOn"] == "2024-01-08"
    assert data["suggestedEndDate"] == "2024-01-05"


def test_workdays_without_split_suggests_end(client):
    data = client.get("/calendar/workdays?start=2024-06-03&end=2024-06-07").json()
    assert data["required"] == 5
    assert data["selected"] == 0
    assert data["mismatch"] == -5
    assert data["suggestedEndDate"] == "2024-06-07"


def test_workdays_rejects_bad_dates(client):
    response = client.get("/calendar/workdays?start=someday&end=2024-06-07")
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.get("/calendar/workdays?start=2024-06-07&end=2024-06-03")
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.get("/calendar/workdays?start=2024-06-03")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_workdays_bounds_bucket_sizes(client):
    response = client.get("/calendar/workdays?start=2024-01-01&end=2024-01-02&annual=5000000")
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.get("/calendar/workdays?start=2024-01-01&end=2024-01-02&off=367")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_workdays_at_end_of_calendar(client):
    response = client.get("/calendar/workdays?start=9999-12-27&end=9999-12-31&annual=5")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["required"] == 5
    assert data["resumeOn"] == ""
    assert data["suggestedEndDate"] == "9999-12-31"


def test_request_on_last_calendar_day_has_no_resume_date(client, users):
    response = client.post("/leave-requests", json={
        "userId": "u1", "userName": "Alice", "section": "Eng", "type": "annual",
        "localOrOverseas": "local", "startDate": "9999-12-31", "endDate": "9999-12-31", "days": 1,
    })
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["resumeOn"] is None
