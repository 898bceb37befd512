"""
Regression tests: edit and cancel of approved leave.

Edits must move the balance by exactly (old deduction - new deduction);
cancellations refund bucket by bucket and never more than was taken.
"""
import pytest
from fastapi import status
from sqlalchemy.orm import Session

from leave_ledger.db.document_store import LEAVE_REQUESTS, USERS, read_collection, seed_collection
from leave_ledger.services.modification_service import refund_violations
from leave_ledger.services.approval_service import AppliedDeduction
from leave_ledger.utils.calendar_rules import next_workday_after
from leave_ledger.utils.datetime_utils import today_local


def approved_request(**overrides) -> dict:
    record = {
        "id": "r1",
        "userId": "u1",
        "userName": "Alice",
        "section": "Engineering",
        "type": "annual",
        "localOrOverseas": "local",
        "startDate": "2024-06-03",
        "endDate": "2024-06-05",
        "resumeOn": "2024-06-06",
        "days": 3,
        "allocations": {"annual": 3, "off": 0},
        "status": "approved",
        "applied": True,
        "appliedAt": "2024-05-20T08:00:00.000Z",
        "appliedBy": "Manager",
        "appliedById": "m1",
        "appliedAnnual": 3,
        "appliedOff": 0,
    }
    record.update(overrides)
    return record


@pytest.fixture
def ledger_data(db: Session):
    """Alice with 10 annual / 2 off days and one approved 3-day request"""
    seed_collection(db, USERS, [{"id": "u1", "name": "Alice", "annualLeave": 10, "offDays": 2}])
    seed_collection(db, LEAVE_REQUESTS, [approved_request()])


def modify(client, request_id: str = "r1", **body):
    body = {"action": "modify", "editNote": "adjusted by HR", **body}
    return client.patch(f"/leave-requests/{request_id}", json=body)


def balance(client, user_id: str = "u1") -> tuple:
    data = client.get(f"/balances/{user_id}").json()
    return data["annualLeave"], data["offDays"]


# --- edit ---

def test_edit_net_effect_is_old_minus_new(client, ledger_data):
    response = modify(client, mode="edit", newAppliedAnnual=1)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["appliedAnnual"] == 1
    assert data["allocations"]["annual"] == 1
    assert data["days"] == 1
    assert balance(client) == (12, 2)


def test_edit_keeps_original_witness(client, ledger_data):
    data = modify(client, mode="edit", newAppliedAnnual=2, editedByName="HR Lead", editedById="h1").json()
    assert data["applied"] is True
    assert data["appliedAt"] == "2024-05-20T08:00:00.000Z"
    assert data["appliedBy"] == "Manager"
    assert data["lastEditedByName"] == "HR Lead"
    assert data["lastEditedById"] == "h1"
    assert data["editNote"] == "adjusted by HR"
    assert data["lastEditedAt"]


def test_edit_moves_days_between_buckets(client, ledger_data):
    data = modify(client, mode="edit", newAppliedAnnual=1.5, newAppliedOff=1.5).json()
    assert data["appliedAnnual"] == 1.5
    assert data["appliedOff"] == 1.5
    assert balance(client) == (11.5, 0.5)


def test_edit_dates_recompute_resume_on(client, ledger_data):
    data = modify(
        client, mode="edit", newStartDate="2024-06-05", newEndDate="2024-06-07", newTotalDays=3,
    ).json()
    assert data["startDate"] == "2024-06-05"
    assert data["endDate"] == "2024-06-07"
    assert data["resumeOn"] == "2024-06-10"
    assert data["days"] == 3
    # Amounts default to what was already applied
    assert data["appliedAnnual"] == 3
    assert balance(client) == (10, 2)


def test_edit_without_amounts_is_balance_neutral(client, ledger_data):
    assert modify(client, mode="edit").status_code == status.HTTP_200_OK
    assert balance(client) == (10, 2)


def test_edit_requires_note(client, ledger_data):
    response = client.patch(
        "/leave-requests/r1", json={"action": "modify", "mode": "edit", "newAppliedAnnual": 1},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "editNote is required"
    assert balance(client) == (10, 2)


def test_edit_rejects_reversed_dates(client, ledger_data):
    response = modify(client, mode="edit", newStartDate="2024-06-09", newEndDate="2024-06-03")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_edit_logs_net_adjustment(client, ledger_data):
    modify(client, mode="edit", newAppliedAnnual=1)
    items = client.get("/balances/u1/transactions").json()["items"]
    assert len(items) == 1
    assert items[0]["action"] == "EDIT_ADJUST"
    assert items[0]["delta"] == 2
    assert items[0]["requestId"] == "r1"


def test_modify_requires_approved_request(client, ledger_data):
    client.post("/leave-requests", json={
        "id": "p1", "userId": "u1", "userName": "Alice", "section": "Eng",
        "type": "annual", "localOrOverseas": "local", "days": 1,
    })
    response = modify(client, "p1", mode="edit", newAppliedAnnual=1)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "only approved leave can be modified"

    response = modify(client, "p1", mode="cancel")
    assert response.status_code == status.HTTP_409_CONFLICT


def test_invalid_mode(client, ledger_data):
    response = modify(client, mode="shorten")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "invalid modify mode"


# --- cancel ---

def test_cancel_refunds_requested_amounts(client, ledger_data):
    response = modify(client, mode="cancel", refundAnnual=2, cancelReturnDate="2024-06-04")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "cancelled"
    assert data["refundedAnnual"] == 2
    assert data["refundedOff"] == 0
    assert data["cancelledReturnDate"] == "2024-06-04"
    assert data["cancelledAt"]
    assert balance(client) == (12, 2)


def test_cancel_defaults_return_date_to_next_workday(client, ledger_data):
    data = modify(client, mode="cancel", refundAnnual=3).json()
    assert data["cancelledReturnDate"] == next_workday_after(today_local())


def test_refund_exceeding_bucket_is_rejected_without_mutation(client, db: Session, ledger_data):
    response = modify(client, mode="cancel", refundAnnual=2, refundOff=1)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "refund exceeds the original deduction"
    assert body["details"] == ["refundOff (1) exceeds appliedOff (0)"]

    assert balance(client) == (10, 2)
    requests, _ = read_collection(db, LEAVE_REQUESTS)
    assert requests[0]["status"] == "approved"


def test_refund_reports_every_violation(client, ledger_data):
    response = modify(client, mode="cancel", refundAnnual=4, refundOff=-1)
    details = response.json()["details"]
    assert "refundOff must not be negative" in details
    assert "refundAnnual (4) exceeds appliedAnnual (3)" in details
    assert "total refund (3) exceeds total applied (3)" not in details


def test_refund_violations_cover_total_bound():
    original = AppliedDeduction(annual=2, off=1, at=None, by=None, by_id=None)
    assert refund_violations(original, 2, 1) == []
    assert refund_violations(original, 2.5, 1) == [
        "refundAnnual (2.5) exceeds appliedAnnual (2)",
        "total refund (3.5) exceeds total applied (3)",
    ]


def test_double_cancel_conflicts(client, ledger_data):
    assert modify(client, mode="cancel", refundAnnual=1).status_code == status.HTTP_200_OK
    response = modify(client, mode="cancel", refundAnnual=1)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "leave request is already cancelled"
    assert balance(client) == (11, 2)

    response = modify(client, mode="edit", newAppliedAnnual=0)
    assert response.status_code == status.HTTP_409_CONFLICT


def test_cancel_requires_note(client, ledger_data):
    response = client.patch("/leave-requests/r1", json={"action": "modify", "mode": "cancel"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_cancel_for_missing_user(client, db: Session):
    seed_collection(db, USERS, [])
    seed_collection(db, LEAVE_REQUESTS, [approved_request(userId="gone")])
    response = modify(client, mode="cancel", refundAnnual=1)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "user not found"


def test_cancel_logs_refund(client, ledger_data):
    modify(client, mode="cancel", refundAnnual=2)
    items = client.get("/balances/u1/transactions").json()["items"]
    assert [(t["action"], t["bucket"], t["delta"]) for t in items] == [("CANCEL_REFUND", "annual", 2)]


# --- end to end ---

def test_create_approve_cancel_scenario(client, db: Session):
    seed_collection(db, USERS, [{"id": "u1", "name": "Amy", "annualLeave": 21, "offDays": 0}])

    created = client.post("/leave-requests", json={
        "userId": "u1",
        "userName": "Amy",
        "section": "News",
        "type": "annual",
        "localOrOverseas": "local",
        "startDate": "2024-06-03",
        "endDate": "2024-06-07",
    })
    assert created.status_code == status.HTTP_201_CREATED
    leave = created.json()
    assert leave["days"] == 5

    approved = client.patch(f"/leave-requests/{leave['id']}", json={"status": "approved"})
    assert approved.status_code == status.HTTP_200_OK
    assert approved.json()["appliedAnnual"] == 5
    assert approved.json()["decidedBy"] == "system"
    assert balance(client) == (16, 0)

    cancelled = client.patch(f"/leave-requests/{leave['id']}", json={
        "action": "modify", "mode": "cancel", "refundAnnual": 2, "editNote": "came back early",
    })
    assert cancelled.status_code == status.HTTP_200_OK
    data = cancelled.json()
    assert data["status"] == "cancelled"
    assert data["refundedAnnual"] == 2
    assert balance(client) == (18, 0)

    users, _ = read_collection(db, USERS)
    assert users[0]["leaveBalance"] == 18
