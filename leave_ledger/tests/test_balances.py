"""
Tests for balance reads, clamping, legacy field names and the /balances API
"""
from fastapi import status

from leave_ledger.services.balance_service import (
    adjust_balances,
    find_user_index,
    get_balances,
    normalize_user_balances,
    set_balances,
)


def test_get_balances_fallback_chain():
    assert get_balances({"annualLeave": 12, "offDays": 2}) == (12, 2)
    assert get_balances({"leaveBalance": 7, "offDayBalance": 4}) == (7, 4)
    assert get_balances({}) == (21, 0)
    # Non-numeric canonical values fall through to the legacy names
    assert get_balances({"annualLeave": "ten", "leaveBalance": 9}) == (9, 0)


def test_set_balances_clamps_and_mirrors_legacy_names():
    user = {}
    set_balances(user, 50, -3)
    assert user == {"annualLeave": 42, "leaveBalance": 42, "offDays": 0, "offDayBalance": 0}

    set_balances(user, 10.5, 2)
    assert user["annualLeave"] == 10.5
    assert user["leaveBalance"] == 10.5
    assert user["offDays"] == 2
    assert isinstance(user["offDayBalance"], int)


def test_adjust_balances_returns_applied_deltas():
    user = {"annualLeave": 2, "offDays": 1}
    applied = adjust_balances(user, -5, -0.5)
    assert applied == (-2, -0.5)
    assert user["annualLeave"] == 0
    assert user["offDays"] == 0.5

    applied = adjust_balances(user, 45, 0)
    assert applied.annual_leave == 42
    assert user["annualLeave"] == 42


def test_balance_clamp_holds_over_any_sequence():
    user = {"annualLeave": 20, "offDays": 1}
    for annual, off in [(-30, -5), (50, 2), (-1.5, 0.5), (100, -100), (-0.5, 3)]:
        adjust_balances(user, annual, off)
        current = get_balances(user)
        assert 0 <= current.annual_leave <= 42
        assert current.off_days >= 0


def test_find_user_index_resolution_order():
    users = [
        {"id": "u1", "name": "Alice"},
        {"id": "2", "name": "Bob"},
        {"id": "u3", "name": "Carol"},
    ]
    assert find_user_index(users, "u3") == 2
    assert find_user_index(users, "  alice ") == 0
    # An id that looks like an index resolves by id first
    assert find_user_index(users, "2") == 1
    # Legacy 1-based position
    assert find_user_index(users, "3") == 2
    assert find_user_index(users, "4") == -1
    assert find_user_index(users, "0") == -1
    assert find_user_index(users, "") == -1
    assert find_user_index(users, None) == -1


def test_normalize_user_balances_counts_changes():
    users = [
        {"id": "a", "annualLeave": 5, "leaveBalance": 5, "offDays": 0, "offDayBalance": 0},
        {"id": "b", "leaveBalance": 60},
    ]
    assert normalize_user_balances(users) == 1
    assert users[1]["annualLeave"] == 42
    assert users[1]["offDayBalance"] == 0


def test_list_balances_excludes_admin(client, users):
    response = client.get("/balances")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [b["userId"] for b in data] == ["u1", "u2", "u3"]
    carol = data[2]
    assert carol["annualLeave"] == 5
    assert carol["leaveBalance"] == 5
    assert carol["offDays"] == 1


def test_get_balance_by_id_and_name(client, users):
    response = client.get("/balances/u2")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "userId": "u2",
        "name": "Bob",
        "annualLeave": 10,
        "offDays": 3,
        "leaveBalance": 10,
        "offDayBalance": 3,
    }
    assert client.get("/balances/carol").json()["userId"] == "u3"


def test_get_balance_unknown_user(client, users):
    response = client.get("/balances/nobody")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "user not found"


def test_patch_balance_accepts_legacy_names_and_clamps(client, users):
    response = client.patch(
        "/balances/u2",
        json={"leaveBalance": 99, "offDayBalance": 4, "actorName": "HR", "remarks": "year-end"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["annualLeave"] == 42
    assert data["leaveBalance"] == 42
    assert data["offDays"] == 4

    # Canonical names win over legacy ones in the same body
    response = client.patch("/balances/u2", json={"annualLeave": 8, "leaveBalance": 30})
    assert response.json()["annualLeave"] == 8


def test_patch_balance_logs_manual_adjustment(client, users):
    client.patch("/balances/u1", json={"annualLeave": 18, "actorId": "hr1", "remarks": "correction"})

    response = client.get("/balances/u1/transactions")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["userId"] == "u1"
    assert data["total"] == 1
    entry = data["items"][0]
    assert entry["action"] == "MANUAL_ADJUST"
    assert entry["bucket"] == "annual"
    assert entry["delta"] == -3
    assert entry["remarks"] == "correction"


def test_patch_balance_unknown_user(client, users):
    response = client.patch("/balances/ghost", json={"annualLeave": 3})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_legacy_balance_paths(client, users):
    assert client.get("/leave/balances/u2").json()["annualLeave"] == 10
    assert len(client.get("/leave/balances").json()) == 3


def test_whole_balances_are_json_integers(client, users):
    client.patch("/balances/u2", json={"annualLeave": 99})
    data = client.get("/balances/u2").json()
    assert data["annualLeave"] == 42
    assert isinstance(data["annualLeave"], int)
    assert isinstance(data["offDayBalance"], int)

    data = client.patch("/balances/u2", json={"offDays": 2.5}).json()
    assert data["offDays"] == 2.5
