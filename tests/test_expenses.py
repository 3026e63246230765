"""
==============================================================================
Expense and Balance Tests
==============================================================================

Equal split arithmetic, expense validation and balance computation.

==============================================================================
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from splitter.db.models import User
from splitter.services.expense_service import split_equally


def split_map(expense: dict) -> dict:
    return {s["user_id"]: Decimal(s["amount"]) for s in expense["splits"]}


def balance_map(body: dict) -> dict:
    return {b["user_id"]: Decimal(b["amount"]) for b in body["balances"]}


# ============================================================================
# EQUAL SPLIT
# ============================================================================

class TestSplitEqually:
    """Cent-exact equal split."""

    def test_even_split(self):
        shares = split_equally(Decimal("90.00"), ["a", "b", "c"])
        assert shares == [("a", Decimal("30.00")), ("b", Decimal("30.00")), ("c", Decimal("30.00"))]

    def test_leftover_cents_go_to_first_participants(self):
        shares = split_equally(Decimal("10.00"), ["a", "b", "c"])
        assert [amount for _, amount in shares] == [Decimal("3.34"), Decimal("3.33"), Decimal("3.33")]

        shares = split_equally(Decimal("0.05"), ["a", "b", "c"])
        assert [amount for _, amount in shares] == [Decimal("0.02"), Decimal("0.02"), Decimal("0.01")]

    def test_shares_always_sum_to_amount(self):
        for amount in ("1.00", "99.99", "100.01", "7.77"):
            total = sum((share for _, share in split_equally(Decimal(amount), ["a", "b", "c", "d", "e", "f", "g"])), Decimal("0"))
            assert total == Decimal(amount)

    def test_requires_participants(self):
        with pytest.raises(ValueError):
            split_equally(Decimal("10.00"), [])


# ============================================================================
# ADD EXPENSE
# ============================================================================

class TestAddExpense:
    """POST /expenses"""

    def test_equal_split(
        self, client: TestClient, alice: User, bob: User, carol: User, alice_headers: dict
    ):
        response = client.post(
            "/api/v1/expenses",
            json={
                "description": "Dinner",
                "amount": "100.00",
                "split_equally_between": [alice.id, bob.id, carol.id]
            },
            headers=alice_headers
        )
        assert response.status_code == 200

        expense = response.json()["expense"]
        assert expense["paid_by_user_id"] == alice.id
        assert expense["created_by"] == alice.id
        assert Decimal(expense["amount"]) == Decimal("100.00")
        assert split_map(expense) == {
            alice.id: Decimal("33.34"),
            bob.id: Decimal("33.33"),
            carol.id: Decimal("33.33"),
        }

    def test_explicit_split_with_other_payer(
        self, client: TestClient, alice: User, bob: User, alice_headers: dict
    ):
        response = client.post(
            "/api/v1/expenses",
            json={
                "description": "Taxi",
                "amount": "25.50",
                "paid_by_user_id": bob.id,
                "splits": [
                    {"user_id": alice.id, "amount": "20.00"},
                    {"user_id": bob.id, "amount": "5.50"}
                ]
            },
            headers=alice_headers
        )
        assert response.status_code == 200
        expense = response.json()["expense"]
        assert expense["paid_by_user_id"] == bob.id
        assert split_map(expense) == {alice.id: Decimal("20.00"), bob.id: Decimal("5.50")}

    def test_splits_must_add_up(self, client: TestClient, alice: User, bob: User, alice_headers: dict):
        response = client.post(
            "/api/v1/expenses",
            json={
                "description": "Taxi",
                "amount": "30.00",
                "splits": [
                    {"user_id": alice.id, "amount": "10.00"},
                    {"user_id": bob.id, "amount": "10.00"}
                ]
            },
            headers=alice_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"]["splits_total"] == "20.00"

    def test_duplicate_participant(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.post(
            "/api/v1/expenses",
            json={"description": "Snacks", "amount": "10.00", "split_equally_between": [alice.id, alice.id]},
            headers=alice_headers
        )
        assert response.status_code == 400

    def test_unknown_participant(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.post(
            "/api/v1/expenses",
            json={"description": "Snacks", "amount": "10.00", "split_equally_between": [alice.id, "ghost"]},
            headers=alice_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"]["user_ids"] == ["ghost"]

    def test_unknown_payer(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.post(
            "/api/v1/expenses",
            json={
                "description": "Snacks",
                "amount": "10.00",
                "paid_by_user_id": "ghost",
                "split_equally_between": [alice.id]
            },
            headers=alice_headers
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("payload", [
        {"description": "Zero", "amount": "0", "split_equally_between": ["x"]},
        {"description": "Negative", "amount": "-5.00", "split_equally_between": ["x"]},
        {"description": "Fractions", "amount": "1.005", "split_equally_between": ["x"]},
        {"description": "No split", "amount": "5.00"},
        {"description": "<script>alert(1)</script>", "amount": "5.00", "split_equally_between": ["x"]},
    ])
    def test_invalid_payloads(self, client: TestClient, alice_headers: dict, payload: dict):
        response = client.post("/api/v1/expenses", json=payload, headers=alice_headers)
        assert response.status_code == 422

    def test_both_split_modes_rejected(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.post(
            "/api/v1/expenses",
            json={
                "description": "Both",
                "amount": "5.00",
                "splits": [{"user_id": alice.id, "amount": "5.00"}],
                "split_equally_between": [alice.id]
            },
            headers=alice_headers
        )
        assert response.status_code == 422

    def test_requires_authentication(self, client: TestClient):
        response = client.post("/api/v1/expenses", json={})
        assert response.status_code == 401


# ============================================================================
# READ AND DELETE
# ============================================================================

@pytest.fixture
def dinner(client: TestClient, alice: User, bob: User, alice_headers: dict) -> dict:
    response = client.post(
        "/api/v1/expenses",
        json={"description": "Dinner", "amount": "60.00", "split_equally_between": [alice.id, bob.id]},
        headers=alice_headers
    )
    return response.json()["expense"]


class TestReadExpenses:
    """GET /expenses"""

    def test_get_by_id(self, client: TestClient, dinner: dict, bob_headers: dict):
        response = client.get(f"/api/v1/expenses/{dinner['id']}", headers=bob_headers)
        assert response.status_code == 200
        assert response.json()["expense"]["description"] == "Dinner"

    def test_get_unknown(self, client: TestClient, alice_headers: dict):
        response = client.get("/api/v1/expenses/missing", headers=alice_headers)
        assert response.status_code == 404

    def test_list_filtered_by_user(
        self, client: TestClient, dinner: dict, bob: User, carol: User, alice_headers: dict
    ):
        response = client.get("/api/v1/expenses", params={"user_id": bob.id}, headers=alice_headers)
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["id"] == dinner["id"]

        response = client.get("/api/v1/expenses", params={"user_id": carol.id}, headers=alice_headers)
        assert response.json()["total"] == 0


class TestDeleteExpense:
    """DELETE /expenses/{id}"""

    def test_participant_cannot_delete(self, client: TestClient, dinner: dict, bob_headers: dict):
        response = client.delete(f"/api/v1/expenses/{dinner['id']}", headers=bob_headers)
        assert response.status_code == 403

    def test_payer_deletes(self, client: TestClient, dinner: dict, alice_headers: dict):
        response = client.delete(f"/api/v1/expenses/{dinner['id']}", headers=alice_headers)
        assert response.status_code == 200

        response = client.get(f"/api/v1/expenses/{dinner['id']}", headers=alice_headers)
        assert response.status_code == 404

    def test_admin_deletes(self, client: TestClient, dinner: dict, admin_headers: dict):
        response = client.delete(f"/api/v1/expenses/{dinner['id']}", headers=admin_headers)
        assert response.status_code == 200


# ============================================================================
# BALANCES
# ============================================================================

class TestBalances:
    """GET /expenses/balances/me"""

    def test_no_activity(self, client: TestClient, alice_headers: dict):
        body = client.get("/api/v1/expenses/balances/me", headers=alice_headers).json()
        assert body["balances"] == []
        assert Decimal(body["net"]) == Decimal("0")

    def test_expenses_and_settlements(
        self,
        client: TestClient,
        alice: User,
        bob: User,
        carol: User,
        alice_headers: dict,
        bob_headers: dict
    ):
        client.post(
            "/api/v1/expenses",
            json={"description": "Groceries", "amount": "90.00", "split_equally_between": [alice.id, bob.id, carol.id]},
            headers=alice_headers
        )
        client.post(
            "/api/v1/expenses",
            json={
                "description": "Cinema",
                "amount": "20.00",
                "splits": [{"user_id": alice.id, "amount": "10.00"}, {"user_id": bob.id, "amount": "10.00"}]
            },
            headers=bob_headers
        )

        body = client.get("/api/v1/expenses/balances/me", headers=alice_headers).json()
        assert balance_map(body) == {bob.id: Decimal("20.00"), carol.id: Decimal("30.00")}
        assert Decimal(body["total_owed_to_you"]) == Decimal("50.00")
        assert Decimal(body["total_you_owe"]) == Decimal("0")

        body = client.get("/api/v1/expenses/balances/me", headers=bob_headers).json()
        assert balance_map(body) == {alice.id: Decimal("-20.00")}
        assert Decimal(body["net"]) == Decimal("-20.00")

        payment = client.post(
            "/api/v1/transactions",
            json={"to_user_id": alice.id, "amount": "20.00"},
            headers=bob_headers
        ).json()["transaction"]

        # Pending payments do not count.
        body = client.get("/api/v1/expenses/balances/me", headers=alice_headers).json()
        assert balance_map(body)[bob.id] == Decimal("20.00")

        client.patch(
            f"/api/v1/transactions/{payment['id']}/status",
            json={"status": "Completed"},
            headers=alice_headers
        )

        body = client.get("/api/v1/expenses/balances/me", headers=alice_headers).json()
        assert balance_map(body) == {carol.id: Decimal("30.00")}
        assert body["balances"][0]["email"] == "carol@example.com"

    def test_deleted_expense_ignored(self, client: TestClient, dinner: dict, bob: User, alice_headers: dict):
        client.delete(f"/api/v1/expenses/{dinner['id']}", headers=alice_headers)

        body = client.get("/api/v1/expenses/balances/me", headers=alice_headers).json()
        assert bob.id not in balance_map(body)
