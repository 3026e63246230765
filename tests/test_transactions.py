"""
==============================================================================
Transaction Tests
==============================================================================

Payments between users and their status lifecycle.

==============================================================================
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from splitter.db.models import User


@pytest.fixture
def payment(client: TestClient, bob: User, alice_headers: dict) -> dict:
    """Pending payment alice → bob."""
    response = client.post(
        "/api/v1/transactions",
        json={"to_user_id": bob.id, "amount": "15.25", "description": "Lunch"},
        headers=alice_headers
    )
    assert response.status_code == 200
    return response.json()["transaction"]


class TestCreateTransaction:
    """POST /transactions"""

    def test_defaults_sender_to_caller(self, payment: dict, alice: User, bob: User):
        assert payment["from_user_id"] == alice.id
        assert payment["to_user_id"] == bob.id
        assert payment["status"] == "Pending"
        assert Decimal(payment["amount"]) == Decimal("15.25")
        assert payment["created_by"] == alice.id

    def test_self_payment_rejected(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.post(
            "/api/v1/transactions",
            json={"to_user_id": alice.id, "amount": "5.00"},
            headers=alice_headers
        )
        assert response.status_code == 400

    def test_unknown_recipient(self, client: TestClient, alice_headers: dict):
        response = client.post(
            "/api/v1/transactions",
            json={"to_user_id": "ghost", "amount": "5.00"},
            headers=alice_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"]["user_ids"] == ["ghost"]

    def test_amount_must_be_positive(self, client: TestClient, bob: User, alice_headers: dict):
        response = client.post(
            "/api/v1/transactions",
            json={"to_user_id": bob.id, "amount": "0"},
            headers=alice_headers
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("amount", ["12.345", "1234567890123456789"])
    def test_amount_precision_limits(self, client: TestClient, bob: User, alice_headers: dict, amount: str):
        response = client.post(
            "/api/v1/transactions",
            json={"to_user_id": bob.id, "amount": amount},
            headers=alice_headers
        )
        assert response.status_code == 422


class TestReadTransactions:
    """GET /transactions"""

    def test_get_by_id(self, client: TestClient, payment: dict, bob_headers: dict):
        response = client.get(f"/api/v1/transactions/{payment['id']}", headers=bob_headers)
        assert response.status_code == 200
        assert response.json()["transaction"]["description"] == "Lunch"

    def test_get_unknown(self, client: TestClient, alice_headers: dict):
        response = client.get("/api/v1/transactions/missing", headers=alice_headers)
        assert response.status_code == 404

    def test_filters(self, client: TestClient, payment: dict, bob: User, carol: User, alice_headers: dict):
        response = client.get("/api/v1/transactions", params={"user_id": bob.id}, headers=alice_headers)
        assert [t["id"] for t in response.json()["items"]] == [payment["id"]]

        response = client.get("/api/v1/transactions", params={"user_id": carol.id}, headers=alice_headers)
        assert response.json()["total"] == 0

        response = client.get("/api/v1/transactions", params={"status": "Completed"}, headers=alice_headers)
        assert response.json()["total"] == 0

        response = client.get("/api/v1/transactions", params={"status": "Pending"}, headers=alice_headers)
        assert response.json()["total"] == 1

    def test_invalid_status_filter(self, client: TestClient, alice_headers: dict):
        response = client.get("/api/v1/transactions", params={"status": "Lost"}, headers=alice_headers)
        assert response.status_code == 422


class TestStatusLifecycle:
    """PATCH /transactions/{id}/status"""

    @pytest.mark.parametrize("status", ["Completed", "Failed", "Cancelled"])
    def test_pending_to_terminal(self, client: TestClient, payment: dict, bob_headers: dict, status: str):
        response = client.patch(
            f"/api/v1/transactions/{payment['id']}/status",
            json={"status": status},
            headers=bob_headers
        )
        assert response.status_code == 200
        assert response.json()["transaction"]["status"] == status

    def test_terminal_is_final(self, client: TestClient, payment: dict, alice_headers: dict):
        url = f"/api/v1/transactions/{payment['id']}/status"
        client.patch(url, json={"status": "Cancelled"}, headers=alice_headers)

        response = client.patch(url, json={"status": "Completed"}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {
            "current_status": "Cancelled",
            "requested_status": "Completed"
        }

    def test_back_to_pending_rejected(self, client: TestClient, payment: dict, alice_headers: dict):
        response = client.patch(
            f"/api/v1/transactions/{payment['id']}/status",
            json={"status": "Pending"},
            headers=alice_headers
        )
        assert response.status_code == 400

    def test_uninvolved_user_forbidden(self, client: TestClient, payment: dict, carol_headers: dict):
        response = client.patch(
            f"/api/v1/transactions/{payment['id']}/status",
            json={"status": "Completed"},
            headers=carol_headers
        )
        assert response.status_code == 403

    def test_admin_may_update(self, client: TestClient, payment: dict, admin_headers: dict, admin_user: User):
        response = client.patch(
            f"/api/v1/transactions/{payment['id']}/status",
            json={"status": "Failed"},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["transaction"]["updated_by"] == admin_user.id

    def test_unknown_status_value(self, client: TestClient, payment: dict, alice_headers: dict):
        response = client.patch(
            f"/api/v1/transactions/{payment['id']}/status",
            json={"status": "Refunded"},
            headers=alice_headers
        )
        assert response.status_code == 422
