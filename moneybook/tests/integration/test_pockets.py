"""
tests/integration/test_pockets.py — Integration tests for pocket management.

Endpoints covered:
  GET    /money-books/:id/pockets          → 200 (display order)
  POST   /money-books/:id/pockets          → 201
  PUT    /money-books/:id/pockets/order    → 200 / 400 / 422
  GET    /money-books/:id/pockets/summary  → 200
  PATCH  /pockets/:id                      → 200
  DELETE /pockets/:id                      → 200

Percentages travel as strings ("33.33"), never JSON numbers.
"""

from __future__ import annotations

import pytest

from .conftest import (
    auth_headers,
    make_money_book,
    make_pocket,
    make_pockets,
    make_token,
)


@pytest.fixture
def owner():
    return make_token("alice")


@pytest.fixture
def book(client, owner):
    return make_money_book(client, owner)


def _list(client, token, money_book_id):
    resp = client.get(f"/api/v1/money-books/{money_book_id}/pockets", headers=auth_headers(token))
    assert resp.status_code == 200
    return resp.get_json()["data"]


# ═══════════════════════════════════════════════════════════════════════════
# Create / list
# ═══════════════════════════════════════════════════════════════════════════

class TestCreatePocket:

    def test_create_returns_percentage_as_string(self, client, owner, book):
        pocket = make_pocket(client, owner, book["id"], "Savings", "33.33")

        assert pocket["name"] == "Savings"
        assert pocket["percentage"] == "33.33"
        assert pocket["money_book_id"] == book["id"]
        assert pocket["order_index"] == 0

    def test_pockets_are_appended_in_creation_order(self, client, owner, book):
        make_pockets(client, owner, book["id"], [("A", "20"), ("B", "30"), ("C", "50")])

        pockets = _list(client, owner, book["id"])

        assert [p["name"] for p in pockets] == ["A", "B", "C"]
        assert [p["order_index"] for p in pockets] == [0, 1, 2]

    def test_explicit_order_index_controls_listing(self, client, owner, book):
        make_pocket(client, owner, book["id"], "Late", "50", order_index=5)
        make_pocket(client, owner, book["id"], "Early", "50", order_index=1)

        assert [p["name"] for p in _list(client, owner, book["id"])] == ["Early", "Late"]

    def test_zero_percent_pocket_is_allowed(self, client, owner, book):
        pocket = make_pocket(client, owner, book["id"], "Dormant", "0")
        assert pocket["percentage"] in ("0", "0.00")

    def test_precision_over_two_places_returns_400(self, client, owner, book):
        resp = client.post(
            f"/api/v1/money-books/{book['id']}/pockets",
            json={"name": "Too precise", "percentage": "33.333"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_PERCENTAGE_PRECISION"
        assert error["field"] == "percentage"

    def test_percentage_over_100_returns_400(self, client, owner, book):
        resp = client.post(
            f"/api/v1/money-books/{book['id']}/pockets",
            json={"name": "Greedy", "percentage": "101"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"

    def test_create_in_other_users_book_is_forbidden(self, client, book):
        resp = client.post(
            f"/api/v1/money-books/{book['id']}/pockets",
            json={"name": "Sneaky", "percentage": "10"},
            headers=auth_headers(make_token("mallory")),
        )
        assert resp.status_code == 403

    def test_list_for_unknown_book_is_404(self, client, owner):
        resp = client.get("/api/v1/money-books/nope/pockets", headers=auth_headers(owner))
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "MONEY_BOOK_NOT_FOUND"


# ═══════════════════════════════════════════════════════════════════════════
# Update / delete
# ═══════════════════════════════════════════════════════════════════════════

class TestUpdateAndDeletePocket:

    def test_patch_percentage(self, client, owner, book):
        pocket = make_pocket(client, owner, book["id"], "Savings", "40")

        resp = client.patch(
            f"/api/v1/pockets/{pocket['id']}",
            json={"percentage": "45.5"},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["name"] == "Savings"
        assert data["percentage"] in ("45.5", "45.50")

    def test_patch_empty_body_returns_400(self, client, owner, book):
        pocket = make_pocket(client, owner, book["id"], "Savings", "40")

        resp = client.patch(f"/api/v1/pockets/{pocket['id']}", json={}, headers=auth_headers(owner))

        assert resp.status_code == 400
        assert "field" not in resp.get_json()["error"]

    def test_patch_unknown_pocket_is_404(self, client, owner):
        resp = client.patch("/api/v1/pockets/nope", json={"name": "x"}, headers=auth_headers(owner))
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "POCKET_NOT_FOUND"

    def test_patch_by_other_user_is_forbidden(self, client, owner, book):
        pocket = make_pocket(client, owner, book["id"], "Savings", "40")

        resp = client.patch(
            f"/api/v1/pockets/{pocket['id']}",
            json={"name": "Hijacked"},
            headers=auth_headers(make_token("mallory")),
        )

        assert resp.status_code == 403

    def test_delete_pocket(self, client, owner, book):
        keep, drop = make_pockets(client, owner, book["id"], [("Keep", "50"), ("Drop", "50")])

        resp = client.delete(f"/api/v1/pockets/{drop['id']}", headers=auth_headers(owner))

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"deleted": True, "pocket_id": drop["id"]}
        assert [p["id"] for p in _list(client, owner, book["id"])] == [keep["id"]]

    def test_delete_by_other_user_is_forbidden(self, client, owner, book):
        pocket = make_pocket(client, owner, book["id"], "Savings", "40")

        resp = client.delete(f"/api/v1/pockets/{pocket['id']}", headers=auth_headers(make_token("mallory")))

        assert resp.status_code == 403
        assert len(_list(client, owner, book["id"])) == 1


# ═══════════════════════════════════════════════════════════════════════════
# Reorder
# ═══════════════════════════════════════════════════════════════════════════

class TestReorderPockets:

    def test_reorder_rewrites_order(self, client, owner, book):
        a, b, c = make_pockets(client, owner, book["id"], [("A", "20"), ("B", "30"), ("C", "50")])

        resp = client.put(
            f"/api/v1/money-books/{book['id']}/pockets/order",
            json={"pocket_ids": [c["id"], a["id"], b["id"]]},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 200
        assert [p["name"] for p in resp.get_json()["data"]] == ["C", "A", "B"]
        listed = _list(client, owner, book["id"])
        assert [p["name"] for p in listed] == ["C", "A", "B"]
        assert [p["order_index"] for p in listed] == [0, 1, 2]

    def test_reorder_with_missing_pocket_returns_422(self, client, owner, book):
        a, b = make_pockets(client, owner, book["id"], [("A", "50"), ("B", "50")])

        resp = client.put(
            f"/api/v1/money-books/{book['id']}/pockets/order",
            json={"pocket_ids": [b["id"]]},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 422
        error = resp.get_json()["error"]
        assert error["code"] == "POCKET_ORDER_MISMATCH"
        assert error["field"] == "pocket_ids"
        assert [p["name"] for p in _list(client, owner, book["id"])] == ["A", "B"]

    def test_reorder_with_foreign_pocket_returns_422(self, client, owner, book):
        a, = make_pockets(client, owner, book["id"], [("A", "100")])
        other_book = make_money_book(client, owner, "Other")
        stranger = make_pocket(client, owner, other_book["id"], "X", "100")

        resp = client.put(
            f"/api/v1/money-books/{book['id']}/pockets/order",
            json={"pocket_ids": [stranger["id"]]},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 422

    def test_reorder_with_duplicate_ids_returns_400(self, client, owner, book):
        a, b = make_pockets(client, owner, book["id"], [("A", "50"), ("B", "50")])

        resp = client.put(
            f"/api/v1/money-books/{book['id']}/pockets/order",
            json={"pocket_ids": [a["id"], a["id"], b["id"]]},
            headers=auth_headers(owner),
        )

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "DUPLICATE_POCKET_ID"
        assert error["field"] == "pocket_ids"


# ═══════════════════════════════════════════════════════════════════════════
# Percentage summary
# ═══════════════════════════════════════════════════════════════════════════

class TestPercentageSummary:

    def _summary(self, client, token, money_book_id):
        resp = client.get(
            f"/api/v1/money-books/{money_book_id}/pockets/summary",
            headers=auth_headers(token),
        )
        assert resp.status_code == 200
        return resp.get_json()["data"]

    def test_valid_when_sum_is_100(self, client, owner, book):
        make_pockets(client, owner, book["id"], [("A", "33.33"), ("B", "33.33"), ("C", "33.34")])

        summary = self._summary(client, owner, book["id"])

        assert summary["valid"] is True
        assert summary["total"] == "100.00"

    def test_invalid_when_sum_is_short(self, client, owner, book):
        make_pockets(client, owner, book["id"], [("A", "60"), ("B", "30")])

        summary = self._summary(client, owner, book["id"])

        assert summary["valid"] is False
        assert summary["total"] == "90.00"

    def test_empty_book(self, client, owner, book):
        summary = self._summary(client, owner, book["id"])

        assert summary == {"valid": False, "total": "0"}
