"""
Expense tests: same business-day rules as sales.
"""

import pytest

from tablepos.errors import NoActiveSessionError, PastSessionReadOnlyError
from tablepos.models import Expense
from tablepos.services import expense_service, business_session_service


class TestExpenseService:

    def test_create_under_active_session(self, db_session, today_session):
        expense = expense_service.create_expense(patch={"category": "Gas", "amount_cents": 5000, "note": "Tüp"})

        data = expense.to_dict()
        assert data["session_id"] == today_session.id
        assert data["amount"] == "50.00"
        assert data["note"] == "Tüp"

    def test_requires_session(self, db_session):
        with pytest.raises(NoActiveSessionError):
            expense_service.create_expense(patch={"category": "Gas", "amount_cents": 5000})

    def test_past_session_read_only(self, db_session, today_session, past_session):
        expense = expense_service.create_expense(patch={"category": "Gas", "amount_cents": 5000})
        business_session_service.activate_session(past_session.id)

        with pytest.raises(PastSessionReadOnlyError):
            expense_service.create_expense(patch={"category": "Gas", "amount_cents": 5000})
        with pytest.raises(PastSessionReadOnlyError):
            expense_service.delete_expense(expense.id)

    def test_delete(self, db_session, today_session):
        expense = expense_service.create_expense(patch={"category": "Gas", "amount_cents": 5000})
        expense_service.delete_expense(expense.id)
        assert db_session.query(Expense).count() == 0


class TestExpenseRoutes:

    def test_create_and_list(self, client, cashier_headers, today_session):
        resp = client.post(
            "/api/expenses",
            json={"category": "Bread", "amount_cents": 1250},
            headers=cashier_headers,
        )
        assert resp.status_code == 201

        resp = client.get("/api/expenses", headers=cashier_headers)
        assert [e["amount"] for e in resp.json] == ["12.50"]

    @pytest.mark.parametrize("body", [
        {"category": "Bread"},
        {"category": "Bread", "amount_cents": 0},
        {"category": "Bread", "amount_cents": 100, "session_id": 1},
    ])
    def test_invalid_body(self, client, cashier_headers, today_session, body):
        resp = client.post("/api/expenses", json=body, headers=cashier_headers)
        assert resp.status_code == 400

    def test_list_other_session(self, client, manager_headers, today_session, past_session):
        resp = client.get(f"/api/expenses?sessionId={past_session.id}", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json == []

        resp = client.get("/api/expenses?sessionId=9999", headers=manager_headers)
        assert resp.status_code == 404

    def test_kitchen_cannot_see_expenses(self, client, kitchen_headers, today_session):
        resp = client.get("/api/expenses", headers=kitchen_headers)
        assert resp.status_code == 403
