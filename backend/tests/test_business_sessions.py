"""
Business day (session) tests.

Verifies:
- At most one session is active after every transition
- start-day / end-day / activate / delete rules
- Day rollover never overrides a manually selected past day
"""

from datetime import date, timedelta

import pytest

from tablepos.extensions import db
from tablepos.errors import NotFoundError, ConflictError, NoActiveSessionError
from tablepos.models import BusinessSession, Sale, Expense
from tablepos.services import business_session_service, sales_service, expense_service
from tablepos.time_utils import business_today


def active_count() -> int:
    db.session.expire_all()
    return db.session.query(BusinessSession).filter_by(is_active=True).count()


class TestSessionTransitions:
    """Single-active invariant across every way a session becomes active."""

    def test_start_day_from_empty_opens_today(self, db_session):
        session = business_session_service.start_day()

        active = business_session_service.get_active_session()
        assert active.id == session.id
        assert active.date == business_today()
        assert active.name.endswith(business_today().isoformat())

    def test_start_day_reuses_existing_today(self, db_session, today_session):
        business_session_service.end_day()
        session = business_session_service.start_day()

        assert session.id == today_session.id
        assert db_session.query(BusinessSession).count() == 1
        assert active_count() == 1

    @pytest.mark.parametrize("day, name", [
        (date(2026, 10, 12), "Pazartesi - 2026-10-12"),
        (date(2026, 10, 14), "Çarşamba - 2026-10-14"),
        (date(2026, 10, 18), "Pazar - 2026-10-18"),
    ])
    def test_default_name_uses_turkish_weekday(self, db_session, day, name):
        session = business_session_service.create_session(day=day)
        assert session.name == name

    def test_create_active_deactivates_others(self, db_session, today_session, fresh):
        yesterday = business_today() - timedelta(days=1)
        created = business_session_service.create_session(day=yesterday, is_active=True)

        assert active_count() == 1
        assert business_session_service.get_active_session().id == created.id
        assert fresh(BusinessSession, today_session.id).is_active is False

    def test_create_inactive_leaves_active_alone(self, db_session, today_session, past_session):
        assert active_count() == 1
        assert business_session_service.get_active_session().id == today_session.id

    def test_activate_switches_active_session(self, db_session, today_session, past_session):
        business_session_service.activate_session(past_session.id)

        assert active_count() == 1
        assert business_session_service.get_active_session().id == past_session.id

    def test_activate_unknown_session(self, db_session, today_session):
        with pytest.raises(NotFoundError):
            business_session_service.activate_session(9999)
        assert business_session_service.get_active_session().id == today_session.id

    def test_end_day_leaves_no_active_session(self, db_session, today_session):
        business_session_service.end_day()

        assert business_session_service.get_active_session() is None
        with pytest.raises(NoActiveSessionError):
            business_session_service.end_day()

    def test_list_sessions_newest_first(self, db_session, today_session, past_session):
        sessions = business_session_service.list_sessions()
        assert [s.id for s in sessions] == [today_session.id, past_session.id]


class TestSessionDeletion:

    def test_cannot_delete_active_session(self, db_session, today_session):
        with pytest.raises(ConflictError):
            business_session_service.delete_session(today_session.id)

    def test_delete_cascades_sales_and_expenses(self, db_session, today_session, drink):
        sales_service.create_pos_sale([{"product_id": drink.id, "quantity": 2}])
        expense_service.create_expense(patch={"category": "Gas", "amount_cents": 5000})

        business_session_service.end_day()
        business_session_service.delete_session(today_session.id)

        db_session.expire_all()
        assert db_session.query(BusinessSession).count() == 0
        assert db_session.query(Sale).count() == 0
        assert db_session.query(Expense).count() == 0


class TestDayRollover:
    """ensure_session_for_today() is idempotent and respects manual selection."""

    def test_creates_and_activates_today_when_missing(self, db_session, past_session):
        business_session_service.activate_session(past_session.id)

        created = business_session_service.ensure_session_for_today()

        assert created is not None
        assert created.date == business_today()
        assert business_session_service.get_active_session().id == created.id
        assert active_count() == 1

    def test_idempotent(self, db_session):
        first = business_session_service.ensure_session_for_today()
        second = business_session_service.ensure_session_for_today()

        assert first is not None
        assert second is None
        assert db_session.query(BusinessSession).count() == 1

    def test_does_not_override_selected_past_day(self, db_session, today_session, past_session):
        business_session_service.activate_session(past_session.id)

        assert business_session_service.ensure_session_for_today() is None
        assert business_session_service.get_active_session().id == past_session.id

    def test_initial_session_only_on_empty_database(self, db_session, past_session):
        assert business_session_service.ensure_initial_session() is None

        business_session_service.delete_session(past_session.id)
        created = business_session_service.ensure_initial_session()
        assert created.is_active is True
        assert created.date == business_today()


class TestSessionRoutes:

    def test_active_is_null_without_session(self, client, manager_headers):
        resp = client.get("/api/sessions/active", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json is None

    def test_start_day_route(self, client, manager_headers):
        resp = client.post("/api/sessions/start-day", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["is_active"] is True
        assert resp.json["date"] == business_today().isoformat()

    def test_create_session_route_validates_date(self, client, manager_headers):
        resp = client.post("/api/sessions", json={"date": "not-a-date"}, headers=manager_headers)
        assert resp.status_code == 400

        resp = client.post(
            "/api/sessions",
            json={"date": business_today().isoformat(), "is_active": True},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        assert resp.json["is_active"] is True

    def test_delete_active_session_route(self, client, manager_headers, today_session):
        resp = client.delete(f"/api/sessions/{today_session.id}", headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot delete the active session"

    def test_cashier_cannot_switch_days(self, client, cashier_headers, today_session, past_session):
        resp = client.post(f"/api/sessions/{past_session.id}/activate", headers=cashier_headers)
        assert resp.status_code == 403
