# Overview: Service-layer operations for expenses; same business-day rules as sales.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Expense
from ..errors import NotFoundError, PastSessionReadOnlyError
from . import business_session_service


def get_expenses(
    session_id: int,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[Expense]:
    query = db.session.query(Expense).filter(Expense.session_id == session_id)
    if date_from is not None:
        query = query.filter(Expense.date >= date_from)
    if date_to is not None:
        query = query.filter(Expense.date <= date_to)
    return query.order_by(Expense.date.desc(), Expense.id.desc()).all()


def get_expense(expense_id: int) -> Expense:
    expense = db.session.query(Expense).filter_by(id=expense_id).first()
    if not expense:
        raise NotFoundError("Expense not found")
    return expense


def create_expense(*, patch: dict) -> Expense:
    """Record an expense under today's active session."""
    session = business_session_service.require_writable_session("create expenses for")

    expense = Expense(
        session_id=session.id,
        category=patch["category"],
        amount_cents=patch["amount_cents"],
        note=patch.get("note"),
    )
    db.session.add(expense)
    db.session.commit()
    return expense


def delete_expense(expense_id: int) -> None:
    session = business_session_service.require_writable_session("delete expenses from")

    expense = get_expense(expense_id)
    if expense.session_id != session.id:
        raise PastSessionReadOnlyError("Cannot delete expenses from other sessions.")

    db.session.delete(expense)
    db.session.commit()
