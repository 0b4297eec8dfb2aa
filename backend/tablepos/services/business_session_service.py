# Overview: Service-layer operations for business days; owns the single-active-session invariant.

"""
Business Day (Session) Service

WHY: Sales and expenses are booked against a "business day" that staff open
and close by hand. Switching to a past day lets managers review it, but a
past day's books are read-only.

DESIGN PRINCIPLES:
- At most one session has is_active=True at any time
- The persisted flag is the only source of truth (no in-memory pointer)
- Activation is one transaction: deactivate all, then activate the target
- Sales/expenses may only be created or deleted while the active session
  is dated today (business time zone)
"""

from __future__ import annotations

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import BusinessSession
from ..errors import NotFoundError, ConflictError, NoActiveSessionError, PastSessionReadOnlyError
from tablepos.time_utils import business_today
from .concurrency import run_with_retry


# Monday first, matching date.weekday()
WEEKDAY_NAMES = (
    "Pazartesi",
    "Salı",
    "Çarşamba",
    "Perşembe",
    "Cuma",
    "Cumartesi",
    "Pazar",
)


def default_session_name(day: date) -> str:
    """Turkish weekday name and ISO date, e.g. "Cuma - 2026-10-16"."""
    return f"{WEEKDAY_NAMES[day.weekday()]} - {day.isoformat()}"


def list_sessions() -> list[BusinessSession]:
    """All sessions, newest first."""
    return db.session.query(BusinessSession).order_by(
        BusinessSession.date.desc(),
        BusinessSession.created_at.desc(),
        BusinessSession.id.desc(),
    ).all()


def get_session(session_id: int) -> BusinessSession:
    session = db.session.query(BusinessSession).filter_by(id=session_id).first()
    if not session:
        raise NotFoundError("Session not found")
    return session


def get_active_session() -> BusinessSession | None:
    return db.session.query(BusinessSession).filter(
        BusinessSession.is_active.is_(True)
    ).order_by(BusinessSession.id.desc()).first()


def _deactivate_all() -> None:
    db.session.query(BusinessSession).filter(
        BusinessSession.is_active.is_(True)
    ).update({BusinessSession.is_active: False}, synchronize_session="fetch")


def create_session(*, day: date, name: str | None = None, is_active: bool = False) -> BusinessSession:
    """
    Persist a new session.

    If is_active, every other session is deactivated first in the same
    transaction so the single-active invariant holds after commit.
    """
    def _op():
        if is_active:
            _deactivate_all()

        session = BusinessSession(
            date=day,
            name=name or default_session_name(day),
            is_active=bool(is_active),
        )
        db.session.add(session)
        db.session.commit()
        return session

    session = run_with_retry(_op)
    current_app.logger.info(
        "Business session %s created for %s (active=%s)", session.id, session.date, session.is_active
    )
    return session


def activate_session(session_id: int) -> BusinessSession:
    """Make `session_id` the one active session (deactivate all, then activate)."""
    def _op():
        session = db.session.query(BusinessSession).filter_by(id=session_id).first()
        if not session:
            raise NotFoundError("Session not found")

        _deactivate_all()
        session.is_active = True
        db.session.commit()
        return session

    session = run_with_retry(_op)
    current_app.logger.info("Business session %s (%s) activated", session.id, session.date)
    return session


def start_day() -> BusinessSession:
    """
    Open today's business day.

    Activates the existing session for today's date if there is one,
    otherwise creates it.
    """
    today = business_today()
    existing = db.session.query(BusinessSession).filter_by(date=today).order_by(
        BusinessSession.id.desc()
    ).first()

    if existing:
        if existing.is_active:
            return existing
        return activate_session(existing.id)

    return create_session(day=today, is_active=True)


def end_day() -> BusinessSession:
    """
    Close the active day without opening another one.

    "No active session" is a valid state afterwards; sales and expenses are
    rejected until a day is started or selected.
    """
    session = get_active_session()
    if not session:
        raise NoActiveSessionError("No active session")

    session.is_active = False
    db.session.commit()
    current_app.logger.info("Business session %s (%s) ended", session.id, session.date)
    return session


def delete_session(session_id: int) -> None:
    """Delete a non-active session together with its sales and expenses."""
    session = get_session(session_id)
    if session.is_active:
        raise ConflictError("Cannot delete the active session")

    db.session.delete(session)
    db.session.commit()
    current_app.logger.info("Business session %s deleted with its sales and expenses", session_id)


def require_writable_session(action: str = "modify records of") -> BusinessSession:
    """
    Return the active session if sales/expenses may be mutated under it.

    Raises:
        NoActiveSessionError: no session is active
        PastSessionReadOnlyError: the active session is not dated today
    """
    session = get_active_session()
    if not session:
        raise NoActiveSessionError()

    if session.date != business_today():
        raise PastSessionReadOnlyError(
            f"Cannot {action} past sessions. Please select today's session."
        )
    return session


def resolve_session(session_id: int | None) -> BusinessSession:
    """Explicit session if given, otherwise the active one (read paths)."""
    if session_id is not None:
        return get_session(session_id)
    session = get_active_session()
    if not session:
        raise NoActiveSessionError("No active session")
    return session


def ensure_initial_session() -> BusinessSession | None:
    """First boot: create and activate today's session if no session exists at all."""
    if db.session.query(BusinessSession.id).first() is not None:
        return None
    current_app.logger.info("No business sessions found, creating the initial one")
    return create_session(day=business_today(), is_active=True)


def ensure_session_for_today() -> BusinessSession | None:
    """
    Day rollover check, safe to run any number of times.

    If no session exists for today's date, create one and make it active.
    If one exists, nothing changes: a past day a manager switched to is left
    selected.
    """
    today = business_today()
    exists = db.session.query(BusinessSession.id).filter_by(date=today).first()
    if exists is not None:
        return None

    current_app.logger.info("Day rolled over to %s, opening a new business session", today)
    return create_session(day=today, is_active=True)
