from __future__ import annotations

from ..extensions import db
from tablepos.time_utils import to_utc_z


class BusinessSession(db.Model):
    """
    One business day ("session") of the restaurant.

    INVARIANT: at most one row has is_active=True. The flag is the only
    source of truth for "the current day"; nothing is cached in memory.

    Sales and expenses are bound to the session they were created under and
    are deleted with it. The active session itself is never deleted.
    """
    __tablename__ = "business_sessions"
    __table_args__ = (
        db.Index("ix_business_sessions_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Calendar day in the business time zone
    date = db.Column(db.Date, nullable=False)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sales = db.relationship(
        "Sale",
        back_populates="session",
        cascade="all, delete-orphan",
        lazy=True,
    )
    expenses = db.relationship(
        "Expense",
        back_populates="session",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<BusinessSession id={self.id} date={self.date} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
