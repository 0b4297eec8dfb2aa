from __future__ import annotations

from ..extensions import db
from tablepos.money_utils import format_cents
from tablepos.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Finalized sale, either a direct POS cart or a closed table bill.

    Immutable once created (only deletion is allowed). session_id never
    changes after creation.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_session_date", "session_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("business_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    total_cents = db.Column(db.Integer, nullable=False)

    # "pos" for direct cart sales, "table" for closed bills
    source = db.Column(db.String(16), nullable=False, default="pos")

    session = db.relationship("BusinessSession", back_populates="sales")
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} session_id={self.session_id} total_cents={self.total_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "date": to_utc_z(self.date),
            "total_cents": self.total_cents,
            "total": format_cents(self.total_cents),
            "source": self.source,
        }


class SaleItem(db.Model):
    """
    Immutable snapshot of one sold line.

    product_id becomes NULL if the product is later deleted; name and price
    stay as sold.
    """
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "price": format_cents(self.unit_price_cents),
            "total_cents": self.total_cents,
            "total": format_cents(self.total_cents),
        }


class Expense(db.Model):
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_session_date", "session_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("business_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    category = db.Column(db.String(120), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    note = db.Column(db.String(255), nullable=True)

    session = db.relationship("BusinessSession", back_populates="expenses")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "date": to_utc_z(self.date),
            "category": self.category,
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "note": self.note,
        }
