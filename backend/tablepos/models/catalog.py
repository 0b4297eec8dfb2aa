from __future__ import annotations

from ..extensions import db
from tablepos.money_utils import format_cents
from tablepos.time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Stock(db.Model):
    """
    Named on-hand quantity (ingredients, bottled drinks, ...).

    Mutated by manual create/update/adjust and by sale-driven deduction
    through a linked Product. Decrements never go below zero.
    """
    __tablename__ = "stock"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Optional unit cost, informational only
    price_cents = db.Column(db.Integer, nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    # Low stock when set, > 0 and quantity <= alert_threshold
    alert_threshold = db.Column(db.Integer, nullable=True, default=0)

    category = db.relationship("Category", backref=db.backref("stock_items", lazy=True))

    @property
    def is_low(self) -> bool:
        if not self.alert_threshold or self.alert_threshold <= 0:
            return False
        return self.quantity <= self.alert_threshold

    def __repr__(self) -> str:
        return f"<Stock id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "price": format_cents(self.price_cents),
            "category_id": self.category_id,
            "alert_threshold": self.alert_threshold,
            "is_low": self.is_low,
        }


class Product(db.Model):
    """
    Menu item.

    stock_item_id is the optional stock linkage: selling one unit of the
    product deducts one unit from that stock row.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    stock_item_id = db.Column(db.Integer, db.ForeignKey("stock.id", ondelete="SET NULL"), nullable=True, index=True)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    stock_item = db.relationship("Stock", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} price_cents={self.price_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price_cents": self.price_cents,
            "price": format_cents(self.price_cents),
            "category_id": self.category_id,
            "stock_item_id": self.stock_item_id,
        }
