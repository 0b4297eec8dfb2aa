from __future__ import annotations

from ..extensions import db
from tablepos.money_utils import format_cents
from tablepos.time_utils import to_utc_z


ORDER_STATUS_ACTIVE = "active"
ORDER_STATUS_COMPLETED = "completed"

# Statuses that make a table "occupied"
OCCUPYING_STATUSES = (ORDER_STATUS_ACTIVE, ORDER_STATUS_COMPLETED)


class RestaurantTable(db.Model):
    __tablename__ = "restaurant_tables"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)

    # Display/sort position on the floor plan
    order_number = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    orders = db.relationship("Order", back_populates="table", lazy=True)

    def __repr__(self) -> str:
        return f"<RestaurantTable id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "order_number": self.order_number,
            "created_at": to_utc_z(self.created_at),
        }


class Order(db.Model):
    """
    Live order of a table.

    LIFECYCLE:
    - active: items are being added/removed
    - completed: service finished, waiting for the bill
    - cancelled: the row is deleted, no sale
    - bill closed: converted into a Sale, then the row is deleted

    total_cents is a cached sum of the items' totals, recomputed on every
    item mutation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_table_status", "table_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("restaurant_tables.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_ACTIVE, index=True)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    table = db.relationship("RestaurantTable", back_populates="orders")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} table_id={self.table_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_id": self.table_id,
            "status": self.status,
            "total_cents": self.total_cents,
            "total": format_cents(self.total_cents),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """
    Order line. product_name and unit_price_cents are a snapshot taken when
    the line was added; total_cents = unit_price_cents * quantity.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "price": format_cents(self.unit_price_cents),
            "total_cents": self.total_cents,
            "total": format_cents(self.total_cents),
        }
