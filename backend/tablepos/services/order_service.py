"""
Table Order Lifecycle Service

WHY: A table's tab is built up over the meal, handed to the kitchen, and
finally settled as a sale. Until the bill is closed nothing touches the
sale ledger or stock.

STATE MACHINE (per table):
    (no order) --create_order--> active
    active     --add/update/remove item--> active
    active     --complete_order--> completed
    completed  --add/update/remove item--> completed   (not blocked here)
    active|completed --cancel_order--> (no order, no sale)
    completed  --close_bill--> Sale recorded, order deleted --> (no order)

INVARIANTS:
- A table has at most one order in {active, completed}
- order.total_cents == sum(item.total_cents) after every item mutation
- item.total_cents == unit_price_cents * quantity, computed on write
- Item prices come from the catalog at the time the item is added
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Order, OrderItem, Product
from ..models.tables import ORDER_STATUS_ACTIVE, ORDER_STATUS_COMPLETED
from ..errors import NotFoundError, ConflictError, InvalidStateError, ValidationError
from tablepos.money_utils import line_total_cents
from tablepos.time_utils import utcnow
from . import business_session_service, sales_service, table_service
from .concurrency import lock_for_update, run_with_retry

ORDER_ITEM_MUTABLE_FIELDS = {"quantity", "unit_price_cents"}


def _load_order(order_id: int, *, lock: bool = False) -> Order:
    query = db.session.query(Order).filter_by(id=order_id)
    if lock:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def _load_item(item_id: int) -> OrderItem:
    item = db.session.query(OrderItem).filter_by(id=item_id).first()
    if not item:
        raise NotFoundError("Order item not found")
    return item


def recompute_total(order: Order) -> int:
    """Cache the sum of the item totals on the order."""
    order.total_cents = sum(item.total_cents for item in order.items)
    order.updated_at = utcnow()
    return order.total_cents


# =============================================================================
# QUERIES
# =============================================================================

def list_orders(table_id: int | None = None, status: str | None = None) -> list[Order]:
    query = db.session.query(Order)
    if table_id is not None:
        query = query.filter(Order.table_id == table_id)
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(order_id: int) -> Order:
    return _load_order(order_id)


def list_items(order_id: int) -> list[OrderItem]:
    return list(_load_order(order_id).items)


def get_active_order_for_table(table_id: int) -> Order | None:
    """The table's occupying order (active or completed), or None if the table is free."""
    table = table_service.get_table(table_id)
    return table_service.get_occupying_order(table.id)


def get_active_orders() -> list[Order]:
    """Orders still being prepared, oldest first (kitchen display)."""
    return db.session.query(Order).filter(
        Order.status == ORDER_STATUS_ACTIVE
    ).order_by(Order.created_at.asc(), Order.id.asc()).all()


def kitchen_view() -> list[dict]:
    return [
        {
            "order": order.to_dict(),
            "table": order.table.to_dict() if order.table else None,
            "items": [item.to_dict() for item in order.items],
        }
        for order in get_active_orders()
    ]


# =============================================================================
# LIFECYCLE
# =============================================================================

def create_order(table_id: int) -> Order:
    """
    Open an order for a free table.

    Raises:
        NotFoundError: table does not exist
        ConflictError: table already has an active or completed order
    """
    def _op():
        table = table_service.get_table(table_id)
        if table_service.get_occupying_order(table.id):
            raise ConflictError("Table already has an active order")

        order = Order(table_id=table.id, status=ORDER_STATUS_ACTIVE, total_cents=0)
        db.session.add(order)
        db.session.commit()
        return order

    return run_with_retry(_op)


def complete_order(order_id: int) -> Order:
    """Kitchen/service finished; the order now waits for its bill. No sale, no stock effect."""
    order = _load_order(order_id)
    if order.status == ORDER_STATUS_COMPLETED:
        return order
    if order.status != ORDER_STATUS_ACTIVE:
        raise InvalidStateError(f"Cannot complete order with status {order.status}")

    order.status = ORDER_STATUS_COMPLETED
    order.updated_at = utcnow()
    db.session.commit()
    return order


def update_order(order_id: int, patch: dict) -> Order:
    """Generic order update; the only permitted change is status active -> completed."""
    order = _load_order(order_id)
    status = patch.get("status")
    if status is None or status == order.status:
        return order
    if status == ORDER_STATUS_COMPLETED:
        return complete_order(order_id)
    raise InvalidStateError(f"Cannot change order status from {order.status} to {status}")


def cancel_order(order_id: int) -> None:
    """Delete the order and its items outright. No sale, no stock effect."""
    order = _load_order(order_id)
    db.session.delete(order)
    db.session.commit()


def add_item(order_id: int, product_id: int, quantity: int) -> OrderItem:
    """
    Add a line at the product's current catalog price.

    Adding the same product twice creates two independent lines.
    """
    def _op():
        order = _load_order(order_id, lock=True)

        product = db.session.query(Product).filter_by(id=product_id).first()
        if not product:
            raise NotFoundError("Product not found")

        item = OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price_cents=product.price_cents,
            total_cents=line_total_cents(product.price_cents, quantity),
        )
        order.items.append(item)
        recompute_total(order)
        db.session.commit()
        return item

    return run_with_retry(_op)


def update_item(item_id: int, patch: dict) -> OrderItem:
    """Merge quantity/unit price changes, then recompute the line and order totals."""
    def _op():
        item = _load_item(item_id)
        order = _load_order(item.order_id, lock=True)

        for k, v in patch.items():
            if k not in ORDER_ITEM_MUTABLE_FIELDS:
                continue
            if v is None:
                raise ValidationError(f"{k} cannot be null")
            setattr(item, k, v)

        item.total_cents = line_total_cents(item.unit_price_cents, item.quantity)
        recompute_total(order)
        db.session.commit()
        return item

    return run_with_retry(_op)


def remove_item(item_id: int) -> Order:
    """Delete one line and recompute the order total. Returns the order."""
    def _op():
        item = _load_item(item_id)
        order = _load_order(item.order_id, lock=True)
        order.items.remove(item)
        recompute_total(order)
        db.session.commit()
        return order

    return run_with_retry(_op)


def close_bill(order_id: int) -> sales_service.SaleResult:
    """
    Settle a completed order.

    Converts every item into a sale item (same product, name, quantity,
    price, total), records the sale under the active session with
    total = order total, deducts stock for linked products, and deletes the
    order. All of it is one transaction.

    Raises:
        NotFoundError: order does not exist
        InvalidStateError: order is not completed, or has no items
        NoActiveSessionError / PastSessionReadOnlyError: no writable day
    """
    def _op():
        order = _load_order(order_id, lock=True)

        if order.status != ORDER_STATUS_COMPLETED:
            raise InvalidStateError("Only completed orders can be closed")

        session = business_session_service.require_writable_session("close bills for")

        items = list(order.items)
        if not items:
            raise InvalidStateError("Cannot close a bill with no items")

        lines = [
            {
                "product_id": item.product_id,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price_cents": item.unit_price_cents,
                "total_cents": item.total_cents,
            }
            for item in items
        ]

        result = sales_service.record_sale(
            session,
            lines,
            total_cents=order.total_cents,
            source=sales_service.SALE_SOURCE_TABLE,
        )
        db.session.delete(order)
        db.session.commit()
        return result

    result = run_with_retry(_op)
    current_app.logger.info(
        "Bill closed for order %s: sale %s, total %s cents", order_id, result.sale.id, result.sale.total_cents
    )
    return result
